from typing import Optional

from pydantic import BaseModel, ConfigDict


class ActionRequest(BaseModel):
    playerName: Optional[str] = None
    game: Optional[str] = None
    action: Optional[str] = None
    pick: Optional[str] = None
    bet: Optional[int] = None
    mineCount: Optional[int] = None
    cellIndex: Optional[int] = None

    model_config = ConfigDict(extra="ignore")


class ActionResponse(BaseModel):
    balance: int
    result: Optional[dict] = None
    state: Optional[dict] = None


class ErrorResponse(BaseModel):
    error: str


class PlayerNameRequest(BaseModel):
    name: Optional[str] = None


class UserItem(BaseModel):
    id: str
    name: str
    balance: int


class UserLookupResponse(BaseModel):
    ok: bool = True
    user: Optional[UserItem] = None
