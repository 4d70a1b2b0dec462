"""Balance storage behind the engine.

The engine only ever asks three things of a ledger: look a player up by
name, create one with a starting balance, and overwrite a player's balance
with a new absolute value. ``HttpLedger`` talks to the hosted user-record
service; ``SqlLedger`` keeps the same records in a local SQL database.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import httpx
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from . import models
from .database import make_session_factory
from .errors import LedgerUnavailable, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    balance: int

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "balance": self.balance}


class Ledger(ABC):
    @abstractmethod
    def find_by_name(self, name: str) -> Optional[Player]:
        ...

    @abstractmethod
    def create(self, name: str, initial_balance: int) -> Player:
        ...

    @abstractmethod
    def update_balance(self, player_id: str, name: str, new_balance: int) -> Player:
        ...

    def close(self) -> None:
        pass


def _player_from_record(record: dict) -> Player:
    try:
        return Player(
            id=str(record["id"]),
            name=str(record["name"]),
            balance=int(record.get("balance") or 0),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise LedgerUnavailable(f"malformed user record: {exc}") from exc


def _record_id(player_id: str) -> int:
    try:
        return int(player_id)
    except (TypeError, ValueError) as exc:
        raise LedgerUnavailable(f"no user record with id {player_id}") from exc


class HttpLedger(Ledger):
    """User records kept in a MockAPI-style REST collection."""

    def __init__(
        self,
        url: str,
        secret_key: str | None = None,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.url = url.rstrip("/")
        self._secret_key = secret_key
        self._client = httpx.Client(
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    def _params(self, **params) -> dict:
        if self._secret_key:
            params["key"] = self._secret_key
        return params

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.error(
                "Ledger request failed",
                extra={"method": method, "error_type": type(exc).__name__},
            )
            raise LedgerUnavailable(f"ledger request failed: {exc}") from exc

    @staticmethod
    def _check(response: httpx.Response) -> None:
        if response.is_success:
            return
        logger.error(
            "Ledger returned an error status",
            extra={"status": response.status_code, "error_type": "LedgerUnavailable"},
        )
        raise LedgerUnavailable(f"ledger returned HTTP {response.status_code}")

    @staticmethod
    def _json(response: httpx.Response):
        try:
            return response.json()
        except ValueError as exc:
            raise LedgerUnavailable("ledger returned a non-JSON body") from exc

    def find_by_name(self, name: str) -> Optional[Player]:
        response = self._request("GET", self.url, params=self._params(name=name))
        # the service answers 404 to a filter that matches nothing
        if response.status_code == 404:
            return None
        self._check(response)
        records = self._json(response)
        if isinstance(records, dict):
            records = [records]
        if not isinstance(records, list):
            raise LedgerUnavailable("ledger returned an unexpected body")
        # the name filter is a substring match; only an exact hit counts
        for record in records:
            if isinstance(record, dict) and record.get("name") == name:
                return _player_from_record(record)
        return None

    def create(self, name: str, initial_balance: int) -> Player:
        response = self._request(
            "POST",
            self.url,
            params=self._params(),
            json={"name": name, "balance": initial_balance},
        )
        self._check(response)
        return _player_from_record(self._json(response))

    def update_balance(self, player_id: str, name: str, new_balance: int) -> Player:
        response = self._request(
            "PUT",
            f"{self.url}/{player_id}",
            params=self._params(),
            json={"name": name, "balance": new_balance},
        )
        self._check(response)
        return _player_from_record(self._json(response))

    def close(self) -> None:
        self._client.close()


class SqlLedger(Ledger):
    """User records in a local SQL database, for development and tests."""

    def __init__(self, database_url: str):
        self._session_factory = make_session_factory(database_url)

    @staticmethod
    def _to_player(user: models.User) -> Player:
        return Player(id=str(user.id), name=user.name, balance=user.balance)

    def find_by_name(self, name: str) -> Optional[Player]:
        db = self._session_factory()
        try:
            user = db.query(models.User).filter(models.User.name == name).first()
            return self._to_player(user) if user else None
        except SQLAlchemyError as exc:
            raise LedgerUnavailable(f"ledger query failed: {exc}") from exc
        finally:
            db.close()

    def create(self, name: str, initial_balance: int) -> Player:
        db = self._session_factory()
        try:
            user = models.User(name=name, balance=initial_balance)
            db.add(user)
            db.commit()
            db.refresh(user)
            return self._to_player(user)
        except IntegrityError as exc:
            db.rollback()
            raise ValidationError("player already exists") from exc
        except SQLAlchemyError as exc:
            db.rollback()
            raise LedgerUnavailable(f"ledger write failed: {exc}") from exc
        finally:
            db.close()

    def update_balance(self, player_id: str, name: str, new_balance: int) -> Player:
        db = self._session_factory()
        try:
            user = db.query(models.User).filter(models.User.id == _record_id(player_id)).first()
            if user is None:
                raise LedgerUnavailable(f"no user record with id {player_id}")
            user.balance = new_balance
            user.updated_at = datetime.utcnow()
            db.add(user)
            db.commit()
            db.refresh(user)
            return self._to_player(user)
        except SQLAlchemyError as exc:
            db.rollback()
            raise LedgerUnavailable(f"ledger write failed: {exc}") from exc
        finally:
            db.close()


def build_ledger(settings) -> Ledger:
    if settings.ledger_backend == "sql":
        return SqlLedger(settings.database_url)
    return HttpLedger(settings.mock_url, settings.secret_key, settings.ledger_timeout)
