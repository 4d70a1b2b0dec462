import logging

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import schemas
from .config import Settings
from .engine import GameEngine
from .errors import GameError
from .ledger import Ledger, build_ledger
from .logging_config import setup_logging
from .ratelimit import RateGuard
from .sessions import SessionManager

logger = logging.getLogger(__name__)


def build_engine(settings: Settings, ledger: Ledger | None = None) -> GameEngine:
    return GameEngine(
        ledger=ledger if ledger is not None else build_ledger(settings),
        sessions=SessionManager(maxsize=settings.session_max, ttl=settings.session_ttl),
        rate_guard=RateGuard(limit=settings.rate_limit, window_ms=settings.rate_window_ms),
        initial_balance=settings.initial_balance,
    )


def create_app(settings: Settings | None = None, engine: GameEngine | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="Lucky Box",
        description="Server-side game engine for slots, roulette, blackjack and mines.",
    )
    app.state.settings = settings
    app.state.engine = engine if engine is not None else build_engine(settings)

    @app.exception_handler(GameError)
    async def game_error_handler(request: Request, exc: GameError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = first.get("msg", "invalid request")
        return JSONResponse(
            status_code=400,
            content={"error": f"{field}: {message}" if field else message},
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error", exc_info=exc, extra={"error_type": type(exc).__name__})
        return JSONResponse(status_code=500, content={"error": "internal error"})

    @app.on_event("shutdown")
    def shutdown() -> None:
        app.state.engine.ledger.close()

    @app.get("/health")
    def health():
        return {"ok": True, "sessions": len(app.state.engine.sessions)}

    @app.post("/api/findUser", response_model=schemas.UserLookupResponse)
    def find_user(payload: schemas.PlayerNameRequest):
        player = app.state.engine.find_player(payload.name)
        return {"ok": True, "user": player.to_dict() if player else None}

    @app.post("/api/createUser", response_model=schemas.UserLookupResponse)
    def create_user(payload: schemas.PlayerNameRequest):
        player = app.state.engine.create_player(payload.name)
        return {"ok": True, "user": player.to_dict()}

    @app.post(
        "/api/action",
        response_model=schemas.ActionResponse,
        response_model_exclude_none=True,
        responses={400: {"model": schemas.ErrorResponse}, 429: {"model": schemas.ErrorResponse}},
    )
    def action(payload: schemas.ActionRequest):
        return app.state.engine.handle(payload)

    return app


def run() -> None:
    settings = Settings.from_env()
    app = create_app(settings)
    logger.info("Lucky Box server starting", extra={"port": settings.port})
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
