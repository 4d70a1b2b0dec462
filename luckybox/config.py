import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


BASE_DIR = Path(__file__).resolve().parent
DEFAULT_MOCK_URL = "https://69147b693746c71fe0486c2c.mockapi.io/users"
DEFAULT_DATABASE_URL = f"sqlite:///{(BASE_DIR.parent / 'luckybox.db').as_posix()}"


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    ledger_backend: str = "http"
    mock_url: str = DEFAULT_MOCK_URL
    secret_key: str | None = None
    database_url: str = DEFAULT_DATABASE_URL
    ledger_timeout: float = 5.0
    initial_balance: int = 1000
    rate_limit: int = 15
    rate_window_ms: int = 2000
    session_ttl: int = 3600
    session_max: int = 10000
    log_level: str = "INFO"
    port: int = 10000

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment (and a ``.env`` file if present)."""
        load_dotenv()
        backend = os.environ.get("LEDGER_BACKEND", "http").strip().lower()
        if backend not in ("http", "sql"):
            raise ValueError(f"LEDGER_BACKEND must be 'http' or 'sql', got {backend!r}")
        return cls(
            ledger_backend=backend,
            mock_url=os.environ.get("MOCK_URL", DEFAULT_MOCK_URL),
            secret_key=os.environ.get("SECRET_KEY") or None,
            database_url=os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL),
            ledger_timeout=_env_float("LEDGER_TIMEOUT", 5.0),
            initial_balance=_env_int("INITIAL_BALANCE", 1000),
            rate_limit=_env_int("RATE_LIMIT", 15),
            rate_window_ms=_env_int("RATE_WINDOW_MS", 2000),
            session_ttl=_env_int("SESSION_TTL", 3600),
            session_max=_env_int("SESSION_MAX", 10000),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            port=_env_int("PORT", 10000),
        )
