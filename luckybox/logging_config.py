import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict


class JsonFormatter(logging.Formatter):
    """Render log records as one JSON object per line."""

    _STANDARD_ATTRS = {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "message",
        "stacklevel",
        "taskName",
    }

    # Keys the engine attaches through ``extra=``; promoted to the top level.
    _COMMON_KEYS = ("player", "game", "action", "balance", "payout", "error_type")

    def _coerce(self, value: Any) -> Any:
        if value is None or isinstance(value, (str, int, float, bool)):
            return value
        if isinstance(value, dict):
            return {str(k): self._coerce(v) for k, v in value.items()}
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self._coerce(item) for item in value]
        return repr(value)

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in self._COMMON_KEYS:
            if key in record.__dict__:
                payload[key] = self._coerce(record.__dict__[key])

        extra: Dict[str, Any] = {}
        for key, value in record.__dict__.items():
            if key.startswith("_") or key in payload or key in self._STANDARD_ATTRS:
                continue
            extra[key] = self._coerce(value)
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(level: str | int = logging.INFO) -> None:
    """Attach the JSON formatter to the root logger once."""
    root = logging.getLogger()
    if not any(isinstance(h.formatter, JsonFormatter) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        root.addHandler(handler)
    root.setLevel(level)
