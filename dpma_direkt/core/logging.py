import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any

# Fields that identify where in a filing run a record was emitted.
RUN_FIELDS = ("run_id", "stage", "transaction_id")

_run_context: ContextVar[dict[str, Any]] = ContextVar("dpma_run_context", default={})


def bind_run_context(**fields: Any) -> Token:
    """Adds run fields to every record logged in the current context until reset."""
    bound = {**_run_context.get(), **{key: value for key, value in fields.items() if value is not None}}
    return _run_context.set(bound)


def reset_run_context(token: Token) -> None:
    _run_context.reset(token)


def run_context() -> dict[str, Any]:
    return dict(_run_context.get())


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = run_context()
        payload.update({field: context[field] for field in RUN_FIELDS if field in context})
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logging(level: int = logging.INFO) -> None:
    root = logging.getLogger()
    root.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    root.handlers = [handler]


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
