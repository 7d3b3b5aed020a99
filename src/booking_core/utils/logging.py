"""Logging configuration for the booking core service.

Besides the request id, records carry the scheduling identifiers of the
operation that produced them (``staff_id``, ``appointment_id``, ...). Services
either bind them for a block with :func:`bind_log_context` or pass them per
call with ``extra=log_fields(...)``. The JSON formatter emits them as
top-level keys; the development formatter appends them after the message.
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, Optional

from booking_core.config import get_settings

# Request ID context variable for tracking requests across async operations
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Identifiers bound for the scheduling operation in progress; replaced, never mutated
log_context_var: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})

_logger: Optional[logging.Logger] = None


def log_fields(**fields: Any) -> Dict[str, Dict[str, Any]]:
    """Build the ``extra`` argument for one log call, dropping unset identifiers."""
    return {"extra_fields": {key: value for key, value in fields.items() if value is not None}}


@contextmanager
def bind_log_context(**fields: Any) -> Iterator[Dict[str, Any]]:
    """Attach identifiers to every record logged inside the block.

    Nested blocks add to the outer context; leaving a block restores it.
    """
    bound = {**log_context_var.get(), **log_fields(**fields)["extra_fields"]}
    token = log_context_var.set(bound)
    try:
        yield bound
    finally:
        log_context_var.reset(token)


def _context_fields(record: logging.LogRecord) -> Dict[str, Any]:
    fields = dict(log_context_var.get())
    fields.update(getattr(record, "extra_fields", None) or {})
    return fields


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id

        log_data.update(_context_fields(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class StandardFormatter(logging.Formatter):
    """Human-readable formatter for development; identifiers follow the message."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] - %(message)s%(context)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get() or "N/A"
        fields = _context_fields(record)
        record.context = (
            " (" + ", ".join(f"{key}={value}" for key, value in fields.items()) + ")"
            if fields
            else ""
        )
        return super().format(record)


def setup_logging() -> logging.Logger:
    """Set up logging configuration based on environment."""
    global _logger

    if _logger is not None:
        return _logger

    settings = get_settings()
    level = getattr(logging, settings.log_level)

    logger = logging.getLogger("booking_core")
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if settings.is_production else StandardFormatter())
    logger.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.database.echo else logging.WARNING
    )

    logger.propagate = False

    _logger = logger
    logger.info(
        f"Logging configured: level={settings.log_level}, "
        f"environment={settings.environment.value}, "
        f"format={'JSON' if settings.is_production else 'Standard'}"
    )
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger under the ``booking_core`` namespace."""
    if name:
        return logging.getLogger(f"booking_core.{name}")
    return logging.getLogger("booking_core")


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def log_request(method: str, path: str, status_code: int, duration_ms: float, **kwargs: Any) -> None:
    """Log an HTTP request with its timing."""
    get_logger("http").info(
        f"{method} {path} - {status_code} - {duration_ms:.2f}ms",
        extra=log_fields(
            method=method, path=path, status_code=status_code, duration_ms=duration_ms, **kwargs
        ),
    )


def log_error(error: Exception, context: Optional[Dict[str, Any]] = None, **kwargs: Any) -> None:
    """Log an unexpected error with its traceback."""
    get_logger("error").error(
        f"Error: {type(error).__name__}: {error}",
        exc_info=True,
        extra=log_fields(
            error_type=type(error).__name__, error_message=str(error), context=context or {}, **kwargs
        ),
    )
