"""
Logging setup for Tresorier.

Records are emitted as one JSON object per line in production. Extras
passed with ``extra=`` become top-level keys, except credentials and
full bank account numbers, which are masked before they leave the process.
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator, Optional
from uuid import uuid4

SERVICE_NAME = "tresorier"

request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

_RECORD_FIELDS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}

# Never logged as-is
_SECRET_KEYS = frozenset({"code", "otp", "code_hash", "token", "signature", "secret"})
_ACCOUNT_NUMBER_KEYS = frozenset({"account_number", "bank_account_number"})

_QUIET_LOGGERS = ("asyncio", "aiohttp.access", "sqlalchemy.engine", "httpx")


def redact(key: str, value: Any) -> Any:
    """
    Mask a log field that must not reach log storage.

    Args:
        key: Extra field name
        value: Field value

    Returns:
        The value, or a masked stand-in for sensitive keys
    """
    if key in _SECRET_KEYS:
        return "[redacted]"
    if key in _ACCOUNT_NUMBER_KEYS and value:
        text = str(value)
        return "*" * max(len(text) - 4, 0) + text[-4:]
    return value


class JSONFormatter(logging.Formatter):
    """Render a record as a single-line JSON document."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_ctx.get()
        if request_id:
            payload["request_id"] = request_id

        for key, value in record.__dict__.items():
            if key in _RECORD_FIELDS or key.startswith("_"):
                continue
            payload[key] = redact(key, value)

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.levelno >= logging.WARNING:
            payload["source"] = f"{record.module}:{record.lineno}"

        return json.dumps(payload, default=str)


def setup_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """
    Configure the root logger.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR)
        json_logs: JSON lines when True, human-readable text otherwise
    """
    numeric_level = getattr(logging, level.upper())

    handler = logging.StreamHandler(sys.stdout)
    if json_logs:
        handler.setFormatter(JSONFormatter(datefmt="%Y-%m-%dT%H:%M:%S"))
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
                datefmt="%H:%M:%S",
            )
        )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Return the named logger (usually ``__name__``)."""
    return logging.getLogger(name)


def set_request_id(request_id: Optional[str] = None) -> str:
    """
    Bind a request id to the current context.

    Args:
        request_id: Incoming id; a new UUID is generated when None

    Returns:
        The id now bound
    """
    request_id = request_id or str(uuid4())
    request_id_ctx.set(request_id)
    return request_id


def get_request_id() -> Optional[str]:
    return request_id_ctx.get()


@contextmanager
def log_performance(
    logger: logging.Logger, operation: str, **fields: Any
) -> Iterator[None]:
    """
    Log the wall time of the wrapped block at DEBUG.

    Args:
        logger: Destination logger
        operation: Short operation name, e.g. "payout.transfer"
        **fields: Extra fields for the record
    """
    started = time.perf_counter()
    try:
        yield
    finally:
        duration_ms = (time.perf_counter() - started) * 1000
        logger.debug(
            f"{operation} took {duration_ms:.1f}ms",
            extra={
                "operation": operation,
                "duration_ms": round(duration_ms, 2),
                **fields,
            },
        )
