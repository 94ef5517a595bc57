"""Logging configuration using Loguru.

Production output is one JSON object per line; development output is
colorized text. Standard library loggers such as asyncpg
are routed through Loguru, and a context variable carries per-request
fields such as ``request_id`` or ``user_id`` into every record.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from typing import TYPE_CHECKING

import orjson
from loguru import logger

if TYPE_CHECKING:
    from typing import Any


_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})

_NOISY_LOGGERS = ("asyncio", "asyncpg")


class InterceptHandler(logging.Handler):
    """Forward standard library log records to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk back to the frame that issued the stdlib logging call
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def _serialize_record(record: dict[str, Any]) -> str:
    """Render a record as a JSON line including bound and context fields."""
    payload = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "logger": record["extra"].get("name", record["name"]),
        "function": record["function"],
        "line": record["line"],
        **_log_context.get(),
        **record["extra"],
    }

    exception = record["exception"]
    if exception:
        payload["exception"] = {
            "type": exception.type.__name__ if exception.type else None,
            "value": str(exception.value) if exception.value else None,
        }

    record["extra"]["serialized"] = orjson.dumps(payload, default=str).decode()
    return "{extra[serialized]}\n"


def _format_dev_record(record: dict[str, Any]) -> str:
    """Human-readable format with context and bound fields appended."""
    fields = {**_log_context.get(), **record["extra"]}
    fields.pop("name", None)
    suffix = ""
    if fields:
        rendered = " ".join(f"{k}={v}" for k, v in fields.items())
        # Braces in values would be read as format fields by Loguru
        suffix = " | " + rendered.replace("{", "{{").replace("}", "}}")

    fmt = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        f"<level>{{message}}</level>{suffix}\n"
    )
    if record["exception"]:
        fmt += "{exception}\n"
    return fmt


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    *,
    is_development: bool = False,
) -> None:
    """Configure Loguru sinks and intercept standard library logging.

    Args:
        log_level: Minimum level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: ``"json"`` or ``"text"``.
        is_development: Force text output regardless of ``log_format``.
    """
    logger.remove()

    if log_format == "json" and not is_development:
        logger.add(
            sys.stdout,
            format=_serialize_record,
            level=log_level.upper(),
            colorize=False,
            backtrace=False,
            diagnose=False,
        )
    else:
        logger.add(
            sys.stdout,
            format=_format_dev_record,
            level=log_level.upper(),
            colorize=True,
            backtrace=True,
            diagnose=True,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)


def get_logger(name: str) -> Any:
    """Get a Loguru logger bound to ``name`` (typically ``__name__``)."""
    return logger.bind(name=name)


def bind_context(**kwargs: Any) -> None:
    """Attach fields to every subsequent record in the current async context.

    Example:
        bind_context(request_id="abc-123", user_id=42)
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def clear_context() -> None:
    """Drop all context fields; call at the start of each request."""
    _log_context.set({})


def get_context() -> dict[str, Any]:
    """Return a copy of the current context fields."""
    return _log_context.get().copy()


__all__ = [
    "bind_context",
    "clear_context",
    "get_context",
    "get_logger",
    "logger",
    "setup_logging",
]
