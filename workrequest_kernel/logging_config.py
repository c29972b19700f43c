"""
Structured JSON logging for the work request engine.

Every module logs through ``get_logger(<area>)``, which hangs off the
``workrequest_kernel`` logger.  Messages are event names
(``work_request_created``); data goes in ``extra``.  Request-scoped
fields (the request or dispute being handled, the acting user, a
correlation id) are bound once with ``LogContext.bind`` and stamped onto
every record emitted inside the block.

Output is one JSON object per line.  When a record carries an exception,
the exception's public attributes are flattened into ``exc_<name>`` keys,
so a ``WorkRequestError`` logs its ``code`` and structured fields.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, TextIO
from uuid import UUID

ROOT_LOGGER_NAME = "workrequest_kernel"

CONTEXT_FIELDS: frozenset[str] = frozenset(
    {"correlation_id", "request_id", "dispute_id", "actor_id"}
)

_context: ContextVar[Mapping[str, str]] = ContextVar("workrequest_log_context", default={})


def _checked(fields: Mapping[str, Any]) -> dict[str, str]:
    unknown = set(fields) - CONTEXT_FIELDS
    if unknown:
        raise TypeError(f"Unknown log context fields: {sorted(unknown)}")
    return {name: str(value) for name, value in fields.items() if value is not None}


class LogContext:
    """
    Request-scoped log fields, held in a context variable.

    Safe across threads and asyncio tasks: each carries its own copy.
    Only the names in ``CONTEXT_FIELDS`` are accepted; ``None`` values
    are skipped so callers can pass optional ids straight through.
    """

    @staticmethod
    def set(**fields: Any) -> None:
        """Merge ``fields`` into the current context."""
        _context.set({**_context.get(), **_checked(fields)})

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set({})

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[None]:
        """Merge ``fields`` for the duration of the block, then restore."""
        token = _context.set({**_context.get(), **_checked(fields)})
        try:
            yield
        finally:
            _context.reset(token)


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

# Attributes every LogRecord has; anything else arrived through ``extra``.
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _to_json(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """One JSON object per record: envelope, then context, then extras."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context.get(),
        }
        entry.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in entry
        )

        if record.exc_info and record.exc_info[1] is not None:
            entry.update(_exception_fields(record.exc_info[1]))
            entry["traceback"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=_to_json)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger ``workrequest_kernel.<name>``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


_configured = False
_setup_lock = threading.Lock()


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: TextIO | None = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``workrequest_kernel`` logger.

    The first call wins; later calls are no-ops until ``reset_logging``.
    Records do not propagate to the root logger, so host applications
    keep their own handlers untouched.
    """
    global _configured
    with _setup_lock:
        if _configured:
            return
        _configured = True

        if handler is None:
            handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())

        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.setLevel(level)
        root.propagate = False
        root.addHandler(handler)


def reset_logging() -> None:
    """Detach handlers and allow ``configure_logging`` again.  Test support."""
    global _configured
    with _setup_lock:
        _configured = False
        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.handlers.clear()
        root.setLevel(logging.WARNING)
