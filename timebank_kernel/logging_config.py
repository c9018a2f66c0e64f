"""
Structured JSON logging for the time-bank engine.

Every record under the ``timebank`` logger namespace is written as one JSON
line.  The line carries the standard fields (``ts``, ``level``, ``logger``,
``message``), the request-scoped fields held by ``LogContext``, any
``extra=`` payload, and for exceptions the type, message, ``code`` and the
public attributes of ``TimebankError`` subclasses.

Decimals and dates are written as strings so hour values keep their exact
representation.
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
from collections.abc import Mapping
from contextvars import ContextVar, Token
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any

_ROOT = "timebank"

# ---------------------------------------------------------------------------
# Request-scoped context
# ---------------------------------------------------------------------------

_EMPTY: Mapping[str, str] = MappingProxyType({})
_context: ContextVar[Mapping[str, str]] = ContextVar("timebank_log_context", default=_EMPTY)


class LogContext:
    """
    Request-scoped log fields shared by every logger in the namespace.

    The fields live in a single context variable holding an immutable
    mapping, so threads and asyncio tasks each see their own copy.
    """

    FIELDS = ("correlation_id", "employee_id", "week_id", "actor_id")

    @classmethod
    def _merged(cls, values: Mapping[str, str | None]) -> Mapping[str, str]:
        current = dict(_context.get())
        for name, value in values.items():
            if name in cls.FIELDS and value is not None:
                current[name] = value
        return MappingProxyType(current)

    @classmethod
    def set(
        cls,
        *,
        correlation_id: str | None = None,
        employee_id: str | None = None,
        week_id: str | None = None,
        actor_id: str | None = None,
    ) -> None:
        """Set context fields; None leaves a field as it is."""
        _context.set(
            cls._merged(
                {
                    "correlation_id": correlation_id,
                    "employee_id": employee_id,
                    "week_id": week_id,
                    "actor_id": actor_id,
                }
            )
        )

    @classmethod
    def get_all(cls) -> dict[str, str]:
        return dict(_context.get())

    @classmethod
    def clear(cls) -> None:
        _context.set(_EMPTY)

    @classmethod
    def bind(cls, **fields: str | None) -> "_Binding":
        """
        Context manager setting fields for the duration of a block.

        Unknown field names are ignored.  On exit the previous fields are
        restored exactly.
        """
        return _Binding(cls._merged, fields)


class _Binding:
    def __init__(self, merge, fields: Mapping[str, str | None]):
        self._merge = merge
        self._fields = fields
        self._token: Token | None = None

    def __enter__(self) -> type[LogContext]:
        self._token = _context.set(self._merge(self._fields))
        return LogContext

    def __exit__(self, *exc: Any) -> None:
        if self._token is not None:
            _context.reset(self._token)
            self._token = None


# ---------------------------------------------------------------------------
# Formatter
# ---------------------------------------------------------------------------

_RESERVED: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        payload["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_") and name != "code":
            payload[f"exc_{name}"] = value
    return payload


class StructuredFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context.get(),
        }
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RESERVED and key not in payload
        )
        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=_json_default)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger ``timebank.<name>``."""
    return logging.getLogger(f"{_ROOT}.{name}")


_setup_lock = threading.Lock()
_installed_handler: logging.Handler | None = None


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Install one JSON handler on the ``timebank`` logger.

    Only the first call has an effect until ``reset_logging()``.  The
    namespace stops propagating so records are not duplicated by the root
    logger.
    """
    global _installed_handler
    with _setup_lock:
        if _installed_handler is not None:
            return
        target = handler or logging.StreamHandler(stream or sys.stderr)
        target.setFormatter(StructuredFormatter())
        root = logging.getLogger(_ROOT)
        root.setLevel(level)
        root.propagate = False
        root.addHandler(target)
        _installed_handler = target


def reset_logging() -> None:
    """Undo ``configure_logging``.  Test use only."""
    global _installed_handler
    with _setup_lock:
        root = logging.getLogger(_ROOT)
        if _installed_handler is not None:
            root.removeHandler(_installed_handler)
        root.setLevel(logging.WARNING)
        root.propagate = True
        _installed_handler = None
