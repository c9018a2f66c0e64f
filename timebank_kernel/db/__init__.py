"""Database layer - engine, base class and transactional scope."""

from timebank_kernel.db.base import Base, DecimalHours, UpdatedAtMixin
from timebank_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)

__all__ = [
    "Base",
    "DecimalHours",
    "UpdatedAtMixin",
    "create_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "reset_engine",
    "session_scope",
]
