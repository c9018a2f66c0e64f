"""
Module: timebank_kernel.db.engine
Responsibility: Own the process-wide SQLAlchemy engine and session factory and
    provide the transactional scope every week-store write runs in.
Architecture position: Kernel > DB.  Imports db/base.py and, lazily, the
    models it creates tables for.  MUST NOT import services.

Invariants enforced:
    - ``session_scope`` commits when its block completes and rolls back when
      it raises, so a confirmation never leaves a week half-written.
    - An in-memory SQLite URL gets a single shared connection; otherwise every
      session would open a fresh, empty database.

Failure modes:
    - ``RuntimeError`` from the accessors when no engine has been initialized.
"""

from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from timebank_kernel.logging_config import get_logger

logger = get_logger("db.engine")


@dataclass
class _Database:
    engine: Engine | None = None
    sessions: sessionmaker[Session] | None = None


_db = _Database()

_NOT_READY = "Database not initialized; call init_engine_from_url() first."


def _engine_options(url: URL, echo: bool, pool_size: int, max_overflow: int) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": echo}
    if url.get_backend_name() != "sqlite":
        options.update(pool_size=pool_size, max_overflow=max_overflow, pool_pre_ping=True)
    elif url.database in (None, "", ":memory:"):
        options.update(poolclass=StaticPool, connect_args={"check_same_thread": False})
    return options


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
) -> Engine:
    """
    Create the engine and session factory for ``database_url``.

    Calling it again replaces the previous engine (which is disposed).

    Args:
        database_url: Any SQLAlchemy URL, e.g. ``sqlite:///timebank.db``.
        echo: Log every SQL statement.
        pool_size: Pooled connections (server backends only).
        max_overflow: Extra connections beyond ``pool_size`` (server backends only).
    """
    url = make_url(database_url)
    reset_engine()
    engine = create_engine(url, **_engine_options(url, echo, pool_size, max_overflow))
    _db.engine = engine
    _db.sessions = sessionmaker(bind=engine, expire_on_commit=False)
    logger.info(
        "engine_initialized",
        extra={"dialect": url.get_backend_name(), "database": url.database or ":memory:"},
    )
    return engine


def get_engine() -> Engine:
    if _db.engine is None:
        raise RuntimeError(_NOT_READY)
    return _db.engine


def get_session_factory() -> sessionmaker[Session]:
    if _db.sessions is None:
        raise RuntimeError(_NOT_READY)
    return _db.sessions


def get_session() -> Session:
    return get_session_factory()()


@contextmanager
def session_scope(
    factory: sessionmaker[Session] | None = None,
) -> Generator[Session, None, None]:
    """
    Run a block in one transaction.

    Uses ``factory`` when given, the module session factory otherwise.  The
    session is always closed; errors are re-raised after the rollback.
    """
    session = (factory or get_session_factory())()
    try:
        yield session
        session.commit()
    except Exception as exc:
        session.rollback()
        logger.warning(
            "transaction_rolled_back",
            extra={"error": type(exc).__name__, "error_code": getattr(exc, "code", None)},
        )
        raise
    finally:
        session.close()


def create_tables() -> None:
    from timebank_kernel.db.base import Base
    from timebank_kernel.models import weekly_record  # noqa: F401

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    """Drop every table.  Test cleanup."""
    from timebank_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine, if any, and forget the session factory."""
    if _db.engine is not None:
        _db.engine.dispose()
    _db.engine = None
    _db.sessions = None
