"""Engine and session factory shared by the scheduler, the lock and /health."""
from __future__ import annotations

import sqlite3

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from sentalerts.config import get_settings
from sentalerts.models.base import Base

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def init_engine() -> Engine:
    """Create the engine and session factory from the settings; idempotent."""

    global _engine, _session_factory
    if _engine is None:
        url = get_settings().database_url
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        _engine = create_engine(url, echo=False, connect_args=connect_args)
        _session_factory = sessionmaker(bind=_engine, autoflush=False, expire_on_commit=False)
    return _engine


def get_engine() -> Engine:
    return init_engine()


def get_sessionmaker() -> sessionmaker[Session]:
    """Return the session factory used by background jobs, creating the engine on demand."""

    init_engine()
    if _session_factory is None:
        raise RuntimeError("Session factory missing after engine initialisation")
    return _session_factory


@event.listens_for(Engine, "connect")
def _set_sqlite_pragma(dbapi_connection, connection_record) -> None:
    """Ensure SQLite enforces foreign key constraints (and cascades)."""

    if not isinstance(dbapi_connection, sqlite3.Connection):
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_all() -> None:
    """Create every table from the ORM metadata; dev/test shortcut for Alembic."""

    Base.metadata.create_all(bind=get_engine())


def close_engine() -> None:
    """Dispose of the engine; the next call to ``init_engine`` starts afresh."""

    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


__all__ = [
    "close_engine",
    "create_all",
    "get_engine",
    "get_sessionmaker",
    "init_engine",
]
