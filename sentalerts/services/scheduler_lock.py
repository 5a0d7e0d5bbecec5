"""DB-backed lock so that only one instance runs the overdue alert job."""
from __future__ import annotations

import logging
import os
import socket
from contextlib import contextmanager
from datetime import timedelta
from typing import Iterator

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sentalerts import db
from sentalerts.models.scheduler_lock import SchedulerLock
from sentalerts.utils.time import ensure_aware, utcnow

logger = logging.getLogger(__name__)

LOCK_NAME = "overdue-alerts"
LOCK_TTL_SECONDS = 300


@contextmanager
def _session(db_session: Session | None = None) -> Iterator[Session]:
    if db_session is not None:
        yield db_session
        return
    session = db.get_sessionmaker()()
    try:
        yield session
    finally:
        session.close()


def _transaction(session: Session):
    return session.begin_nested() if session.in_transaction() else session.begin()


def _owner_id() -> str:
    return f"{socket.gethostname()}-{os.getpid()}"


def _load(session: Session, name: str) -> SchedulerLock | None:
    stmt = select(SchedulerLock).where(SchedulerLock.name == name).with_for_update()
    return session.execute(stmt).scalar_one_or_none()


def try_acquire_scheduler_lock(
    name: str = LOCK_NAME,
    *,
    ttl_seconds: int = LOCK_TTL_SECONDS,
    db_session: Session | None = None,
) -> bool:
    """Attempt to acquire the scheduler lock; an expired lock may be taken over."""

    owner = _owner_id()
    now = utcnow()
    expires = now + timedelta(seconds=ttl_seconds)

    with _session(db_session) as session:
        try:
            with _transaction(session):
                lock = _load(session, name)
                if lock is None:
                    session.add(SchedulerLock(name=name, owner=owner, acquired_at=now, expires_at=expires))
                    session.flush()
                    return True

                expired = lock.expires_at is None or ensure_aware(lock.expires_at) <= now
                if expired or lock.owner == owner:
                    if lock.owner != owner:
                        logger.warning(
                            "Taking over expired scheduler lock",
                            extra={"lock": name, "previous_owner": lock.owner, "owner": owner},
                        )
                        lock.owner = owner
                        lock.acquired_at = now
                    lock.expires_at = expires
                    return True
                return False
        except IntegrityError:
            # Another runner inserted the row between our read and our insert.
            return False


def refresh_scheduler_lock(
    name: str = LOCK_NAME, *, ttl_seconds: int = LOCK_TTL_SECONDS, db_session: Session | None = None
) -> None:
    """Extend the TTL of the scheduler lock when owned by this runner."""

    owner = _owner_id()
    with _session(db_session) as session:
        with _transaction(session):
            lock = _load(session, name)
            if lock and lock.owner == owner:
                lock.expires_at = utcnow() + timedelta(seconds=ttl_seconds)


def release_scheduler_lock(name: str = LOCK_NAME, *, db_session: Session | None = None) -> None:
    """Release the scheduler lock if held by this runner."""

    owner = _owner_id()
    with _session(db_session) as session:
        with _transaction(session):
            lock = _load(session, name)
            if lock and lock.owner == owner:
                session.delete(lock)


def describe_scheduler_lock(name: str = LOCK_NAME, *, db_session: Session | None = None) -> dict[str, object]:
    """Return a lightweight description of the current scheduler lock state."""

    with _session(db_session) as session:
        lock = session.execute(select(SchedulerLock).where(SchedulerLock.name == name)).scalar_one_or_none()
        if lock is None:
            return {"status": "none", "owner": None, "present": False}

        now = utcnow()
        age_seconds = (now - ensure_aware(lock.acquired_at)).total_seconds()
        expires_in = (ensure_aware(lock.expires_at) - now).total_seconds() if lock.expires_at else None
        return {
            "status": "owned_by_self" if lock.owner == _owner_id() else "owned_by_other",
            "owner": lock.owner,
            "present": True,
            "age_seconds": age_seconds,
            "expires_in_seconds": expires_in,
            "stale": expires_in is not None and expires_in < -60,
        }


__all__ = [
    "LOCK_NAME",
    "describe_scheduler_lock",
    "refresh_scheduler_lock",
    "release_scheduler_lock",
    "try_acquire_scheduler_lock",
]
