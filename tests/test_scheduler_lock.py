from datetime import timedelta

from sqlalchemy import select

from sentalerts.models.scheduler_lock import SchedulerLock
from sentalerts.services.scheduler_lock import (
    LOCK_NAME,
    describe_scheduler_lock,
    refresh_scheduler_lock,
    release_scheduler_lock,
    try_acquire_scheduler_lock,
)
from sentalerts.utils.time import ensure_aware, utcnow


def _as(monkeypatch, owner: str) -> None:
    monkeypatch.setattr("sentalerts.services.scheduler_lock._owner_id", lambda: owner)


def _lock(db_session) -> SchedulerLock | None:
    return db_session.execute(select(SchedulerLock).where(SchedulerLock.name == LOCK_NAME)).scalar_one_or_none()


def test_same_owner_can_reacquire(db_session):
    assert try_acquire_scheduler_lock(db_session=db_session) is True
    assert try_acquire_scheduler_lock(db_session=db_session) is True

    release_scheduler_lock(db_session=db_session)
    assert _lock(db_session) is None


def test_lock_cannot_be_taken_if_not_expired(monkeypatch, db_session):
    _as(monkeypatch, "node-A")
    assert try_acquire_scheduler_lock(db_session=db_session, ttl_seconds=300)

    _as(monkeypatch, "node-B")
    assert try_acquire_scheduler_lock(db_session=db_session, ttl_seconds=300) is False
    release_scheduler_lock(db_session=db_session)
    assert _lock(db_session).owner == "node-A"


def test_lock_can_be_reacquired_after_expiry(monkeypatch, db_session):
    _as(monkeypatch, "node-A")
    assert try_acquire_scheduler_lock(db_session=db_session, ttl_seconds=60)

    with db_session.begin_nested():
        _lock(db_session).expires_at = utcnow() - timedelta(seconds=1)

    _as(monkeypatch, "node-B")
    assert try_acquire_scheduler_lock(db_session=db_session, ttl_seconds=300)
    assert _lock(db_session).owner == "node-B"


def test_refresh_extends_only_own_lock(monkeypatch, db_session):
    _as(monkeypatch, "node-A")
    assert try_acquire_scheduler_lock(db_session=db_session, ttl_seconds=10)
    before = ensure_aware(_lock(db_session).expires_at)

    _as(monkeypatch, "node-B")
    refresh_scheduler_lock(db_session=db_session, ttl_seconds=3600)
    assert ensure_aware(_lock(db_session).expires_at) == before

    _as(monkeypatch, "node-A")
    refresh_scheduler_lock(db_session=db_session, ttl_seconds=3600)
    assert ensure_aware(_lock(db_session).expires_at) > before


def test_describe_scheduler_lock(monkeypatch, db_session):
    assert describe_scheduler_lock(db_session=db_session)["present"] is False

    _as(monkeypatch, "node-A")
    assert try_acquire_scheduler_lock(db_session=db_session, ttl_seconds=60)

    info = describe_scheduler_lock(db_session=db_session)
    assert info["present"] is True
    assert info["status"] == "owned_by_self"
    assert info["owner"] == "node-A"
    assert 0 < info["expires_in_seconds"] <= 60
    assert info["stale"] is False
