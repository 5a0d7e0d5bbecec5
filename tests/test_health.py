import pytest


@pytest.mark.anyio("asyncio")
async def test_healthcheck(client):
    response = await client.get("/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["db_status"] == "ok"
    assert payload["migrations_status"] == "up_to_date"
    assert payload["db_ok"] is True
    assert payload["migrations_ok"] is True
    assert payload["scheduler_config_enabled"] is False
    assert payload["scheduler_running"] is False
    assert payload["scheduler_lock"]["present"] is False
    assert payload["overdue_alerts"]["last_run"] is None
    assert payload["overdue_alerts"]["interval_minutes"] >= 1


@pytest.mark.anyio("asyncio")
async def test_health_degrades_on_db_failure(monkeypatch, client):
    class BrokenEngine:
        def connect(self):  # pragma: no cover - simple stub
            raise RuntimeError("DB down")

    monkeypatch.setattr("sentalerts.routers.health.get_engine", lambda: BrokenEngine())

    response = await client.get("/health")
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "degraded"
    assert payload["db_status"] == "error"
    assert payload["migrations_status"] == "unknown"
    assert payload["db_ok"] is False
    assert payload["migrations_ok"] is False
    assert payload["scheduler_lock"]["status"] == "unknown"


@pytest.mark.anyio("asyncio")
async def test_health_reports_out_of_date_migrations(monkeypatch, client):
    from sentalerts.routers import health as health_module

    monkeypatch.setattr(health_module, "_expected_migration_head", lambda: "9999_future")

    payload = (await client.get("/health")).json()
    assert payload["status"] == "degraded"
    assert payload["migrations_status"] == "out_of_date"


@pytest.mark.anyio("asyncio")
async def test_health_shows_last_overdue_run(client):
    from sentalerts.core.runtime_state import record_overdue_run
    from sentalerts.utils.time import utcnow

    record_overdue_run(finished_at=utcnow(), sent=3, ok=True)

    payload = (await client.get("/health")).json()
    assert payload["overdue_alerts"]["last_run"]["sent"] == 3
    assert payload["overdue_alerts"]["last_run"]["ok"] is True


@pytest.mark.anyio("asyncio")
async def test_health_uses_configured_alembic_ini(monkeypatch, client, tmp_path):
    from sentalerts.config import get_settings
    from sentalerts.routers.health import ALEMBIC_INI

    monkeypatch.setattr(get_settings(), "ALEMBIC_CONFIG", str(ALEMBIC_INI))
    assert (await client.get("/health")).json()["migrations_status"] == "up_to_date"

    monkeypatch.setattr(get_settings(), "ALEMBIC_CONFIG", str(tmp_path / "missing.ini"))
    payload = (await client.get("/health")).json()
    assert payload["status"] == "degraded"
    assert payload["migrations_status"] == "unknown"
    assert payload["migrations_ok"] is False
