"""Test configuration."""
import os
from collections.abc import AsyncIterator, Callable, Iterator
from datetime import date, timedelta
from pathlib import Path
from uuid import uuid4

import pytest
from alembic import command
from alembic.config import Config
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

# --- Default env, before the application reads its settings
os.environ.setdefault("DATABASE_URL", "sqlite:///./sentalerts_test.db")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("SCHEDULER_ENABLED", "0")

from sentalerts.core.runtime_state import reset_runtime_state  # noqa: E402
from sentalerts.main import app  # noqa: E402
from sentalerts.models import WAITING_RESPONSE, InfoRequest, User  # noqa: E402
from sentalerts.utils.time import utctoday  # noqa: E402

PROJECT_ROOT = Path(__file__).resolve().parents[1]
DB_PATH = Path("./sentalerts_test.db")


def _run_migrations() -> None:
    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", os.environ["DATABASE_URL"])
    command.upgrade(cfg, "head")


# --- (1) Fresh DB file per session
if DB_PATH.exists():
    DB_PATH.unlink()

engine = create_engine(
    os.environ["DATABASE_URL"],
    connect_args={"check_same_thread": False},
    future=True,
)
TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True, expire_on_commit=False)

# --- (2) Schema comes from Alembic only
_run_migrations()


@pytest.fixture
def db_session() -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)
    try:
        yield session
    finally:
        session.close()
        transaction.rollback()
        connection.close()


@pytest.fixture(autouse=True)
def clean_runtime_state() -> Iterator[None]:
    reset_runtime_state()
    yield
    reset_runtime_state()


@pytest.fixture
async def client() -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as async_client:
        yield async_client


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def today() -> date:
    return utctoday()


@pytest.fixture
def make_user(db_session: Session) -> Callable[..., User]:
    def _factory(*, name: str = "requester", is_active: bool = True) -> User:
        user = User(name=name, email=f"{name}-{uuid4().hex[:8]}@example.com", is_active=is_active)
        db_session.add(user)
        db_session.flush()
        return user

    return _factory


@pytest.fixture
def make_info_request(db_session: Session, today: date) -> Callable[..., InfoRequest]:
    """Factory for requests; ``due_in_days`` negative means the deadline has passed."""

    def _factory(
        user: User,
        *,
        due_in_days: int | None = -1,
        described_state: str = WAITING_RESPONSE,
        title: str = "Spending on office chairs",
    ) -> InfoRequest:
        info_request = InfoRequest(
            title=title,
            url_title=f"request-{uuid4().hex[:10]}",
            user_id=user.id,
            described_state=described_state,
            date_response_required_by=None if due_in_days is None else today + timedelta(days=due_in_days),
        )
        db_session.add(info_request)
        db_session.flush()
        return info_request

    return _factory
