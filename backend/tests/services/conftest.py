"""Service test fixtures - async DB, controllable clock, mail doubles, FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use the test DB
    - One FakeClock drives both the service (UTC datetimes) and the rate limiters
      (monotonic seconds), so advancing it moves token expiry and rate windows together
    - Detached mail tasks are drained before a test's assertions on mail run

Design Decisions:
    - SQLite in-memory: ON CONFLICT upsert behaves the same as on PostgreSQL
    - Mail doubles (mail_doubles.py) implement the Mailer protocol structurally
"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

import waitlist.infrastructure.database as db_module
from waitlist.api.dependencies import (
    get_clock, get_dispatcher, get_notify_limiter, get_subscribe_limiter,
)
from waitlist.config import Settings, get_settings
from waitlist.core.rate_limiter import RateLimiter
from waitlist.db.base import Base
from waitlist.infrastructure.database import get_db, DatabaseSessionManager
from waitlist.infrastructure.subscription_repository import SqlSubscriptionStore
from waitlist.main import app
from waitlist.services.notification_dispatcher import NotificationDispatcher
from waitlist.services.subscription_service import SubscriptionService
import waitlist.models  # noqa: F401

from tests.services.mail_doubles import RecordingLogMailer

ADMIN_TOKEN = "test-admin-secret"
OWNER_EMAIL = "owner@example.com"


class FakeClock:
    """Manually advanced clock exposing both wall time and monotonic seconds."""

    def __init__(self, start: datetime | None = None):
        self._start = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
        self._offset = timedelta()

    def now(self) -> datetime:
        return self._start + self._offset

    def monotonic(self) -> float:
        return self._offset.total_seconds()

    def advance(self, **kwargs) -> None:
        self._offset += timedelta(**kwargs)


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mailer():
    return RecordingLogMailer()


@pytest.fixture
async def dispatcher(mailer):
    dispatcher = NotificationDispatcher(
        mailer, owner_email=OWNER_EMAIL, site_name="Test Site",
        send_timeout_seconds=1.0,
    )
    yield dispatcher
    await dispatcher.drain()


@pytest.fixture
def rate_limiter(clock):
    return RateLimiter(limit=5, window_seconds=3600, clock=clock.monotonic)


@pytest.fixture
def notify_limiter(clock):
    return RateLimiter(limit=5, window_seconds=3600, clock=clock.monotonic)


@pytest.fixture
def store(test_db):
    return SqlSubscriptionStore(test_db)


@pytest.fixture
def service(store, rate_limiter, notify_limiter, dispatcher, clock):
    return SubscriptionService(
        store, rate_limiter, dispatcher,
        notify_rate_limiter=notify_limiter,
        clock=clock.now,
        admin_token=ADMIN_TOKEN,
    )


@pytest.fixture
def test_settings():
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        admin_token=ADMIN_TOKEN,
        site_name="Test Site",
        smtp_host=None,
        smtp_user=None,
        smtp_pass=None,
        frontend_url=None,
    )


@pytest.fixture
async def client(
    test_engine, test_session_factory, test_settings,
    rate_limiter, notify_limiter, dispatcher, clock,
):
    """FastAPI test client with DB, clock, limiters and dispatcher overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_subscribe_limiter] = lambda: rate_limiter
    app.dependency_overrides[get_notify_limiter] = lambda: notify_limiter
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_clock] = lambda: clock.now

    # Readiness check uses db_manager directly
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
