"""Shared fixtures for the SmartShelf test suite."""

import typing as t
from datetime import timezone

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from smartshelf.core.database import Base, get_db
from smartshelf.main import APPLICATION
from smartshelf.services.notification_host import NotificationHostRegistry
from smartshelf.services.notification_scheduler import NotificationScheduler
from smartshelf.utils.notifications import get_host_registry

from .fakes import NOW, FakeHost, StaticSettings, noop_fire


@pytest.fixture
async def engine() -> t.AsyncGenerator[t.Any, None]:
    """In-memory database with all tables created."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_maker(engine: t.Any) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the in-memory database."""
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
async def db(
    session_maker: async_sessionmaker[AsyncSession],
) -> t.AsyncGenerator[AsyncSession, None]:
    """A database session."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def fake_host() -> FakeHost:
    """Host that grants permission and records triggers in memory."""
    return FakeHost()


@pytest.fixture
def static_settings() -> StaticSettings:
    """Settings with both notification kinds enabled."""
    return StaticSettings()


@pytest.fixture
def scheduler(
    fake_host: FakeHost, static_settings: StaticSettings
) -> NotificationScheduler:
    """Scheduler over the fake host with a frozen clock."""
    return NotificationScheduler(
        fake_host, static_settings, clock=lambda: NOW
    )


@pytest.fixture
async def aps_scheduler() -> t.AsyncGenerator[AsyncIOScheduler, None]:
    """A started but paused APScheduler, so no job ever fires."""
    aps: AsyncIOScheduler = AsyncIOScheduler(timezone=timezone.utc)
    aps.start(paused=True)
    yield aps
    aps.shutdown(wait=False)


@pytest.fixture
def registry(aps_scheduler: AsyncIOScheduler) -> NotificationHostRegistry:
    """Host registry over the paused scheduler."""
    return NotificationHostRegistry(scheduler=aps_scheduler, on_fire=noop_fire)


@pytest.fixture
async def client(
    session_maker: async_sessionmaker[AsyncSession],
    registry: NotificationHostRegistry,
) -> t.AsyncGenerator[AsyncClient, None]:
    """API client wired to the in-memory database and paused scheduler."""

    async def override_get_db() -> t.AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    APPLICATION.dependency_overrides[get_db] = override_get_db
    APPLICATION.dependency_overrides[get_host_registry] = lambda: registry

    async with AsyncClient(
        transport=ASGITransport(app=APPLICATION), base_url="http://test"
    ) as api_client:
        yield api_client

    APPLICATION.dependency_overrides.clear()
