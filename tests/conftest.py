"""Shared test fixtures."""

from collections.abc import AsyncIterator

import pytest
from litestar.testing import AsyncTestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ogenki_server.core.config import Settings
from ogenki_server.models.base import Base
from ogenki_server.services.checkin import CheckInService
from ogenki_server.services.store import InMemoryCheckInStore, SQLAlchemyCheckInStore


@pytest.fixture
async def async_engine():
    """Create async SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def async_session(async_engine) -> AsyncIterator[AsyncSession]:
    """Create async session for testing."""
    async_session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session


@pytest.fixture
def sql_store(async_session: AsyncSession) -> SQLAlchemyCheckInStore:
    """Check-in store on the test database."""
    return SQLAlchemyCheckInStore(async_session)


@pytest.fixture
def memory_store() -> InMemoryCheckInStore:
    """Check-in store held in memory."""
    return InMemoryCheckInStore()


@pytest.fixture
def service(memory_store: InMemoryCheckInStore) -> CheckInService:
    """Check-in service on the in-memory store, without a history cap."""
    return CheckInService(memory_store)


@pytest.fixture
def test_settings() -> Settings:
    """Settings for API tests."""
    return Settings(_env_file=None, env="test", log_level="WARNING")


@pytest.fixture
async def client(async_engine, test_settings: Settings) -> AsyncIterator[AsyncTestClient]:
    """Create test client backed by the test database."""
    from ogenki_server.app import create_app

    app = create_app(app_settings=test_settings, engine=async_engine)
    async with AsyncTestClient(app=app) as test_client:
        yield test_client
