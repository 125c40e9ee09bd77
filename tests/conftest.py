"""Pytest fixtures for testing."""
from collections.abc import AsyncGenerator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from db.session import enable_sqlite_savepoints
from models import Base
from tests.factories import InMemoryCache


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine]:
    """
    Create a fresh in-memory SQLite database for each test.

    StaticPool keeps a single connection so every session sees the same database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Create an async session on the test database."""
    session_factory = async_sessionmaker(
        bind=async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with session_factory() as session:
        yield session


@pytest.fixture
def shared_session_factory(
    db_session: AsyncSession,
) -> Callable[[], AbstractAsyncContextManager[AsyncSession]]:
    """Session factory that always hands out the test session (sequential use only)."""

    @asynccontextmanager
    async def factory() -> AsyncGenerator[AsyncSession]:
        yield db_session

    return factory


@pytest.fixture
def cache() -> InMemoryCache:
    """Empty in-memory cache."""
    return InMemoryCache()


@pytest.fixture
async def client(
    db_session: AsyncSession,
    cache: InMemoryCache,
    shared_session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
) -> AsyncGenerator[AsyncClient]:
    """Create a test client with database session and cache overrides."""
    from api.dependencies import get_cache, get_concurrent_queries
    from api.main import app
    from db.session import get_async_session, get_session_factory

    async def override_get_async_session() -> AsyncGenerator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_async_session
    app.dependency_overrides[get_session_factory] = lambda: shared_session_factory
    app.dependency_overrides[get_concurrent_queries] = lambda: False
    app.dependency_overrides[get_cache] = lambda: cache

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()
