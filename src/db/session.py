"""Async SQLAlchemy session factory."""
from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import get_settings
from models.base import Base


def enable_sqlite_savepoints(async_engine: AsyncEngine) -> None:
    """
    Let SQLAlchemy emit BEGIN itself on SQLite connections.

    The sqlite3 driver otherwise defers BEGIN until the first DML statement, so a
    SAVEPOINT opened before any write becomes the outermost transaction and its
    RELEASE commits. Per-record savepoints during import rely on real nesting.
    """

    @event.listens_for(async_engine.sync_engine, "connect")
    def _disable_driver_transactions(dbapi_connection: Any, _record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(async_engine.sync_engine, "begin")
    def _emit_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN")


settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    echo=settings.db_echo,
    pool_pre_ping=True,
)
if settings.is_sqlite:
    enable_sqlite_savepoints(engine)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


def get_session_factory() -> async_sessionmaker:
    """Return the session factory for services that need concurrent queries."""
    return async_session_factory


async def init_models() -> None:
    """Create any missing tables. Schema migrations are not managed."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """
    Yield an async database session.

    Uses unit-of-work pattern: services use flush() for refreshing objects,
    commit happens once here at request end. If anything fails, the whole
    request is rolled back.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
