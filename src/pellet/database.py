"""Async SQLAlchemy engine and sessions for the SQL tag store."""

from collections.abc import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from pellet.db.base import Base

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None

_NOT_INITIALIZED = "Database not initialized. Call init_db() first."


async def init_db(url: str, create_tables: bool = False) -> None:
    """Create the engine; with create_tables, also create any missing tables."""
    global _engine, _session_factory  # noqa: PLW0603
    _engine = create_async_engine(url, pool_size=20, max_overflow=10, pool_pre_ping=True)
    _session_factory = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False)
    if create_tables:
        from pellet.db import models  # noqa: F401

        async with _engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    global _engine, _session_factory  # noqa: PLW0603
    if _engine:
        await _engine.dispose()
        _engine = None
        _session_factory = None


async def ping_db() -> None:
    """Round-trip a trivial query. Raises if the database is unreachable."""
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    async with _engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """One session per request; SqlTagStore commits each write itself."""
    if _session_factory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    async with _session_factory() as session:
        yield session
