"""Shared FastAPI dependencies."""

from collections.abc import AsyncGenerator

import redis.asyncio as redis
from fastapi import Depends

from pellet.analytics.service import AnalyticsService
from pellet.config import get_settings
from pellet.database import get_session
from pellet.redis_client import get_redis
from pellet.store.base import TagStore
from pellet.store.memory import MemoryTagStore
from pellet.store.sql import SqlTagStore

_memory_store: MemoryTagStore | None = None


def get_memory_store() -> MemoryTagStore:
    """Process-wide in-memory store for store_backend=memory."""
    global _memory_store  # noqa: PLW0603
    if _memory_store is None:
        _memory_store = MemoryTagStore()
    return _memory_store


async def get_store() -> AsyncGenerator[TagStore, None]:
    """Yield the configured TagStore as a FastAPI dependency."""
    if get_settings().store_backend == "memory":
        yield get_memory_store()
        return
    async for session in get_session():
        yield SqlTagStore(session)


def get_redis_dep() -> redis.Redis | None:
    return get_redis()


def get_analytics_service(
    store: TagStore = Depends(get_store),  # noqa: B008
    cache: redis.Redis | None = Depends(get_redis_dep),  # noqa: B008
) -> AnalyticsService:
    return AnalyticsService(store, cache)
