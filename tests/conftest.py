"""Shared test fixtures."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timezone

os.environ.setdefault("PELLET_STORE_BACKEND", "memory")
os.environ.setdefault("PELLET_LOG_FORMAT", "console")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from pellet.config import get_settings  # noqa: E402
from pellet.dependencies import get_redis_dep, get_store  # noqa: E402
from pellet.domain import PlateIdentity, UserSnapshot  # noqa: E402
from pellet.main import create_app  # noqa: E402
from pellet.store.memory import MemoryTagStore  # noqa: E402

get_settings.cache_clear()

# Wednesday
NOW = datetime(2026, 3, 4, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def store() -> MemoryTagStore:
    """Fresh in-memory store per test."""
    return MemoryTagStore()


@pytest.fixture
def make_user(store: MemoryTagStore) -> Callable[..., Awaitable[UserSnapshot]]:
    """Factory that registers a user directly in the store."""

    async def _make(
        user_id: str,
        plate: str | None = None,
        jurisdiction: str = "CA",
        negative_credits: int = 10,
        positive_credits: int = 5,
        **fields,
    ) -> UserSnapshot:
        identity = PlateIdentity(jurisdiction, plate) if plate else None
        user = UserSnapshot(
            id=user_id,
            display_name=fields.pop("display_name", user_id.title()),
            identity=identity,
            negative_credits=negative_credits,
            positive_credits=positive_credits,
            created_at=fields.pop("created_at", NOW),
            **fields,
        )
        return await store.create_user(user)

    return _make


@pytest_asyncio.fixture
async def client(store: MemoryTagStore) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client over the app, wired to the test store with no cache."""
    app = create_app()
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_redis_dep] = lambda: None

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
