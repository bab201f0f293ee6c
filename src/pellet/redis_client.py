"""Redis client for the analytics cache.

The cache is optional: when Redis cannot be reached at startup the client
is dropped and analytics views are computed on every request.
"""

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

_client: redis.Redis | None = None


async def init_redis(url: str) -> bool:
    """Connect the cache client. Returns False, leaving caching off, if Redis is unreachable."""
    global _client  # noqa: PLW0603
    client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
    )
    try:
        await client.ping()
    except (RedisError, OSError):
        logger.warning("Redis unreachable at %s, analytics caching disabled", url, exc_info=True)
        await client.aclose()
        return False
    _client = client
    return True


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis | None:
    """The cache client, or None when caching is off."""
    return _client
