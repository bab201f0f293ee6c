"""Cached analytics queries.

Every view is computed from a fresh read of the store and cached in Redis
as JSON for a short TTL. A second, long-lived snapshot copy is served
when the store read fails. Without Redis, views are computed on every call.
"""

from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

import redis.asyncio as aioredis
import structlog
from redis.exceptions import RedisError

from pellet.analytics.histograms import (
    DAY_NAMES,
    day_of_week_histogram,
    hour_histogram,
    peak_bucket,
)
from pellet.analytics.leaderboard import check_order, experience_leaderboard, plate_leaderboard
from pellet.analytics.rankings import top_reasons, top_taggers
from pellet.analytics.regions import region_breakdown
from pellet.analytics.rollups import filter_events, tag_rollup, top_jurisdictions, user_rollup, window_delta
from pellet.config import Settings, get_settings
from pellet.domain import Polarity, TagEvent, TagEventFilter
from pellet.store.base import TagStore
from pellet.store.errors import StoreError

logger = structlog.get_logger()

CACHE_KEY = "analytics:{view}:{params}"
SNAPSHOT_KEY = "analytics:snapshot:{view}:{params}"


class AnalyticsUnavailable(Exception):
    """The store could not be read and no snapshot was cached."""

    def __init__(self, view: str) -> None:
        self.view = view
        super().__init__(f"Analytics view '{view}' is temporarily unavailable")


def _params_key(params: dict[str, Any]) -> str:
    parts = []
    for name in sorted(params):
        value = params[name]
        if isinstance(value, Polarity):
            value = value.value
        parts.append(f"{name}={'' if value is None else value}")
    return "|".join(parts) or "-"


class AnalyticsService:
    def __init__(
        self,
        store: TagStore,
        redis: aioredis.Redis | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.store = store
        self.redis = redis
        self.settings = settings or get_settings()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.settings.analytics_timezone)

    # --- cache plumbing ---

    async def _cached(
        self,
        view: str,
        params: dict[str, Any],
        compute: Callable[[], Awaitable[dict]],
    ) -> dict:
        suffix = _params_key(params)
        cache_key = CACHE_KEY.format(view=view, params=suffix)
        snapshot_key = SNAPSHOT_KEY.format(view=view, params=suffix)

        if self.redis is not None:
            try:
                cached = await self.redis.get(cache_key)
            except RedisError:
                logger.warning("analytics_cache_read_failed", view=view, exc_info=True)
                cached = None
            if cached:
                return json.loads(cached)

        try:
            result = await compute()
        except StoreError as exc:
            snapshot = await self._read_snapshot(snapshot_key)
            if snapshot is None:
                raise AnalyticsUnavailable(view) from exc
            logger.warning("analytics_cache_fallback", view=view, params=suffix, error=str(exc))
            return snapshot

        if self.redis is not None:
            payload = json.dumps(result)
            try:
                await self.redis.setex(cache_key, self.settings.analytics_cache_ttl_seconds, payload)
                await self.redis.setex(snapshot_key, self.settings.analytics_snapshot_ttl_seconds, payload)
            except RedisError:
                logger.warning("analytics_cache_write_failed", view=view, exc_info=True)
        return result

    async def _read_snapshot(self, key: str) -> dict | None:
        if self.redis is None:
            return None
        try:
            raw = await self.redis.get(key)
        except RedisError:
            return None
        return json.loads(raw) if raw else None

    async def _events(self, window: str, polarity: Polarity | None, now: datetime) -> list[TagEvent]:
        events = await self.store.list_tag_events(TagEventFilter(polarity=polarity))
        return filter_events(events, now, window)

    # --- views ---

    async def plate_leaderboard(
        self,
        polarity: Polarity | None = None,
        order: str = "desc",
        window: str = "all",
        limit: int | None = None,
    ) -> dict:
        window_delta(window)
        check_order(order)
        params = {"polarity": polarity, "order": order, "window": window, "limit": limit}

        async def compute() -> dict:
            now = self._clock()
            events = await self._events(window, polarity, now)
            return {"entries": plate_leaderboard(events, order=order, limit=limit)}

        return await self._cached("leaderboard_plates", params, compute)

    async def experience_leaderboard(self, order: str = "desc", limit: int | None = None) -> dict:
        check_order(order)
        params = {"order": order, "limit": limit}

        async def compute() -> dict:
            users = await self.store.list_users()
            return {"entries": experience_leaderboard(users, order=order, limit=limit)}

        return await self._cached("leaderboard_experience", params, compute)

    async def regions(
        self,
        polarity: Polarity | None = None,
        window: str = "all",
        order: str | None = None,
    ) -> dict:
        window_delta(window)
        if order is not None:
            check_order(order)

        async def compute() -> dict:
            now = self._clock()
            return region_breakdown(await self._events(window, polarity, now), order=order)

        params = {"polarity": polarity, "window": window, "order": order}
        return await self._cached("regions", params, compute)

    async def histograms(self, polarity: Polarity | None = None, window: str = "all") -> dict:
        window_delta(window)

        async def compute() -> dict:
            now = self._clock()
            tz = self.tz
            events = await self._events(window, polarity, now)
            hours = hour_histogram(events, tz)
            days = day_of_week_histogram(events, now, tz)
            peak_day = peak_bucket(days)
            return {
                "timezone": self.settings.analytics_timezone,
                "hours": hours,
                "peak_hour": peak_bucket(hours),
                "days": [{"day": name, "count": count} for name, count in zip(DAY_NAMES, days)],
                "peak_day": None if peak_day is None else DAY_NAMES[peak_day],
            }

        return await self._cached("histograms", {"polarity": polarity, "window": window}, compute)

    async def top_taggers(
        self,
        n: int | None = None,
        polarity: Polarity | None = None,
        window: str = "all",
        order: str = "desc",
    ) -> dict:
        window_delta(window)
        check_order(order)
        n = n or self.settings.top_n_default

        async def compute() -> dict:
            now = self._clock()
            events = await self._events(window, polarity, now)
            users = await self.store.list_users()
            return {"entries": top_taggers(events, users, n, order=order)}

        params = {"n": n, "order": order, "polarity": polarity, "window": window}
        return await self._cached("top_taggers", params, compute)

    async def top_reasons(
        self,
        n: int | None = None,
        polarity: Polarity | None = None,
        window: str = "all",
        order: str = "desc",
    ) -> dict:
        window_delta(window)
        check_order(order)
        n = n or self.settings.top_n_default

        async def compute() -> dict:
            now = self._clock()
            return {"entries": top_reasons(await self._events(window, polarity, now), n, order=order)}

        params = {"n": n, "order": order, "polarity": polarity, "window": window}
        return await self._cached("top_reasons", params, compute)

    async def summary(self, window: str = "all") -> dict:
        window_delta(window)

        async def compute() -> dict:
            now = self._clock()
            events = await self._events(window, None, now)
            users = await self.store.list_users()
            return {
                "generated_at": now.isoformat(),
                "tags": tag_rollup(events, now),
                "users": user_rollup(users, now),
                "top_jurisdictions": top_jurisdictions(users, self.settings.top_n_default),
            }

        return await self._cached("summary", {"window": window}, compute)
