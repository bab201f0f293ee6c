"""Hour-of-day and day-of-week histograms."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta, timezone, tzinfo

from pellet.domain import TagEvent

HOURS_PER_DAY = 24
DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
DAY_WINDOW = timedelta(days=7)


def _local(ts: datetime, tz: tzinfo) -> datetime:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(tz)


def hour_histogram(events: Iterable[TagEvent], tz: tzinfo = timezone.utc) -> list[int]:
    """Count events per local hour, 0..23."""
    buckets = [0] * HOURS_PER_DAY
    for event in events:
        buckets[_local(event.created_at, tz).hour] += 1
    return buckets


def day_of_week_histogram(
    events: Iterable[TagEvent],
    now: datetime,
    tz: tzinfo = timezone.utc,
    window: timedelta = DAY_WINDOW,
) -> list[int]:
    """Count events per weekday (Sunday first) within the trailing window."""
    buckets = [0] * len(DAY_NAMES)
    for event in events:
        if now - event.created_at >= window:
            continue
        # datetime.weekday() is Monday=0
        buckets[(_local(event.created_at, tz).weekday() + 1) % 7] += 1
    return buckets


def peak_bucket(buckets: Sequence[int]) -> int | None:
    """Index of the largest bucket, earliest on ties. None when all are empty."""
    if not buckets or sum(buckets) == 0:
        return None
    best = 0
    for idx, count in enumerate(buckets):
        if count > buckets[best]:
            best = idx
    return best
