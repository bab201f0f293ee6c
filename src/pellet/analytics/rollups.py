"""Scalar rollups over events and users.

All windows are rolling: an item is inside a window when
``now - created_at < window``.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta
from typing import Any

from pellet.domain import Polarity, TagEvent, UserSnapshot
from pellet.gamification.level_thresholds import MAX_LEVEL

WINDOWS: dict[str, timedelta | None] = {
    "all": None,
    "today": timedelta(days=1),
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
}


def window_delta(window: str) -> timedelta | None:
    try:
        return WINDOWS[window]
    except KeyError:
        raise ValueError(f"Unknown window: {window}") from None


def within(ts: datetime | None, now: datetime, window: timedelta | None) -> bool:
    if window is None:
        return True
    if ts is None:
        return False
    return now - ts < window


def filter_events(
    events: Iterable[TagEvent],
    now: datetime,
    window: str = "all",
    polarity: Polarity | None = None,
) -> list[TagEvent]:
    delta = window_delta(window)
    return [
        e
        for e in events
        if within(e.created_at, now, delta) and (polarity is None or e.polarity is polarity)
    ]


def percentage(part: int, total: int) -> int:
    """Whole percent rounded half up; 0 for an empty total."""
    if total <= 0:
        return 0
    return math.floor(part * 100 / total + 0.5)


def tag_rollup(events: Sequence[TagEvent], now: datetime) -> dict[str, Any]:
    total = len(events)
    positive = sum(1 for e in events if e.polarity is Polarity.POSITIVE)
    negative = total - positive
    return {
        "total": total,
        "positive": positive,
        "negative": negative,
        "positive_percent": percentage(positive, total),
        "negative_percent": percentage(negative, total),
        "today": sum(1 for e in events if within(e.created_at, now, WINDOWS["today"])),
        "last_7_days": sum(1 for e in events if within(e.created_at, now, WINDOWS["7d"])),
        "last_30_days": sum(1 for e in events if within(e.created_at, now, WINDOWS["30d"])),
        "geo_tagged": sum(1 for e in events if e.coordinate is not None),
    }


def user_rollup(users: Sequence[UserSnapshot], now: datetime) -> dict[str, Any]:
    total = len(users)
    levels = Counter(u.level for u in users)
    if total:
        avg_experience = round(sum(u.experience for u in users) / total, 1)
        avg_level = round(sum(u.level for u in users) / total, 1)
        avg_badges = round(sum(len(u.badges) for u in users) / total, 1)
    else:
        avg_experience = avg_level = avg_badges = 0.0
    return {
        "total": total,
        "new_today": sum(1 for u in users if within(u.created_at, now, WINDOWS["today"])),
        "new_last_7_days": sum(1 for u in users if within(u.created_at, now, WINDOWS["7d"])),
        "new_last_30_days": sum(1 for u in users if within(u.created_at, now, WINDOWS["30d"])),
        "level_distribution": {str(lvl): levels.get(lvl, 0) for lvl in range(1, MAX_LEVEL + 1)},
        "average_experience": avg_experience,
        "average_level": avg_level,
        "average_badges": avg_badges,
    }


def top_jurisdictions(users: Iterable[UserSnapshot], n: int = 5) -> list[dict[str, Any]]:
    """Jurisdictions with the most registered users."""
    counts: dict[str, int] = {}
    for u in users:
        if u.identity is None:
            continue
        counts[u.identity.jurisdiction] = counts.get(u.identity.jurisdiction, 0) + 1
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:n]
    return [{"jurisdiction": j, "users": c} for j, c in ranked]
