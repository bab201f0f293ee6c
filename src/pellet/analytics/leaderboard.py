"""Leaderboards: tag counts per target plate and experience per user.

Sorting is stable in both directions, so ties keep first-seen (plates)
or roster (users) order.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pellet.domain import Polarity, TagEvent, UserSnapshot

SORT_ORDERS = ("asc", "desc")


def check_order(order: str) -> bool:
    if order not in SORT_ORDERS:
        raise ValueError(f"Unknown sort order: {order}")
    return order == "desc"


def plate_leaderboard(
    events: Iterable[TagEvent],
    polarity: Polarity | None = None,
    order: str = "desc",
    limit: int | None = None,
) -> list[dict[str, Any]]:
    """Group tag events by target plate and rank by count."""
    descending = check_order(order)
    groups: dict[str, dict[str, Any]] = {}
    for event in events:
        if polarity is not None and event.polarity is not polarity:
            continue
        key = event.target.key
        group = groups.get(key)
        if group is None:
            group = {
                "plate": key,
                "jurisdiction": event.target.jurisdiction,
                "count": 0,
                "target_user_id": event.target_user_id,
            }
            groups[key] = group
        group["count"] += 1
        if group["target_user_id"] is None:
            group["target_user_id"] = event.target_user_id

    ranked = sorted(groups.values(), key=lambda g: g["count"], reverse=descending)
    if limit is not None:
        ranked = ranked[:limit]
    for idx, entry in enumerate(ranked):
        entry["rank"] = idx + 1
    return ranked


def experience_leaderboard(
    users: Iterable[UserSnapshot],
    order: str = "desc",
    limit: int | None = None,
) -> list[dict[str, Any]]:
    """Rank users by cumulative experience."""
    descending = check_order(order)
    ranked = sorted(users, key=lambda u: u.experience, reverse=descending)
    if limit is not None:
        ranked = ranked[:limit]
    return [
        {
            "rank": idx + 1,
            "user_id": u.id,
            "display_name": u.display_name,
            "experience": u.experience,
            "level": u.level,
        }
        for idx, u in enumerate(ranked)
    ]
