"""Top-N rankings: most active taggers and most common reasons."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pellet.analytics.leaderboard import check_order
from pellet.domain import Polarity, TagEvent, UserSnapshot

UNKNOWN_REASON = "Unknown"


def top_taggers(
    events: Iterable[TagEvent],
    users: Iterable[UserSnapshot],
    n: int = 5,
    order: str = "desc",
) -> list[dict[str, Any]]:
    """Creators ranked by tag count. Ties keep the order creators first appear."""
    descending = check_order(order)
    names = {u.id: u.display_name for u in users}
    counts: dict[str, dict[str, Any]] = {}
    for event in events:
        row = counts.get(event.creator_id)
        if row is None:
            row = {
                "user_id": event.creator_id,
                "display_name": names.get(event.creator_id, "Unknown"),
                "count": 0,
                "positive": 0,
                "negative": 0,
            }
            counts[event.creator_id] = row
        row["count"] += 1
        if event.polarity is Polarity.POSITIVE:
            row["positive"] += 1
        else:
            row["negative"] += 1

    ranked = sorted(counts.values(), key=lambda r: r["count"], reverse=descending)[:n]
    for idx, row in enumerate(ranked):
        row["rank"] = idx + 1
    return ranked


def top_reasons(events: Iterable[TagEvent], n: int = 5, order: str = "desc") -> list[dict[str, Any]]:
    """Reasons ranked by frequency, grouped by exact text after trimming."""
    descending = check_order(order)
    counts: dict[str, int] = {}
    for event in events:
        reason = (event.reason or "").strip() or UNKNOWN_REASON
        counts[reason] = counts.get(reason, 0) + 1

    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=descending)[:n]
    return [{"rank": idx + 1, "reason": reason, "count": count} for idx, (reason, count) in enumerate(ranked)]
