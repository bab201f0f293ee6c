"""Coarse geographic bucketing of tag coordinates.

Boxes overlap along shared borders and in a few corners. Classification
is first-match in REGIONS order, never "most specific".
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from pellet.analytics.leaderboard import check_order
from pellet.domain import Coordinate, Polarity, TagEvent


@dataclass(frozen=True)
class Region:
    name: str
    south: float
    north: float
    west: float
    east: float

    def contains(self, point: Coordinate) -> bool:
        return (
            self.south <= point.latitude <= self.north
            and self.west <= point.longitude <= self.east
        )


# Priority order matters
REGIONS: tuple[Region, ...] = (
    Region("Northeast", south=38.9, north=47.5, west=-80.6, east=-66.9),
    Region("Southeast", south=24.4, north=38.9, west=-91.7, east=-75.0),
    Region("Midwest", south=36.0, north=49.4, west=-104.1, east=-80.5),
    Region("Southwest", south=25.8, north=37.0, west=-114.8, east=-88.8),
    Region("Mountain West", south=31.3, north=49.0, west=-117.0, east=-104.0),
    Region("Pacific", south=32.5, north=49.0, west=-124.8, east=-114.1),
    Region("Alaska", south=51.2, north=71.5, west=-179.2, east=-129.9),
    Region("Hawaii", south=18.9, north=22.3, west=-160.3, east=-154.8),
)


def classify(point: Coordinate | None, regions: Iterable[Region] = REGIONS) -> str | None:
    """Name of the first region containing point, or None."""
    if point is None:
        return None
    for region in regions:
        if region.contains(point):
            return region.name
    return None


def region_breakdown(
    events: Iterable[TagEvent],
    regions: tuple[Region, ...] = REGIONS,
    order: str | None = None,
) -> dict:
    """Per-region totals with the positive/negative split.

    Regions are listed in priority order unless an order is given, in which
    case they are sorted by total.

    Events without a coordinate, or outside every box, are counted in
    'unclassified' / 'without_location' but in no region.
    """
    counts = {r.name: {"region": r.name, "total": 0, "positive": 0, "negative": 0} for r in regions}
    without_location = 0
    unclassified = 0
    total = 0

    for event in events:
        total += 1
        if event.coordinate is None:
            without_location += 1
            continue
        name = classify(event.coordinate, regions)
        if name is None:
            unclassified += 1
            continue
        bucket = counts[name]
        bucket["total"] += 1
        if event.polarity is Polarity.POSITIVE:
            bucket["positive"] += 1
        else:
            bucket["negative"] += 1

    rows = list(counts.values())
    if order is not None:
        rows.sort(key=lambda r: r["total"], reverse=check_order(order))

    return {
        "regions": rows,
        "total_events": total,
        "without_location": without_location,
        "unclassified": unclassified,
    }
