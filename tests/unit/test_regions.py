"""Region clustering tests: first-match priority and per-region polarity split."""

from datetime import datetime, timezone

import pytest

from pellet.analytics.regions import REGIONS, classify, region_breakdown
from pellet.domain import Coordinate, PlateIdentity, Polarity, TagEvent

NOW = datetime(2026, 3, 4, 12, 0, tzinfo=timezone.utc)


def _tag(idx: int, coordinate: Coordinate | None, polarity: Polarity = Polarity.NEGATIVE) -> TagEvent:
    return TagEvent(
        id=f"t{idx}",
        target=PlateIdentity("NY", "XYZ789"),
        creator_id="alice",
        polarity=polarity,
        reason="r",
        created_at=NOW,
        coordinate=coordinate,
    )


class TestClassify:
    @pytest.mark.parametrize(
        ("lat", "lon", "region"),
        [
            (40.71, -74.00, "Northeast"),      # New York
            (41.88, -87.63, "Midwest"),        # Chicago
            (33.75, -84.39, "Southeast"),      # Atlanta
            (39.74, -104.99, "Mountain West"), # Denver
            (34.05, -118.24, "Pacific"),       # Los Angeles
            (61.22, -149.90, "Alaska"),        # Anchorage
            (21.31, -157.86, "Hawaii"),        # Honolulu
        ],
    )
    def test_cities(self, lat, lon, region):
        assert classify(Coordinate(lat, lon)) == region

    def test_overlap_resolves_to_first_region(self):
        # Washington DC sits on the Northeast/Southeast border
        point = Coordinate(38.9, -77.03)
        assert REGIONS[0].contains(point) and REGIONS[1].contains(point)
        assert classify(point) == "Northeast"

    def test_outside_every_box(self):
        assert classify(Coordinate(51.5, -0.12)) is None

    def test_no_coordinate(self):
        assert classify(None) is None


class TestRegionBreakdown:
    def test_counts_and_split(self):
        events = [
            _tag(1, Coordinate(40.71, -74.00), Polarity.POSITIVE),
            _tag(2, Coordinate(42.36, -71.06)),
            _tag(3, None),
            _tag(4, Coordinate(51.5, -0.12)),
        ]
        result = region_breakdown(events)

        northeast = next(r for r in result["regions"] if r["region"] == "Northeast")
        assert northeast == {"region": "Northeast", "total": 2, "positive": 1, "negative": 1}
        assert sum(r["total"] for r in result["regions"]) == 2
        assert result["total_events"] == 4
        assert result["without_location"] == 1
        assert result["unclassified"] == 1

    def test_every_region_reported_in_priority_order(self):
        result = region_breakdown([])
        assert [r["region"] for r in result["regions"]] == [r.name for r in REGIONS]
        assert all(r["total"] == 0 for r in result["regions"])

    def test_sorted_by_total_when_ordered(self):
        events = [
            _tag(1, Coordinate(41.88, -87.63)),
            _tag(2, Coordinate(40.71, -74.00)),
            _tag(3, Coordinate(42.36, -71.06)),
        ]
        names = [r["region"] for r in region_breakdown(events, order="desc")["regions"]]
        assert names[:2] == ["Northeast", "Midwest"]
        # Empty regions keep priority order behind the ranked ones
        assert names[2:] == [r.name for r in REGIONS if r.name not in ("Northeast", "Midwest")]
