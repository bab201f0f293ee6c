"""Scalar rollup tests: percentages, rolling windows, user aggregates."""

from datetime import datetime, timedelta, timezone

import pytest

from pellet.analytics.rollups import (
    filter_events,
    percentage,
    tag_rollup,
    top_jurisdictions,
    user_rollup,
)
from pellet.domain import Coordinate, PlateIdentity, Polarity, TagEvent, UserSnapshot

NOW = datetime(2026, 3, 4, 12, 0, tzinfo=timezone.utc)


def _tag(idx: int, age: timedelta, polarity: Polarity = Polarity.NEGATIVE, coordinate=None) -> TagEvent:
    return TagEvent(
        id=f"t{idx}",
        target=PlateIdentity("NY", "XYZ789"),
        creator_id="alice",
        polarity=polarity,
        reason="r",
        created_at=NOW - age,
        coordinate=coordinate,
    )


EVENTS = [
    _tag(1, timedelta(hours=1), Polarity.POSITIVE, Coordinate(40.7, -74.0)),
    _tag(2, timedelta(hours=30)),
    _tag(3, timedelta(days=10)),
    _tag(4, timedelta(days=45), Polarity.POSITIVE),
]


class TestPercentage:
    @pytest.mark.parametrize(
        ("part", "total", "expected"),
        [(1, 3, 33), (2, 3, 67), (1, 2, 50), (1, 8, 13), (0, 5, 0), (5, 5, 100), (0, 0, 0)],
    )
    def test_rounding(self, part, total, expected):
        assert percentage(part, total) == expected


class TestFilterEvents:
    def test_windows(self):
        assert [e.id for e in filter_events(EVENTS, NOW, "today")] == ["t1"]
        assert [e.id for e in filter_events(EVENTS, NOW, "7d")] == ["t1", "t2"]
        assert [e.id for e in filter_events(EVENTS, NOW, "30d")] == ["t1", "t2", "t3"]
        assert len(filter_events(EVENTS, NOW, "all")) == 4

    def test_window_boundary_is_exclusive(self):
        exactly_a_day = [_tag(9, timedelta(days=1))]
        assert filter_events(exactly_a_day, NOW, "today") == []

    def test_polarity(self):
        assert [e.id for e in filter_events(EVENTS, NOW, polarity=Polarity.POSITIVE)] == ["t1", "t4"]

    def test_unknown_window(self):
        with pytest.raises(ValueError):
            filter_events(EVENTS, NOW, "fortnight")


class TestTagRollup:
    def test_counts(self):
        rollup = tag_rollup(EVENTS, NOW)
        assert rollup == {
            "total": 4,
            "positive": 2,
            "negative": 2,
            "positive_percent": 50,
            "negative_percent": 50,
            "today": 1,
            "last_7_days": 2,
            "last_30_days": 3,
            "geo_tagged": 1,
        }

    def test_empty(self):
        rollup = tag_rollup([], NOW)
        assert rollup["total"] == 0
        assert rollup["positive_percent"] == 0


class TestUserRollup:
    def test_aggregates(self):
        users = [
            UserSnapshot(id="a", display_name="A", experience=150, level=2, created_at=NOW - timedelta(hours=2),
                         badges=frozenset({"first-tag", "rookie-reporter"})),
            UserSnapshot(id="b", display_name="B", experience=0, level=1, created_at=NOW - timedelta(days=20)),
        ]
        rollup = user_rollup(users, NOW)
        assert rollup["total"] == 2
        assert rollup["new_today"] == 1
        assert rollup["new_last_7_days"] == 1
        assert rollup["new_last_30_days"] == 2
        assert rollup["level_distribution"]["1"] == 1
        assert rollup["level_distribution"]["2"] == 1
        assert rollup["level_distribution"]["15"] == 0
        assert rollup["average_experience"] == 75.0
        assert rollup["average_level"] == 1.5
        assert rollup["average_badges"] == 1.0

    def test_no_users(self):
        rollup = user_rollup([], NOW)
        assert rollup["total"] == 0
        assert rollup["average_experience"] == 0.0


def test_top_jurisdictions():
    users = [
        UserSnapshot(id="a", display_name="A", identity=PlateIdentity("CA", "AAA111")),
        UserSnapshot(id="b", display_name="B", identity=PlateIdentity("NY", "BBB222")),
        UserSnapshot(id="c", display_name="C", identity=PlateIdentity("CA", "CCC333")),
        UserSnapshot(id="d", display_name="D"),
    ]
    assert top_jurisdictions(users) == [
        {"jurisdiction": "CA", "users": 2},
        {"jurisdiction": "NY", "users": 1},
    ]
