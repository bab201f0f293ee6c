"""Level computation tests: must match the mobile client's level table exactly."""

import pytest

from pellet.gamification.level_thresholds import LEVEL_THRESHOLDS, MAX_LEVEL, compute_level, level_for


class TestLevelFor:
    def test_level_1_at_zero(self):
        assert level_for(0) == 1

    def test_boundary_99_is_level_1(self):
        assert level_for(99) == 1

    def test_level_2_at_100(self):
        assert level_for(100) == 2

    @pytest.mark.parametrize("level", range(1, MAX_LEVEL + 1))
    def test_each_threshold_starts_its_level(self, level):
        assert level_for(LEVEL_THRESHOLDS[level - 1]) == level

    def test_saturates_at_max_level(self):
        assert level_for(75000) == MAX_LEVEL
        assert level_for(10_000_000) == MAX_LEVEL

    def test_monotonic(self):
        levels = [level_for(x) for x in range(0, 80000, 50)]
        assert levels == sorted(levels)


class TestComputeLevel:
    def test_progress_into_level(self):
        result = compute_level(150)  # 50 into level 2 (100..250)
        assert result["level"] == 2
        assert result["exp_into_level"] == 50
        assert result["exp_for_level"] == 150
        assert result["next_level"] == 3
        assert result["next_threshold"] == 250
        assert result["progress"] == 33

    def test_exactly_at_boundary(self):
        result = compute_level(1000)
        assert result["level"] == 5
        assert result["exp_into_level"] == 0
        assert result["progress"] == 0

    def test_max_level_is_full(self):
        result = compute_level(90000)
        assert result["level"] == MAX_LEVEL
        assert result["exp_for_level"] == 0
        assert result["next_level"] == MAX_LEVEL
        assert result["progress"] == 100
