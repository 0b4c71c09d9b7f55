"""Tests for level thresholds."""

from app.services.level_resolver import (
    LEVEL_THRESHOLDS,
    MAX_LEVEL,
    level_progress,
    points_for_level,
    resolve_level,
)


class TestResolveLevel:
    """Cumulative points -> level 1..10."""

    def test_zero_points_is_level_one(self):
        assert resolve_level(0) == 1

    def test_threshold_ladder_doubles(self):
        assert LEVEL_THRESHOLDS[0] == 200
        for lower, upper in zip(LEVEL_THRESHOLDS, LEVEL_THRESHOLDS[1:]):
            assert upper == lower * 2
        assert len(LEVEL_THRESHOLDS) == MAX_LEVEL - 1

    def test_boundaries(self):
        """A threshold must be exceeded, not just reached."""
        assert resolve_level(199) == 1
        assert resolve_level(200) == 1
        assert resolve_level(201) == 2
        assert resolve_level(210) == 2
        assert resolve_level(400) == 2
        assert resolve_level(401) == 3
        assert resolve_level(25600) == 8
        assert resolve_level(25601) == 9
        assert resolve_level(51200) == 9
        assert resolve_level(51201) == 10

    def test_huge_points_stay_at_max(self):
        assert resolve_level(10**12) == MAX_LEVEL

    def test_negative_treated_as_zero(self):
        assert resolve_level(-50) == 1

    def test_monotonic(self):
        """Level never decreases as points grow."""
        previous = resolve_level(0)
        for points in range(0, 60000, 37):
            level = resolve_level(points)
            assert 1 <= level <= MAX_LEVEL
            assert level >= previous
            previous = level


class TestLevelProgress:
    """Display helpers."""

    def test_points_for_level(self):
        assert points_for_level(1) == 0
        assert points_for_level(2) == 200
        assert points_for_level(10) == 51200
        assert points_for_level(99) == 51200

    def test_progress_midway(self):
        info = level_progress(300)
        assert info["level"] == 2
        assert info["next_level_points"] == 400
        assert info["progress_percent"] == 50

    def test_progress_at_max_level(self):
        info = level_progress(10**6)
        assert info["level"] == MAX_LEVEL
        assert info["next_level_points"] is None
        assert info["progress_percent"] == 100

    def test_progress_on_threshold_is_not_complete(self):
        """Sitting exactly on a threshold is still the lower level."""
        info = level_progress(200)
        assert info["level"] == 1
        assert info["next_level_points"] == 200
        assert info["progress_percent"] == 99
