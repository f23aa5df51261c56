"""Tests for the leveling curve."""

import pytest

from companion.systems.leveling import (
    cumulative_xp_for_level,
    level_for_xp,
    level_progress,
    xp_for_level,
)


class TestXpForLevel:

    @pytest.mark.parametrize("level,xp", [
        (1, 100),
        (2, 282),
        (3, 519),
        (4, 800),
        (5, 1118),
    ])
    def test_curve(self, level, xp):
        assert xp_for_level(level) == xp

    def test_rejects_level_zero(self):
        with pytest.raises(ValueError):
            xp_for_level(0)


class TestLevelForXp:

    def test_zero_xp_is_level_one(self):
        assert level_for_xp(0) == 1

    def test_thresholds_are_inclusive(self):
        assert level_for_xp(99) == 1
        assert level_for_xp(100) == 2
        assert level_for_xp(381) == 2
        assert level_for_xp(382) == 3

    def test_mid_curve(self):
        # 100 + 282 + 519 + 800 = 1701 reaches level 5; level 6 needs 2819
        assert level_for_xp(2500) == 5
        assert level_for_xp(2819) == 6

    def test_monotone(self):
        levels = [level_for_xp(xp) for xp in range(0, 6000, 37)]
        assert levels == sorted(levels)


class TestProgress:

    def test_cumulative(self):
        assert cumulative_xp_for_level(1) == 0
        assert cumulative_xp_for_level(3) == 382

    def test_progress_inside_level(self):
        progress = level_progress(150)
        assert progress == {
            "level": 2,
            "xp_into_level": 50,
            "xp_to_next": 232,
            "xp_for_level": 282,
        }
