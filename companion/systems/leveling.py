"""
Leveling engine.

Clearing level L costs floor(100 * L^1.5) XP. Level is a pure,
non-decreasing function of lifetime XP, with level_for_xp(0) == 1.
"""

from __future__ import annotations

import math

BASE_XP = 100
XP_EXPONENT = 1.5


def xp_for_level(level: int) -> int:
    """XP needed to clear `level` and reach the next one."""
    if level < 1:
        raise ValueError(f"Level must be >= 1, got {level}")
    return math.floor(BASE_XP * level ** XP_EXPONENT)


def level_for_xp(xp: int) -> int:
    """Walk the cumulative thresholds from level 1 upwards."""
    level = 1
    cumulative = 0
    required = xp_for_level(level)

    while xp >= cumulative + required:
        cumulative += required
        level += 1
        required = xp_for_level(level)

    return level


def cumulative_xp_for_level(level: int) -> int:
    """Total lifetime XP at which `level` is first reached."""
    return sum(xp_for_level(lvl) for lvl in range(1, level))


def level_progress(xp: int) -> dict[str, int]:
    """
    Where a pet sits inside its current level.

    Returns:
        Dict with level, xp_into_level, xp_to_next and xp_for_level.
    """
    level = level_for_xp(xp)
    into_level = xp - cumulative_xp_for_level(level)
    needed = xp_for_level(level)
    return {
        "level": level,
        "xp_into_level": into_level,
        "xp_to_next": needed - into_level,
        "xp_for_level": needed,
    }
