"""
Bond tracker.

Every 50th lifetime interaction deepens the bond by one level, up to 10.
"""

from __future__ import annotations

from ..state.schema import MAX_BOND_LEVEL

BOND_INTERVAL = 50


def bond_increments(total_interactions_before: int) -> bool:
    """
    Whether the interaction being counted now is a bond milestone.

    Takes the counter *before* this interaction is added, so a count of 49
    means this is the 50th interaction.
    """
    return total_interactions_before % BOND_INTERVAL == BOND_INTERVAL - 1


def next_bond_level(bond_level: int, total_interactions_before: int) -> int:
    """Bond level after one more interaction."""
    if bond_increments(total_interactions_before):
        return min(MAX_BOND_LEVEL, bond_level + 1)
    return bond_level


def interactions_until_next_bond(total_interactions: int, bond_level: int) -> int | None:
    """Interactions left before the next bond level. None once maxed."""
    if bond_level >= MAX_BOND_LEVEL:
        return None
    return BOND_INTERVAL - (total_interactions % BOND_INTERVAL)
