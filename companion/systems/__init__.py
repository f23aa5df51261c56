"""
Simulation systems for companion pets.

Each system is a pure function (or stateless class) over pet state.
Persistence, locking and events stay in the manager.
"""

from .mood import classify_mood, mood_info, MOOD_RULES, MOOD_INFO
from .leveling import xp_for_level, level_for_xp, level_progress
from .decay import apply_decay, compute_decay, DECAY_RATES
from .bond import bond_increments, next_bond_level, interactions_until_next_bond
from .interactions import InteractionResolver, lifecycle_result, parse_interaction_type
from .evolution import check_evolution, evolve, missing_requirements

__all__ = [
    # Mood
    "classify_mood",
    "mood_info",
    "MOOD_RULES",
    "MOOD_INFO",
    # Leveling
    "xp_for_level",
    "level_for_xp",
    "level_progress",
    # Decay
    "apply_decay",
    "compute_decay",
    "DECAY_RATES",
    # Bond
    "bond_increments",
    "next_bond_level",
    "interactions_until_next_bond",
    # Interactions
    "InteractionResolver",
    "lifecycle_result",
    "parse_interaction_type",
    # Evolution
    "check_evolution",
    "evolve",
    "missing_requirements",
]
