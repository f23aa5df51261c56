"""
Evolution gate.

Each pet walks its species' evolution chain one stage at a time. The gate
checks the next stage's level, happiness and item requirements and, when
refusing, says exactly what is still missing. Evolution never reverses
and never skips a stage.
"""

from __future__ import annotations

import math
from typing import Iterable

from ..errors import EvolutionError
from ..state.schema import (
    COMBAT_MIN,
    COMBAT_STATS,
    VITAL_MAX,
    EvolutionCheck,
    EvolutionStage,
    PetSpecies,
    UserPet,
)

EVOLVED_HAPPINESS = VITAL_MAX


def stage_title(stage: EvolutionStage) -> str:
    return f"{stage.stage_name} Form"


def missing_requirements(
    pet: UserPet,
    stage: EvolutionStage,
    items: Iterable[str] = (),
) -> list[str]:
    """Human-readable list of unmet requirements for `stage`. Empty when met."""
    req = stage.requirements
    owned = set(items)
    missing = []

    if pet.level < req.level:
        missing.append(f"Reach level {req.level}")
    if pet.happiness < req.happiness:
        missing.append(f"Achieve {req.happiness}% happiness")
    for item in req.items:
        if item not in owned:
            missing.append(f"Obtain item: {item}")

    return missing


def check_evolution(
    pet: UserPet,
    species: PetSpecies,
    items: Iterable[str] = (),
) -> EvolutionCheck:
    """
    Whether `pet` can move to its next stage.

    Args:
        pet: Decay-refreshed pet
        species: Catalog entry supplying the stage table
        items: Item keys the owner currently holds
    """
    current = pet.current_evolution_stage
    next_stage = species.next_stage(current)

    if next_stage is None:
        return EvolutionCheck(
            can_evolve=False,
            current_stage=current,
            max_stage_reached=True,
        )

    missing = missing_requirements(pet, next_stage, items)
    return EvolutionCheck(
        can_evolve=not missing,
        current_stage=current,
        next_stage=next_stage,
        missing_requirements=missing,
    )


def evolve(
    pet: UserPet,
    species: PetSpecies,
    items: Iterable[str] = (),
) -> UserPet:
    """
    Advance `pet` exactly one stage. Returns a new pet.

    Combat stats are multiplied by the stage multiplier and floored,
    happiness resets to 100 and the stage title is earned.

    Raises:
        EvolutionError: Requirements unmet or already at max stage
    """
    check = check_evolution(pet, species, items)
    if not check.can_evolve or check.next_stage is None:
        raise EvolutionError(pet.id, check.missing_requirements)

    stage = check.next_stage
    combat = {
        stat: max(COMBAT_MIN, math.floor(getattr(pet.stats, stat) * stage.stat_multiplier))
        for stat in COMBAT_STATS
    }

    return pet.model_copy(
        update={
            "stats": pet.stats.model_copy(update=combat),
            "happiness": EVOLVED_HAPPINESS,
            "titles_earned": [*pet.titles_earned, stage_title(stage)],
            "current_evolution_stage": pet.current_evolution_stage + 1,
        },
        deep=True,
    )
