"""
Interaction resolver.

Turns one discrete action (feed, play, pet, train) into an
InteractionResult, then merges that result into a pet. Both steps are
pure: the resolver reads a decay-refreshed pet and returns new objects.

Resource-starved actions are not errors. A tired pet still plays (for
less), and a pet too tired to train refuses but is still logged.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from ..errors import InvalidInteractionError
from ..state.schema import (
    CARE_INTERACTIONS,
    COMBAT_MIN,
    COMBAT_STATS,
    VITAL_STATS,
    CombatStat,
    InteractionResult,
    InteractionType,
    Rewards,
    UserPet,
    clamp_vital,
)
from .bond import next_bond_level
from .leveling import level_for_xp


# Base effects per interaction type
FEED_EFFECTS = {"happiness": 5, "energy": 10}
FEED_XP = 15
PREMIUM_FEED_EFFECTS = {"happiness": 10, "energy": 20}
PREMIUM_FEED_XP = 30
FEED_MOOD = 5
FED_HUNGER = 100

PLAY_EFFECTS = {"happiness": 15, "agility": 1}
PLAY_XP = 25
PLAY_COINS = 5
PLAY_MOOD = 10
PLAY_ENERGY_COST = 15
# Below this energy, play still happens but pays out less
TIRED_ENERGY = 20
TIRED_PLAY_HAPPINESS = 5
TIRED_PLAY_MOOD = 2

PET_EFFECTS = {"happiness": 8, "charisma": 0.5}
PET_XP = 10
PET_MOOD = 8

TRAIN_STAT_GAIN = 2
TRAIN_HAPPINESS_COST = -5
TRAIN_XP = 40
TRAIN_MOOD = -3
TRAIN_ENERGY_COST = 20
TRAIN_MIN_ENERGY = 30
TRAIN_REFUSED_MOOD = -5

PREMIUM_FOOD = "premium"

Resolver = Callable[[UserPet, dict], InteractionResult]


def parse_interaction_type(value: InteractionType | str) -> InteractionType:
    try:
        return InteractionType(value)
    except ValueError:
        valid = ", ".join(t.value for t in InteractionType)
        raise InvalidInteractionError(
            f"Unknown interaction type: {value!r} (expected one of: {valid})"
        ) from None


def lifecycle_result(
    interaction_type: InteractionType,
    details: dict | None = None,
) -> InteractionResult:
    """Zero-effect result used to log adopt / evolve / release."""
    return InteractionResult(
        interaction_type=interaction_type,
        details=details or {},
    )


class InteractionResolver:
    """
    Resolves care interactions against a pet.

    resolve() computes what an action would do; apply() merges a result
    into a pet and advances XP, level, bond and timestamps.
    """

    def __init__(self):
        self._resolvers: dict[InteractionType, Resolver] = {
            InteractionType.FEED: self._resolve_feed,
            InteractionType.PLAY: self._resolve_play,
            InteractionType.PET: self._resolve_pet,
            InteractionType.TRAIN: self._resolve_train,
        }

    def resolve(
        self,
        pet: UserPet,
        interaction_type: InteractionType | str,
        params: dict | None = None,
    ) -> InteractionResult:
        """
        Compute the effect of one interaction on an already-refreshed pet.

        Args:
            pet: Pet state with decay applied
            interaction_type: feed, play, pet or train
            params: Type-specific options (food_type, activity_type, stat)

        Raises:
            InvalidInteractionError: Unknown type, lifecycle type, or bad params
        """
        itype = parse_interaction_type(interaction_type)
        if itype not in CARE_INTERACTIONS:
            raise InvalidInteractionError(
                f"'{itype.value}' is a lifecycle event and can't be resolved directly"
            )
        return self._resolvers[itype](pet, params or {})

    # ─── Per-type rules ──────────────────────────────────────────

    def _resolve_feed(self, pet: UserPet, params: dict) -> InteractionResult:
        food_type = params.get("food_type")
        premium = food_type == PREMIUM_FOOD

        return InteractionResult(
            interaction_type=InteractionType.FEED,
            stat_changes=dict(PREMIUM_FEED_EFFECTS if premium else FEED_EFFECTS),
            stat_sets={"hunger": FED_HUNGER},
            rewards=Rewards(xp=PREMIUM_FEED_XP if premium else FEED_XP),
            mood_effect=FEED_MOOD,
            details={"food_type": food_type} if food_type else {},
        )

    def _resolve_play(self, pet: UserPet, params: dict) -> InteractionResult:
        stat_changes = dict(PLAY_EFFECTS)
        mood_effect = PLAY_MOOD
        details: dict = {}

        if pet.energy < TIRED_ENERGY:
            stat_changes["happiness"] = TIRED_PLAY_HAPPINESS
            mood_effect = TIRED_PLAY_MOOD
            details["tired"] = True

        activity = params.get("activity_type")
        if activity:
            details["activity_type"] = activity

        return InteractionResult(
            interaction_type=InteractionType.PLAY,
            stat_changes=stat_changes,
            rewards=Rewards(xp=PLAY_XP, coins=PLAY_COINS),
            mood_effect=mood_effect,
            energy_cost=PLAY_ENERGY_COST,
            details=details,
        )

    def _resolve_pet(self, pet: UserPet, params: dict) -> InteractionResult:
        return InteractionResult(
            interaction_type=InteractionType.PET,
            stat_changes=dict(PET_EFFECTS),
            rewards=Rewards(xp=PET_XP),
            mood_effect=PET_MOOD,
        )

    def _resolve_train(self, pet: UserPet, params: dict) -> InteractionResult:
        raw_stat = params.get("stat")
        if raw_stat is None:
            raise InvalidInteractionError("train requires a 'stat' parameter")
        try:
            stat = CombatStat(raw_stat)
        except ValueError:
            raise InvalidInteractionError(
                f"Can't train {raw_stat!r}: expected one of {', '.join(COMBAT_STATS)}"
            ) from None

        if pet.energy < TRAIN_MIN_ENERGY:
            # Refusal grants nothing but still costs happiness
            return InteractionResult(
                interaction_type=InteractionType.TRAIN,
                penalties={"happiness": TRAIN_HAPPINESS_COST},
                rewards=Rewards(xp=0),
                mood_effect=TRAIN_REFUSED_MOOD,
                refused=True,
                reason=f"Too tired to train (energy {pet.energy}/{TRAIN_MIN_ENERGY})",
                details={"stat": stat.value},
            )

        return InteractionResult(
            interaction_type=InteractionType.TRAIN,
            stat_changes={stat.value: TRAIN_STAT_GAIN, "happiness": TRAIN_HAPPINESS_COST},
            rewards=Rewards(xp=TRAIN_XP),
            mood_effect=TRAIN_MOOD,
            energy_cost=TRAIN_ENERGY_COST,
            details={"stat": stat.value},
        )

    # ─── Merge ───────────────────────────────────────────────────

    def apply(self, pet: UserPet, result: InteractionResult, now: datetime) -> UserPet:
        """
        Merge a resolved interaction into a copy of `pet`.

        Order: deltas and penalties, absolute sets, energy cost, then XP,
        level, bond and counters. Vitals clamp to [0, 100]; combat stats
        never drop below 1. Level never decreases.
        """
        vitals = pet.vitals()
        combat = pet.stats.model_dump()

        for changes in (result.stat_changes, result.penalties):
            for stat, delta in changes.items():
                if stat in VITAL_STATS:
                    vitals[stat] = clamp_vital(vitals[stat] + delta)
                elif stat in COMBAT_STATS:
                    combat[stat] = max(COMBAT_MIN, combat[stat] + delta)

        for stat, value in result.stat_sets.items():
            if stat in VITAL_STATS:
                vitals[stat] = clamp_vital(value)

        if result.energy_cost:
            vitals["energy"] = clamp_vital(vitals["energy"] - result.energy_cost)

        new_xp = pet.experience_points + result.rewards.xp
        updates: dict = {
            **vitals,
            "stats": pet.stats.model_copy(update=combat),
            "experience_points": new_xp,
            "level": max(pet.level, level_for_xp(new_xp)),
            "bond_level": next_bond_level(pet.bond_level, pet.total_interactions),
            "total_interactions": pet.total_interactions + 1,
            "last_interaction_at": now,
        }
        if result.interaction_type == InteractionType.FEED:
            updates["last_fed_at"] = now
        elif result.interaction_type == InteractionType.PLAY:
            updates["last_played_at"] = now

        return pet.model_copy(update=updates, deep=True)
