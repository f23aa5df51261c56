"""
Decay calculator.

Vital stats drift while a pet is left alone. Drift is computed lazily from
the time since the last interaction instead of by a background ticker, so
the function is pure: same stored pet, same `now`, same snapshot. Safe to
call redundantly from concurrent readers.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from ..state.schema import UserPet, clamp_vital

# Per-hour drift applied to each vital
DECAY_RATES: dict[str, int] = {
    "happiness": -2,
    "energy": -1,
    "hunger": -3,
    "hygiene": -1,
}

DEBOUNCE = timedelta(minutes=30)
MAX_DECAY_HOURS = 24.0

# Long idle periods count as rest
REST_THRESHOLD_HOURS = 8.0
REST_ENERGY_RECOVERY = 20


def elapsed_hours(since: datetime, now: datetime) -> float:
    """Hours between two timestamps. Clock skew backwards counts as zero."""
    seconds = (now - since).total_seconds()
    return max(0.0, seconds / 3600)


def compute_decay(pet: UserPet, now: datetime) -> dict:
    """
    New values for the vitals that changed, keyed by stat name.

    Drift is applied in whole points; the fractional part of each stat's
    drift is returned under "decay_remainder" and folded into the next
    refresh, so frequent interactions don't erase slow drift.

    Empty when less than the debounce window has passed.
    """
    hours = elapsed_hours(pet.last_interaction_at, now)
    if hours * 3600 < DEBOUNCE.total_seconds():
        return {}

    effective_hours = min(hours, MAX_DECAY_HOURS)
    updates: dict = {}
    remainder: dict[str, float] = {}
    for stat, rate in DECAY_RATES.items():
        total = rate * effective_hours + pet.decay_remainder.get(stat, 0.0)
        drift = int(total)  # Truncates toward zero
        updates[stat] = clamp_vital(getattr(pet, stat) + drift)
        remainder[stat] = total - drift

    if hours > REST_THRESHOLD_HOURS:
        updates["energy"] = clamp_vital(pet.energy + REST_ENERGY_RECOVERY)
        remainder["energy"] = 0.0

    updates["decay_remainder"] = remainder
    return updates


def apply_decay(pet: UserPet, now: datetime) -> UserPet:
    """
    Refreshed copy of `pet` as of `now`. The input is never mutated.

    last_interaction_at is left alone; the caller moves it when an
    interaction is persisted, so drift is never counted twice.
    """
    updates = compute_decay(pet, now)
    return pet.model_copy(update=updates, deep=True)
