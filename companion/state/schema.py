"""
Pydantic models for companion pet state.

Catalog records (PetSpecies, EvolutionStage) are read-only data.
UserPet is the mutable per-adoption record; InteractionRecord is the
append-only log entry. Designed to serialize to JSON but structured like
database rows.
"""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class Rarity(str, Enum):
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"
    MYTHIC = "mythic"


class Mood(str, Enum):
    """Derived classification of a pet's vital stats."""
    ECSTATIC = "ecstatic"
    HAPPY = "happy"
    CONTENT = "content"
    NEUTRAL = "neutral"
    BORED = "bored"
    TIRED = "tired"
    HUNGRY = "hungry"
    SAD = "sad"
    SICK = "sick"


class InteractionType(str, Enum):
    FEED = "feed"
    PLAY = "play"
    PET = "pet"
    TRAIN = "train"
    # Lifecycle markers, zero stat effect
    ADOPT = "adopt"
    EVOLVE = "evolve"
    RELEASE = "release"


# Types a caller can resolve; the rest are written by the engine itself
CARE_INTERACTIONS: frozenset[InteractionType] = frozenset({
    InteractionType.FEED,
    InteractionType.PLAY,
    InteractionType.PET,
    InteractionType.TRAIN,
})


class CombatStat(str, Enum):
    INTELLIGENCE = "intelligence"
    STRENGTH = "strength"
    AGILITY = "agility"
    CHARISMA = "charisma"
    LUCK = "luck"


VITAL_STATS: tuple[str, ...] = ("happiness", "energy", "hunger", "hygiene", "health")
COMBAT_STATS: tuple[str, ...] = tuple(s.value for s in CombatStat)

VITAL_MIN = 0
VITAL_MAX = 100
COMBAT_MIN = 1
MAX_BOND_LEVEL = 10


def generate_id() -> str:
    return str(uuid4())[:8]


def clamp_vital(value: float) -> int:
    """Clamp a vital stat into [0, 100] as an integer."""
    return int(max(VITAL_MIN, min(VITAL_MAX, value)))


# -----------------------------------------------------------------------------
# Catalog Models (read-only)
# -----------------------------------------------------------------------------

class BaseStats(BaseModel):
    """Species baseline. Missing catalog values fall back to these defaults."""
    happiness: int = Field(default=50, ge=VITAL_MIN, le=VITAL_MAX)
    energy: int = Field(default=100, ge=VITAL_MIN, le=VITAL_MAX)
    hunger: int = Field(default=100, ge=VITAL_MIN, le=VITAL_MAX)
    hygiene: int = Field(default=100, ge=VITAL_MIN, le=VITAL_MAX)
    health: int = Field(default=100, ge=VITAL_MIN, le=VITAL_MAX)

    intelligence: float = Field(default=10, ge=COMBAT_MIN)
    strength: float = Field(default=10, ge=COMBAT_MIN)
    agility: float = Field(default=10, ge=COMBAT_MIN)
    charisma: float = Field(default=10, ge=COMBAT_MIN)
    luck: float = Field(default=10, ge=COMBAT_MIN)


class EvolutionRequirements(BaseModel):
    level: int = Field(default=1, ge=1)
    happiness: int = Field(default=0, ge=VITAL_MIN, le=VITAL_MAX)
    items: list[str] = Field(default_factory=list)


class EvolutionStage(BaseModel):
    """One step of a species' evolution chain."""
    model_config = ConfigDict(frozen=True)

    stage_number: int = Field(ge=1)
    stage_name: str
    description: str | None = None
    stat_multiplier: float = Field(default=1.0, gt=0)
    requirements: EvolutionRequirements = Field(default_factory=EvolutionRequirements)
    visual_changes: dict = Field(default_factory=dict)  # Opaque to the engine


class PetSpecies(BaseModel):
    """
    Catalog entry for an adoptable species.

    Species differences are pure data: stat baselines and stage tables.
    The engine never subclasses per species.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    species_key: str
    display_name: str
    description: str | None = None
    lore: str | None = None
    rarity: Rarity = Rarity.COMMON
    element: str | None = None
    habitat: str | None = None
    base_stats: BaseStats = Field(default_factory=BaseStats)
    evolution_chain: list[EvolutionStage] = Field(default_factory=list)
    abilities: list[str] = Field(default_factory=list)
    is_available: bool = True
    is_limited_edition: bool = False

    @field_validator("evolution_chain")
    @classmethod
    def _stages_contiguous(cls, chain: list[EvolutionStage]) -> list[EvolutionStage]:
        chain = sorted(chain, key=lambda s: s.stage_number)
        numbers = [s.stage_number for s in chain]
        if numbers and numbers != list(range(1, len(numbers) + 1)):
            raise ValueError(
                f"Evolution stages must be numbered 1..N without gaps, got {numbers}"
            )
        return chain

    @property
    def max_stage(self) -> int:
        """Highest reachable stage. A species without a chain stays at stage 1."""
        if not self.evolution_chain:
            return 1
        return self.evolution_chain[-1].stage_number

    def get_stage(self, stage_number: int) -> EvolutionStage | None:
        for stage in self.evolution_chain:
            if stage.stage_number == stage_number:
                return stage
        return None

    def next_stage(self, current: int) -> EvolutionStage | None:
        """The stage directly after `current`, or None at max stage."""
        return self.get_stage(current + 1)


# -----------------------------------------------------------------------------
# Pet State
# -----------------------------------------------------------------------------

class CombatStats(BaseModel):
    """Combat stats. Bounded below by 1, unbounded above."""
    intelligence: float = Field(default=10, ge=COMBAT_MIN)
    strength: float = Field(default=10, ge=COMBAT_MIN)
    agility: float = Field(default=10, ge=COMBAT_MIN)
    charisma: float = Field(default=10, ge=COMBAT_MIN)
    luck: float = Field(default=10, ge=COMBAT_MIN)

    def get(self, stat: CombatStat | str) -> float:
        return getattr(self, CombatStat(stat).value)


class UserPet(BaseModel):
    """
    A user's adopted companion.

    `mood` is computed from the vital stats on every access and serialized
    for readers; it has no setter and is ignored on load.
    """
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=generate_id)
    user_id: str
    species_id: str
    custom_name: str | None = None
    nickname: str | None = None

    # Level & evolution
    level: int = Field(default=1, ge=1)
    experience_points: int = Field(default=0, ge=0)
    current_evolution_stage: int = Field(default=1, ge=1)

    # Vital stats
    happiness: int = Field(default=50, ge=VITAL_MIN, le=VITAL_MAX)
    energy: int = Field(default=100, ge=VITAL_MIN, le=VITAL_MAX)
    hunger: int = Field(default=100, ge=VITAL_MIN, le=VITAL_MAX)
    hygiene: int = Field(default=100, ge=VITAL_MIN, le=VITAL_MAX)
    health: int = Field(default=100, ge=VITAL_MIN, le=VITAL_MAX)

    stats: CombatStats = Field(default_factory=CombatStats)
    personality_traits: list[str] = Field(default_factory=list)

    # Relationship
    bond_level: int = Field(default=0, ge=0, le=MAX_BOND_LEVEL)
    total_interactions: int = Field(default=0, ge=0)
    favorite_activity: str | None = None
    favorite_food: str | None = None

    # Milestones
    titles_earned: list[str] = Field(default_factory=list)
    active_title: str | None = None

    # Timestamps
    born_at: datetime = Field(default_factory=datetime.now)
    last_fed_at: datetime = Field(default_factory=datetime.now)
    last_played_at: datetime = Field(default_factory=datetime.now)
    last_interaction_at: datetime = Field(default_factory=datetime.now)
    # Sub-point drift not yet applied, carried to the next decay refresh
    decay_remainder: dict[str, float] = Field(default_factory=dict)

    # Status
    is_active: bool = True
    is_favorite: bool = False

    # Optimistic concurrency token, bumped by the store on every save
    version: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def mood(self) -> Mood:
        from ..systems.mood import classify_mood
        return classify_mood(
            health=self.health,
            hunger=self.hunger,
            energy=self.energy,
            happiness=self.happiness,
        )

    @property
    def display_name(self) -> str:
        return self.nickname or self.custom_name or self.id

    def vitals(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in VITAL_STATS}


# -----------------------------------------------------------------------------
# Interaction Models
# -----------------------------------------------------------------------------

class Rewards(BaseModel):
    xp: int = 0
    coins: int = 0
    items: list[str] = Field(default_factory=list)


class InteractionResult(BaseModel):
    """
    Resolved effect of one interaction, before it is merged into a pet.

    stat_changes holds deltas; stat_sets holds absolute values written after
    the deltas (feed sets hunger). penalties are deltas applied even when
    the interaction is refused.
    """
    interaction_type: InteractionType
    stat_changes: dict[str, float] = Field(default_factory=dict)
    stat_sets: dict[str, int] = Field(default_factory=dict)
    rewards: Rewards = Field(default_factory=Rewards)
    mood_effect: int = 0
    penalties: dict[str, float] = Field(default_factory=dict)
    energy_cost: int = 0
    refused: bool = False
    reason: str | None = None
    details: dict = Field(default_factory=dict)


class InteractionRecord(BaseModel):
    """Append-only interaction log entry. Never mutated after creation."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_id)
    pet_id: str
    user_id: str
    interaction_type: InteractionType
    stat_changes: dict[str, float] = Field(default_factory=dict)
    rewards: dict = Field(default_factory=dict)
    details: dict = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.now)


class EvolutionCheck(BaseModel):
    """Answer to "can this pet evolve, and if not, what's missing?"."""
    can_evolve: bool
    current_stage: int
    next_stage: EvolutionStage | None = None
    missing_requirements: list[str] = Field(default_factory=list)
    max_stage_reached: bool = False


class InteractionOutcome(BaseModel):
    """What the engine returns after resolving an interaction."""
    pet: UserPet
    result: InteractionResult
    record: InteractionRecord
    mood_before: Mood
    leveled_up: bool = False
    bond_increased: bool = False

    @property
    def mood_after(self) -> Mood:
        return self.pet.mood
