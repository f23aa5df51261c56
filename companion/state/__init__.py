"""State management for companion pets."""

from .schema import (
    BaseStats,
    CombatStat,
    CombatStats,
    EvolutionCheck,
    EvolutionRequirements,
    EvolutionStage,
    InteractionOutcome,
    InteractionRecord,
    InteractionResult,
    InteractionType,
    Mood,
    PetSpecies,
    Rarity,
    Rewards,
    UserPet,
)
from .manager import PetManager
from .store import (
    CatalogStore,
    JsonPetStore,
    MemoryCatalogStore,
    MemoryPetStore,
    PetStore,
    YamlCatalogStore,
)
from .locks import KeyedLocks
from .event_bus import (
    EventBus,
    EventType,
    PetEvent,
    get_event_bus,
    reset_event_bus,
)

__all__ = [
    # Schema
    "BaseStats",
    "CombatStat",
    "CombatStats",
    "EvolutionCheck",
    "EvolutionRequirements",
    "EvolutionStage",
    "InteractionOutcome",
    "InteractionRecord",
    "InteractionResult",
    "InteractionType",
    "Mood",
    "PetSpecies",
    "Rarity",
    "Rewards",
    "UserPet",
    # Manager
    "PetManager",
    # Store
    "PetStore",
    "JsonPetStore",
    "MemoryPetStore",
    "CatalogStore",
    "MemoryCatalogStore",
    "YamlCatalogStore",
    "KeyedLocks",
    # Event Bus
    "EventBus",
    "EventType",
    "PetEvent",
    "get_event_bus",
    "reset_event_bus",
]
