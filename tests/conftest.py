"""
Pytest fixtures for companion engine tests.

Provides in-memory stores, a controllable clock and a private event bus
so every test runs isolated and deterministic.
"""

import random
import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from companion.state import (
    EventBus,
    MemoryCatalogStore,
    MemoryPetStore,
    PetManager,
    reset_event_bus,
)
from companion.state.schema import (
    BaseStats,
    EvolutionRequirements,
    EvolutionStage,
    PetSpecies,
    Rarity,
    UserPet,
)


T0 = datetime(2026, 3, 1, 9, 0, 0)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def isolated_event_bus():
    """Fresh global bus per test."""
    reset_event_bus()
    yield
    reset_event_bus()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def species():
    """Three-stage species; stage 3 needs an item."""
    return PetSpecies(
        id="emberfox",
        species_key="ember_fox",
        display_name="Ember Fox",
        rarity=Rarity.COMMON,
        base_stats=BaseStats(),
        evolution_chain=[
            EvolutionStage(stage_number=1, stage_name="Kit"),
            EvolutionStage(
                stage_number=2,
                stage_name="Blaze",
                stat_multiplier=1.25,
                requirements=EvolutionRequirements(level=5, happiness=70),
            ),
            EvolutionStage(
                stage_number=3,
                stage_name="Inferno",
                stat_multiplier=1.5,
                requirements=EvolutionRequirements(
                    level=15, happiness=85, items=["phoenix_feather"]
                ),
            ),
        ],
    )


@pytest.fixture
def retired_species():
    """Listed but not adoptable."""
    return PetSpecies(
        id="starwisp",
        species_key="star_wisp",
        display_name="Star Wisp",
        rarity=Rarity.MYTHIC,
        is_available=False,
    )


@pytest.fixture
def catalog(species, retired_species):
    return MemoryCatalogStore([species, retired_species])


@pytest.fixture
def memory_store():
    """In-memory pet store for testing."""
    return MemoryPetStore()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def manager(memory_store, catalog, clock, event_bus):
    """Pet manager over memory stores with a frozen clock."""
    return PetManager(
        store=memory_store,
        catalog=catalog,
        clock=clock,
        rng=random.Random(7),
        event_bus=event_bus,
    )


@pytest.fixture
def adopted(manager):
    """A freshly adopted pet."""
    return manager.adopt("user-1", "emberfox", "Sparky")


@pytest.fixture
def make_pet():
    """Factory for detached pets anchored at T0."""
    def _make(**overrides) -> UserPet:
        fields = {
            "user_id": "user-1",
            "species_id": "emberfox",
            "born_at": T0,
            "last_fed_at": T0,
            "last_played_at": T0,
            "last_interaction_at": T0,
        }
        fields.update(overrides)
        return UserPet(**fields)
    return _make


def put_pet(store: MemoryPetStore, pet: UserPet) -> UserPet:
    """Store a hand-built pet as if it had been adopted."""
    return store.save_pet(pet, expected_version=0)
