"""
Companion pet lifecycle and interaction management.

PetManager is the engine's public API: adopt, interact, evolve, read and
release pets. It owns the transaction around every mutation:

    lock pet id -> load -> refresh decay -> resolve -> merge in memory
    -> one version-checked save -> one log append -> emit events

Storage is delegated to a PetStore and the species catalog to a
CatalogStore, so the same manager runs against files or memory.
"""

import logging
import random
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable

from ..errors import (
    AdoptionError,
    PetNotFoundError,
    SpeciesNotFoundError,
    StaleStateError,
)
from .event_bus import EventBus, EventType, get_event_bus
from .locks import KeyedLocks
from .schema import (
    CombatStat,
    CombatStats,
    EvolutionCheck,
    InteractionOutcome,
    InteractionRecord,
    InteractionResult,
    InteractionType,
    PetSpecies,
    UserPet,
)
from .store import (
    CatalogStore,
    JsonPetStore,
    MemoryCatalogStore,
    PetStore,
    YamlCatalogStore,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

PERSONALITY_TRAITS = [
    "playful", "curious", "lazy", "energetic", "shy", "bold",
    "friendly", "mischievous", "loyal", "independent", "affectionate",
    "clever", "stubborn", "gentle", "adventurous", "calm",
]
MIN_TRAITS = 2
MAX_TRAITS = 3

DEFAULT_HISTORY_LIMIT = 20


class PetManager:
    """
    Manages pet lifecycle and domain operations.

    Storage is delegated to store implementations:
    - JsonPetStore / YamlCatalogStore for production (file-based)
    - MemoryPetStore / MemoryCatalogStore for testing (in-memory)

    Time and randomness are injected so decay and adoption are
    reproducible in tests.
    """

    def __init__(
        self,
        store: PetStore | Path | str = "data",
        catalog: CatalogStore | Path | str | None = None,
        clock: Clock | None = None,
        rng: random.Random | None = None,
        event_bus: EventBus | None = None,
    ):
        """
        Initialize with stores and collaborators.

        Args:
            store: PetStore instance, or directory for JsonPetStore
            catalog: CatalogStore instance, or path to a YAML catalog
            clock: Returns "now"; defaults to datetime.now
            rng: Random source for personality traits
            event_bus: Bus to publish on; defaults to the global bus
        """
        if isinstance(store, (Path, str)):
            self.store: PetStore = JsonPetStore(store)
        else:
            self.store = store

        if catalog is None:
            self.catalog: CatalogStore = MemoryCatalogStore()
        elif isinstance(catalog, (Path, str)):
            self.catalog = YamlCatalogStore(catalog)
        else:
            self.catalog = catalog

        self.clock: Clock = clock or datetime.now
        self.rng = rng or random.Random()
        self.bus = event_bus or get_event_bus()
        self._locks = KeyedLocks()

        # Systems (lazily initialized)
        self._resolver = None

    @property
    def resolver(self):
        """Get the interaction resolver (lazy initialization)."""
        if self._resolver is None:
            from ..systems.interactions import InteractionResolver
            self._resolver = InteractionResolver()
        return self._resolver

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def _load_active(self, pet_id: str) -> UserPet:
        """Stored pet, or PetNotFoundError if unknown or released."""
        pet = self.store.get_pet(pet_id)
        if pet is None or not pet.is_active:
            raise PetNotFoundError(pet_id)
        return pet

    def _species_for(self, pet: UserPet) -> PetSpecies:
        species = self.catalog.get_species(pet.species_id)
        if species is None:
            raise SpeciesNotFoundError(pet.species_id)
        return species

    def _refresh(self, pet: UserPet, now: datetime) -> UserPet:
        from ..systems.decay import apply_decay
        return apply_decay(pet, now)

    def _save(self, pet: UserPet, expected_version: int) -> UserPet:
        try:
            return self.store.save_pet(pet, expected_version=expected_version)
        except StaleStateError:
            logger.warning(f"Concurrent write detected for pet {pet.id}; update rejected")
            raise

    def list_available_species(self) -> list[PetSpecies]:
        """Species that can currently be adopted."""
        return [s for s in self.catalog.list_species() if s.is_available]

    def get_pet(self, pet_id: str) -> UserPet:
        """
        Current view of a pet with decay applied as of now.

        Read-only: the refreshed snapshot is not written back.

        Raises:
            PetNotFoundError: Unknown or released pet
        """
        return self._refresh(self._load_active(pet_id), self.clock())

    def get_user_pets(self, user_id: str) -> list[UserPet]:
        """A user's active pets, favourites first, then oldest first."""
        now = self.clock()
        pets = [
            self._refresh(p, now)
            for p in self.store.list_user_pets(user_id)
            if p.is_active
        ]
        pets.sort(key=lambda p: (not p.is_favorite, p.born_at))
        return pets

    def get_interaction_history(
        self,
        pet_id: str,
        limit: int | None = DEFAULT_HISTORY_LIMIT,
    ) -> list[InteractionRecord]:
        """
        Interaction log, newest first. Released pets keep their history.

        Raises:
            PetNotFoundError: Unknown pet id
        """
        if self.store.get_pet(pet_id) is None:
            raise PetNotFoundError(pet_id)
        return self.store.list_interactions(pet_id, limit=limit)

    def get_status(self, pet_id: str) -> dict:
        """Display summary: refreshed pet plus mood, level and bond progress."""
        from ..systems.bond import interactions_until_next_bond
        from ..systems.leveling import level_progress
        from ..systems.mood import mood_info

        pet = self.get_pet(pet_id)
        species = self.catalog.get_species(pet.species_id)
        return {
            "pet": pet,
            "species_name": species.display_name if species else pet.species_id,
            "max_stage": species.max_stage if species else pet.current_evolution_stage,
            "mood": mood_info(pet.mood),
            "progress": level_progress(pet.experience_points),
            "interactions_to_next_bond": interactions_until_next_bond(
                pet.total_interactions, pet.bond_level
            ),
        }

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def _generate_personality_traits(self) -> list[str]:
        count = self.rng.randint(MIN_TRAITS, MAX_TRAITS)
        return self.rng.sample(PERSONALITY_TRAITS, count)

    def adopt(
        self,
        user_id: str,
        species_id: str,
        custom_name: str | None = None,
    ) -> UserPet:
        """
        Adopt a new pet seeded from the species baseline.

        Raises:
            AdoptionError: Species unlisted or not currently available
        """
        species = self.catalog.get_species(species_id)
        if species is None:
            raise AdoptionError(f"Species not listed: {species_id}")
        if not species.is_available:
            raise AdoptionError(f"Species not available for adoption: {species_id}")

        now = self.clock()
        base = species.base_stats
        pet = UserPet(
            user_id=user_id,
            species_id=species.id,
            custom_name=custom_name,
            happiness=base.happiness,
            energy=base.energy,
            hunger=base.hunger,
            hygiene=base.hygiene,
            health=base.health,
            stats=CombatStats(**{s.value: getattr(base, s.value) for s in CombatStat}),
            personality_traits=self._generate_personality_traits(),
            born_at=now,
            last_fed_at=now,
            last_played_at=now,
            last_interaction_at=now,
        )

        from ..systems.interactions import lifecycle_result

        saved = self.store.save_pet(pet, expected_version=0)
        self.store.append_interaction(self._build_record(
            saved,
            lifecycle_result(
                InteractionType.ADOPT,
                {"species_id": species.id, "custom_name": custom_name},
            ),
            now,
        ))

        logger.info(f"User {user_id} adopted {species.display_name} as pet {saved.id}")
        self.bus.emit(
            EventType.PET_ADOPTED,
            pet_id=saved.id,
            user_id=user_id,
            species_id=species.id,
            mood=saved.mood.value,
        )
        return saved

    def release(self, pet_id: str) -> UserPet:
        """
        Soft-retire a pet. It leaves simulation; its log is kept.

        Raises:
            PetNotFoundError: Unknown or already released pet
        """
        from ..systems.interactions import lifecycle_result

        with self._locks.hold(pet_id):
            stored = self._load_active(pet_id)
            retired = stored.model_copy(update={"is_active": False, "is_favorite": False})
            saved = self._save(retired, stored.version)
            self.store.append_interaction(self._build_record(
                saved,
                lifecycle_result(InteractionType.RELEASE),
                self.clock(),
            ))

        logger.info(f"Pet {pet_id} released by user {stored.user_id}")
        self.bus.emit(EventType.PET_RELEASED, pet_id=pet_id, user_id=stored.user_id)
        return saved

    def set_favorite(self, pet_id: str, favorite: bool = True) -> UserPet:
        """Mark or unmark a pet as favourite (sorts first in listings)."""
        with self._locks.hold(pet_id):
            stored = self._load_active(pet_id)
            return self._save(
                stored.model_copy(update={"is_favorite": favorite}),
                stored.version,
            )

    # -------------------------------------------------------------------------
    # Interactions
    # -------------------------------------------------------------------------

    def resolve_interaction(
        self,
        pet_id: str,
        interaction_type: InteractionType | str,
        params: dict | None = None,
    ) -> InteractionOutcome:
        """
        Resolve one care interaction as a single transaction.

        Refusals (e.g. training while exhausted) are logged and counted
        like any other interaction; they are not errors.

        Args:
            pet_id: Pet to interact with
            interaction_type: feed, play, pet or train
            params: food_type for feed, activity_type for play, stat for train

        Returns:
            InteractionOutcome with the saved pet, the result and the log record

        Raises:
            PetNotFoundError: Unknown or released pet
            InvalidInteractionError: Unknown type or bad params
            StaleStateError: Another writer saved this pet in between
        """
        from ..systems.interactions import parse_interaction_type

        itype = parse_interaction_type(interaction_type)

        with self._locks.hold(pet_id):
            stored = self._load_active(pet_id)
            now = self.clock()
            fresh = self._refresh(stored, now)

            result = self.resolver.resolve(fresh, itype, params)
            updated = self.resolver.apply(fresh, result, now)
            record = self._build_record(updated, result, now)

            saved = self._save(updated, stored.version)
            self.store.append_interaction(record)

        outcome = InteractionOutcome(
            pet=saved,
            result=result,
            record=record,
            mood_before=fresh.mood,
            leveled_up=saved.level > fresh.level,
            bond_increased=saved.bond_level > fresh.bond_level,
        )
        self._publish_outcome(outcome)
        return outcome

    def _build_record(
        self,
        pet: UserPet,
        result: InteractionResult,
        now: datetime,
    ) -> InteractionRecord:
        applied = dict(result.stat_changes)
        for stat, delta in result.penalties.items():
            applied[stat] = applied.get(stat, 0) + delta

        details = dict(result.details)
        if result.mood_effect:
            details["mood_effect"] = result.mood_effect
        if result.stat_sets:
            details["stat_sets"] = dict(result.stat_sets)
        if result.energy_cost:
            details["energy_cost"] = result.energy_cost
        if result.refused:
            details["refused"] = True
            details["reason"] = result.reason

        return InteractionRecord(
            pet_id=pet.id,
            user_id=pet.user_id,
            interaction_type=result.interaction_type,
            stat_changes=applied,
            rewards=result.rewards.model_dump(),
            details=details,
            created_at=now,
        )

    def _publish_outcome(self, outcome: InteractionOutcome) -> None:
        pet = outcome.pet
        result = outcome.result

        if result.refused:
            logger.info(f"Pet {pet.id} refused {result.interaction_type.value}: {result.reason}")
            self.bus.emit(
                EventType.INTERACTION_REFUSED,
                pet_id=pet.id,
                user_id=pet.user_id,
                interaction_type=result.interaction_type.value,
                reason=result.reason,
            )
        else:
            logger.debug(
                f"Pet {pet.id} {result.interaction_type.value}: "
                f"+{result.rewards.xp} XP, changes {result.stat_changes}"
            )

        self.bus.emit(
            EventType.INTERACTION_RESOLVED,
            pet_id=pet.id,
            user_id=pet.user_id,
            interaction_type=result.interaction_type.value,
            record_id=outcome.record.id,
            refused=result.refused,
        )

        if outcome.leveled_up:
            logger.info(f"Pet {pet.id} reached level {pet.level}")
            self.bus.emit(EventType.PET_LEVELED_UP, pet_id=pet.id, user_id=pet.user_id, level=pet.level)

        if outcome.bond_increased:
            logger.info(f"Pet {pet.id} bond deepened to {pet.bond_level}")
            self.bus.emit(
                EventType.BOND_INCREASED,
                pet_id=pet.id,
                user_id=pet.user_id,
                bond_level=pet.bond_level,
                total_interactions=pet.total_interactions,
            )

        if outcome.mood_before != pet.mood:
            self.bus.emit(
                EventType.MOOD_CHANGED,
                pet_id=pet.id,
                user_id=pet.user_id,
                before=outcome.mood_before.value,
                after=pet.mood.value,
            )

    def feed(self, pet_id: str, food_type: str | None = None) -> InteractionOutcome:
        params = {"food_type": food_type} if food_type else None
        return self.resolve_interaction(pet_id, InteractionType.FEED, params)

    def play(self, pet_id: str, activity_type: str | None = None) -> InteractionOutcome:
        params = {"activity_type": activity_type} if activity_type else None
        return self.resolve_interaction(pet_id, InteractionType.PLAY, params)

    def pet(self, pet_id: str) -> InteractionOutcome:
        return self.resolve_interaction(pet_id, InteractionType.PET)

    def train(self, pet_id: str, stat: CombatStat | str) -> InteractionOutcome:
        value = stat.value if isinstance(stat, CombatStat) else stat
        return self.resolve_interaction(pet_id, InteractionType.TRAIN, {"stat": value})

    # -------------------------------------------------------------------------
    # Evolution
    # -------------------------------------------------------------------------

    def check_evolution(self, pet_id: str, items: Iterable[str] | None = None) -> EvolutionCheck:
        """
        Whether a pet can evolve now, and what is missing if not.

        Args:
            pet_id: Pet to check
            items: Item keys the owner holds (inventory lives outside the engine)

        Raises:
            PetNotFoundError: Unknown or released pet
            SpeciesNotFoundError: Pet's species is no longer in the catalog
        """
        from ..systems.evolution import check_evolution

        pet = self.get_pet(pet_id)
        return check_evolution(pet, self._species_for(pet), items or ())

    def evolve(self, pet_id: str, items: Iterable[str] | None = None) -> UserPet:
        """
        Advance a pet to its next evolution stage.

        Raises:
            PetNotFoundError: Unknown or released pet
            SpeciesNotFoundError: Pet's species is no longer in the catalog
            EvolutionError: Requirements unmet or already at max stage
        """
        from ..systems.decay import compute_decay
        from ..systems.evolution import evolve as evolve_pet, stage_title
        from ..systems.interactions import lifecycle_result

        with self._locks.hold(pet_id):
            stored = self._load_active(pet_id)
            species = self._species_for(stored)
            now = self.clock()

            # Persisting decayed vitals moves the decay anchor with them
            decayed = compute_decay(stored, now)
            if decayed:
                decayed["last_interaction_at"] = now
            fresh = stored.model_copy(update=decayed, deep=True)

            evolved = evolve_pet(fresh, species, items or ())
            stage = species.get_stage(evolved.current_evolution_stage)
            saved = self._save(evolved, stored.version)
            self.store.append_interaction(self._build_record(
                saved,
                lifecycle_result(InteractionType.EVOLVE, {
                    "from_stage": stored.current_evolution_stage,
                    "to_stage": saved.current_evolution_stage,
                    "title": stage_title(stage) if stage else None,
                }),
                now,
            ))

        logger.info(f"Pet {pet_id} evolved to stage {saved.current_evolution_stage}")
        self.bus.emit(
            EventType.PET_EVOLVED,
            pet_id=pet_id,
            user_id=saved.user_id,
            stage=saved.current_evolution_stage,
            stage_name=stage.stage_name if stage else None,
        )
        return saved
