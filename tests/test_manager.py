"""Tests for PetManager: lifecycle, transactions and events."""

import random
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest

from conftest import T0, put_pet

from companion.errors import (
    AdoptionError,
    EvolutionError,
    InvalidInteractionError,
    PetNotFoundError,
    SpeciesNotFoundError,
    StaleStateError,
)
from companion.state import EventType, MemoryPetStore, PetManager
from companion.state.manager import PERSONALITY_TRAITS
from companion.state.schema import InteractionType, Mood


class TestAdopt:

    def test_seeded_from_species(self, manager, adopted):
        assert adopted.custom_name == "Sparky"
        assert adopted.species_id == "emberfox"
        assert adopted.level == 1
        assert adopted.current_evolution_stage == 1
        assert adopted.happiness == 50
        assert adopted.energy == 100
        assert adopted.stats.strength == 10
        assert adopted.born_at == T0
        assert adopted.last_interaction_at == T0
        assert adopted.version == 1

    def test_personality(self, adopted):
        traits = adopted.personality_traits
        assert 2 <= len(traits) <= 3
        assert len(set(traits)) == len(traits)
        assert set(traits) <= set(PERSONALITY_TRAITS)

    def test_logs_adoption_without_counting_it(self, manager, adopted):
        history = manager.get_interaction_history(adopted.id)
        assert [r.interaction_type for r in history] == [InteractionType.ADOPT]
        assert adopted.total_interactions == 0

    def test_adoption_record_has_no_effects(self, manager, adopted):
        record = manager.get_interaction_history(adopted.id)[0]
        assert record.stat_changes == {}
        assert record.rewards == {"xp": 0, "coins": 0, "items": []}
        assert record.details == {"species_id": "emberfox", "custom_name": "Sparky"}

    def test_emits_event(self, manager, adopted, event_bus):
        events = event_bus.get_history(EventType.PET_ADOPTED)
        assert len(events) == 1
        assert events[0].pet_id == adopted.id
        assert events[0].user_id == "user-1"

    def test_unknown_species(self, manager):
        with pytest.raises(AdoptionError, match="not listed"):
            manager.adopt("user-1", "dragon")

    def test_unavailable_species(self, manager):
        with pytest.raises(AdoptionError, match="not available"):
            manager.adopt("user-1", "starwisp")

    def test_available_species_listing(self, manager):
        assert [s.id for s in manager.list_available_species()] == ["emberfox"]


class TestReads:

    def test_get_pet_applies_decay_without_saving(self, manager, adopted, clock, memory_store):
        clock.advance(hours=10)
        view = manager.get_pet(adopted.id)

        assert view.happiness == 30
        assert view.hunger == 70
        stored = memory_store.get_pet(adopted.id)
        assert stored.happiness == 50
        assert stored.version == 1

    def test_repeated_reads_agree(self, manager, adopted, clock):
        clock.advance(hours=3)
        assert manager.get_pet(adopted.id) == manager.get_pet(adopted.id)

    def test_not_found(self, manager):
        with pytest.raises(PetNotFoundError):
            manager.get_pet("missing")

    def test_user_pets_favourites_first(self, manager, clock):
        first = manager.adopt("user-1", "emberfox", "First")
        clock.advance(minutes=1)
        second = manager.adopt("user-1", "emberfox", "Second")
        manager.adopt("user-2", "emberfox", "Other")

        assert [p.id for p in manager.get_user_pets("user-1")] == [first.id, second.id]

        manager.set_favorite(second.id)
        assert [p.id for p in manager.get_user_pets("user-1")] == [second.id, first.id]

    def test_status(self, manager, adopted):
        status = manager.get_status(adopted.id)
        assert status["pet"].id == adopted.id
        assert status["species_name"] == "Ember Fox"
        assert status["max_stage"] == 3
        assert status["mood"]["emoji"]
        assert status["progress"]["level"] == 1
        assert status["interactions_to_next_bond"] == 50


class TestInteractions:

    def test_feed_after_long_absence(self, manager, adopted, clock):
        clock.advance(hours=10)
        outcome = manager.feed(adopted.id)
        pet = outcome.pet

        assert pet.hunger == 100
        # 50 - 20 decay + 5 feed
        assert pet.happiness == 35
        assert pet.experience_points == 15
        assert pet.total_interactions == 1
        assert pet.last_interaction_at == clock.now
        assert pet.last_fed_at == clock.now

    def test_decay_counted_once(self, manager, adopted, clock):
        clock.advance(hours=2)
        manager.pet(adopted.id)
        # 50 - 4 decay + 8 pet
        assert manager.get_pet(adopted.id).happiness == 54

        clock.advance(minutes=20)
        assert manager.get_pet(adopted.id).happiness == 54

    def test_frequent_visits_keep_slow_drift(self, manager, adopted, clock):
        for _ in range(8):
            clock.advance(minutes=45)
            manager.pet(adopted.id)

        pet = manager.get_pet(adopted.id)
        # Six hours of drift; truncating each visit alone would leave energy at 100
        assert pet.energy == 94
        assert pet.hygiene == 94
        assert pet.hunger == 82

    def test_train_while_exhausted(self, manager, memory_store, make_pet, event_bus):
        pet = put_pet(memory_store, make_pet(energy=25, happiness=60))

        outcome = manager.train(pet.id, "strength")

        assert outcome.result.refused
        assert outcome.pet.stats.strength == 10
        assert outcome.pet.happiness == 55
        assert outcome.pet.total_interactions == 1

        record = manager.get_interaction_history(pet.id)[0]
        assert record.interaction_type == InteractionType.TRAIN
        assert record.details["refused"] is True
        assert record.stat_changes == {"happiness": -5}
        assert len(event_bus.get_history(EventType.INTERACTION_REFUSED)) == 1

    def test_train_succeeds(self, manager, adopted):
        outcome = manager.train(adopted.id, "agility")
        assert outcome.pet.stats.agility == 12
        assert outcome.pet.energy == 80
        assert outcome.record.stat_changes == {"agility": 2, "happiness": -5}

    def test_unknown_pet(self, manager):
        with pytest.raises(PetNotFoundError):
            manager.feed("missing")

    def test_invalid_type_checked_first(self, manager, adopted):
        with pytest.raises(InvalidInteractionError):
            manager.resolve_interaction(adopted.id, "groom")
        assert manager.get_pet(adopted.id).version == 1

    def test_record_matches_result(self, manager, adopted):
        outcome = manager.play(adopted.id, "fetch")
        record = manager.get_interaction_history(adopted.id, limit=1)[0]

        assert record.id == outcome.record.id
        assert record.rewards["xp"] == 25
        assert record.rewards["coins"] == 5
        assert record.details["activity_type"] == "fetch"
        assert record.details["energy_cost"] == 15

    def test_level_up_event(self, manager, memory_store, make_pet, event_bus):
        pet = put_pet(memory_store, make_pet(experience_points=95))
        outcome = manager.pet(pet.id)

        assert outcome.leveled_up
        assert outcome.pet.level == 2
        events = event_bus.get_history(EventType.PET_LEVELED_UP)
        assert [e.data["level"] for e in events] == [2]

    def test_bond_event(self, manager, memory_store, make_pet, event_bus):
        pet = put_pet(memory_store, make_pet(total_interactions=49))
        outcome = manager.pet(pet.id)

        assert outcome.bond_increased
        assert outcome.pet.bond_level == 1
        assert len(event_bus.get_history(EventType.BOND_INCREASED)) == 1

    def test_mood_change_event(self, manager, memory_store, make_pet, event_bus):
        pet = put_pet(memory_store, make_pet(hunger=10, happiness=60))
        outcome = manager.feed(pet.id)

        assert outcome.mood_before == Mood.HUNGRY
        assert outcome.mood_after == Mood.CONTENT
        events = event_bus.get_history(EventType.MOOD_CHANGED)
        assert events[0].data == {"before": "hungry", "after": "content"}

    def test_history_newest_first(self, manager, adopted, clock):
        for _ in range(3):
            clock.advance(minutes=1)
            manager.pet(adopted.id)
        manager.feed(adopted.id)

        history = manager.get_interaction_history(adopted.id, limit=2)
        assert [r.interaction_type for r in history] == [InteractionType.FEED, InteractionType.PET]
        assert len(manager.get_interaction_history(adopted.id, limit=None)) == 5


class TestConcurrency:

    def test_parallel_interactions_all_counted(self, manager, adopted):
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda _: manager.pet(adopted.id), range(40)))

        pet = manager.get_pet(adopted.id)
        assert pet.total_interactions == 40
        assert pet.experience_points == 400
        assert pet.version == 41
        assert len(manager.get_interaction_history(adopted.id, limit=None)) == 41

    def test_stale_write_rejected(self, catalog, clock, event_bus):
        class RacingStore(MemoryPetStore):
            """Lands a competing write just before the next save."""
            race = False

            def save_pet(self, pet, expected_version=None):
                if self.race:
                    self.race = False
                    rival = self.get_pet(pet.id)
                    super().save_pet(rival, expected_version=rival.version)
                return super().save_pet(pet, expected_version)

        store = RacingStore()
        manager = PetManager(store, catalog, clock=clock, rng=random.Random(1), event_bus=event_bus)
        pet = manager.adopt("user-1", "emberfox")

        store.race = True
        with pytest.raises(StaleStateError):
            manager.feed(pet.id)

        # Nothing from the losing write landed
        assert store.get_pet(pet.id).total_interactions == 0
        assert len(manager.get_interaction_history(pet.id)) == 1
        assert event_bus.get_history(EventType.INTERACTION_RESOLVED) == []


class TestRelease:

    def test_release(self, manager, adopted, event_bus):
        released = manager.release(adopted.id)

        assert released.is_active is False
        with pytest.raises(PetNotFoundError):
            manager.get_pet(adopted.id)
        with pytest.raises(PetNotFoundError):
            manager.feed(adopted.id)
        assert manager.get_user_pets("user-1") == []
        assert len(event_bus.get_history(EventType.PET_RELEASED)) == 1

    def test_history_survives(self, manager, adopted):
        manager.release(adopted.id)
        history = manager.get_interaction_history(adopted.id)
        assert [r.interaction_type for r in history] == [
            InteractionType.RELEASE,
            InteractionType.ADOPT,
        ]

    def test_release_twice(self, manager, adopted):
        manager.release(adopted.id)
        with pytest.raises(PetNotFoundError):
            manager.release(adopted.id)

    def test_history_of_unknown_pet(self, manager):
        with pytest.raises(PetNotFoundError):
            manager.get_interaction_history("missing")


class TestEvolution:

    def test_evolve(self, manager, memory_store, make_pet, event_bus):
        pet = put_pet(memory_store, make_pet(level=5, happiness=80, total_interactions=7))
        evolved = manager.evolve(pet.id)

        assert evolved.current_evolution_stage == 2
        assert evolved.happiness == 100
        assert evolved.stats.strength == 12
        assert evolved.titles_earned == ["Blaze Form"]
        assert evolved.total_interactions == 7

        record = manager.get_interaction_history(pet.id)[0]
        assert record.interaction_type == InteractionType.EVOLVE
        assert record.details == {"from_stage": 1, "to_stage": 2, "title": "Blaze Form"}
        events = event_bus.get_history(EventType.PET_EVOLVED)
        assert events[0].data["stage_name"] == "Blaze"

    def test_refused_leaves_pet_alone(self, manager, adopted):
        check = manager.check_evolution(adopted.id)
        assert check.missing_requirements == ["Reach level 5", "Achieve 70% happiness"]

        with pytest.raises(EvolutionError) as exc_info:
            manager.evolve(adopted.id)
        assert exc_info.value.missing_requirements == check.missing_requirements
        assert manager.get_pet(adopted.id).version == 1

    def test_decay_applies_before_gate(self, manager, memory_store, make_pet, clock):
        pet = put_pet(memory_store, make_pet(level=5, happiness=75))
        assert manager.check_evolution(pet.id).can_evolve

        clock.advance(hours=4)
        check = manager.check_evolution(pet.id)
        assert check.missing_requirements == ["Achieve 70% happiness"]

    def test_items_passed_through(self, manager, memory_store, make_pet):
        pet = put_pet(memory_store, make_pet(level=15, happiness=90, current_evolution_stage=2))

        with pytest.raises(EvolutionError, match="phoenix_feather"):
            manager.evolve(pet.id)
        assert manager.evolve(pet.id, ["phoenix_feather"]).current_evolution_stage == 3

    def test_species_missing_from_catalog(self, manager, memory_store, make_pet):
        pet = put_pet(memory_store, make_pet(species_id="ghostcat"))
        with pytest.raises(SpeciesNotFoundError):
            manager.check_evolution(pet.id)

    def test_lifecycle_records_carry_no_rewards(self, manager, memory_store, make_pet):
        pet = put_pet(memory_store, make_pet(level=5, happiness=80))
        manager.evolve(pet.id)
        manager.release(pet.id)

        history = manager.get_interaction_history(pet.id)
        assert [r.interaction_type for r in history] == [
            InteractionType.RELEASE,
            InteractionType.EVOLVE,
        ]
        for record in history:
            assert record.stat_changes == {}
            assert record.rewards == {"xp": 0, "coins": 0, "items": []}


class TestLockRegistry:

    def test_unknown_ids_leave_no_locks(self, manager):
        for i in range(1000):
            with pytest.raises(PetNotFoundError):
                manager.resolve_interaction(f"missing-{i}", "feed")
        assert len(manager._locks) == 0

    def test_failed_lifecycle_calls_leave_no_locks(self, manager, adopted):
        with pytest.raises(PetNotFoundError):
            manager.release("missing")
        with pytest.raises(PetNotFoundError):
            manager.set_favorite("missing")
        with pytest.raises(EvolutionError):
            manager.evolve(adopted.id)
        assert len(manager._locks) == 0

    def test_successful_calls_leave_no_locks(self, manager, adopted):
        manager.feed(adopted.id)
        manager.release(adopted.id)
        assert len(manager._locks) == 0

    def test_parallel_interactions_leave_no_locks(self, manager, adopted):
        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(lambda _: manager.pet(adopted.id), range(40)))
        assert len(manager._locks) == 0
        assert manager.get_pet(adopted.id).total_interactions == 40
