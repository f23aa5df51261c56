"""
Pet and catalog storage abstractions.

Separates persistence from simulation logic for testability.
Pet stores enforce optimistic concurrency: every save states the version
it was based on, and a mismatch raises StaleStateError instead of
silently overwriting a concurrent update.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Protocol, runtime_checkable

import yaml
from pydantic import ValidationError

from ..errors import StaleStateError, StorageError
from .schema import InteractionRecord, PetSpecies, UserPet

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Pet Store
# -----------------------------------------------------------------------------


@runtime_checkable
class PetStore(Protocol):
    """
    Storage interface for pets and their interaction logs.

    Implementations:
    - JsonPetStore: File-based persistence (production)
    - MemoryPetStore: In-memory storage (testing)
    """

    def get_pet(self, pet_id: str) -> UserPet | None:
        """Load a pet by ID. Returns None if not found."""
        ...

    def save_pet(self, pet: UserPet, expected_version: int | None = None) -> UserPet:
        """
        Persist a pet and return it with its new version.

        If expected_version is given and differs from the stored version,
        raises StaleStateError and writes nothing.
        """
        ...

    def append_interaction(self, record: InteractionRecord) -> None:
        """Append a record to the pet's interaction log."""
        ...

    def list_user_pets(self, user_id: str) -> list[UserPet]:
        """All pets owned by a user, retired ones included."""
        ...

    def list_interactions(self, pet_id: str, limit: int | None = None) -> list[InteractionRecord]:
        """Interaction log for a pet, newest first."""
        ...


def _check_version(pet_id: str, stored: UserPet | None, expected: int | None) -> None:
    if expected is None:
        return
    current = stored.version if stored else 0
    if current != expected:
        raise StaleStateError(pet_id, expected=expected, got=current)


class MemoryPetStore:
    """
    In-memory pet storage for testing.

    No file I/O - all data lives in memory. Stores copies so callers can't
    mutate stored state behind the store's back.
    """

    def __init__(self):
        self.pets: dict[str, UserPet] = {}
        self.interactions: dict[str, list[InteractionRecord]] = {}
        self._lock = threading.Lock()

    def get_pet(self, pet_id: str) -> UserPet | None:
        pet = self.pets.get(pet_id)
        return pet.model_copy(deep=True) if pet else None

    def save_pet(self, pet: UserPet, expected_version: int | None = None) -> UserPet:
        with self._lock:
            _check_version(pet.id, self.pets.get(pet.id), expected_version)
            saved = pet.model_copy(update={"version": pet.version + 1}, deep=True)
            self.pets[pet.id] = saved
        return saved.model_copy(deep=True)

    def append_interaction(self, record: InteractionRecord) -> None:
        with self._lock:
            self.interactions.setdefault(record.pet_id, []).append(record)

    def list_user_pets(self, user_id: str) -> list[UserPet]:
        return [p.model_copy(deep=True) for p in self.pets.values() if p.user_id == user_id]

    def list_interactions(self, pet_id: str, limit: int | None = None) -> list[InteractionRecord]:
        records = list(reversed(self.interactions.get(pet_id, [])))
        return records[:limit] if limit is not None else records

    def clear(self) -> None:
        """Clear everything (test utility)."""
        self.pets.clear()
        self.interactions.clear()


class JsonPetStore:
    """
    File-based pet storage.

    Layout under data_dir:
    - pets/{pet_id}.json            current pet state (previous save kept as .json.bak)
    - interactions/{pet_id}.jsonl   append-only log, one record per line
    """

    def __init__(self, data_dir: Path | str = "data"):
        self.data_dir = Path(data_dir)
        self.pets_dir = self.data_dir / "pets"
        self.log_dir = self.data_dir / "interactions"
        self.pets_dir.mkdir(parents=True, exist_ok=True)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        # Serialises the version check with the write inside this process
        self._lock = threading.Lock()

    def _pet_file(self, pet_id: str) -> Path:
        return self.pets_dir / f"{pet_id}.json"

    def _log_file(self, pet_id: str) -> Path:
        return self.log_dir / f"{pet_id}.jsonl"

    def _read_pet(self, path: Path) -> UserPet | None:
        try:
            return UserPet.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            raise StorageError(f"Failed to read pet file {path.name}: {e}") from e

    def get_pet(self, pet_id: str) -> UserPet | None:
        path = self._pet_file(pet_id)
        if not path.exists():
            return None
        return self._read_pet(path)

    def save_pet(self, pet: UserPet, expected_version: int | None = None) -> UserPet:
        path = self._pet_file(pet.id)
        with self._lock:
            stored = self._read_pet(path) if path.exists() else None
            _check_version(pet.id, stored, expected_version)

            saved = pet.model_copy(update={"version": pet.version + 1}, deep=True)
            try:
                # Backup previous save
                if path.exists():
                    path.with_suffix(".json.bak").write_text(
                        path.read_text(encoding="utf-8"), encoding="utf-8"
                    )
                tmp = path.with_suffix(".json.tmp")
                tmp.write_text(saved.model_dump_json(indent=2), encoding="utf-8")
                tmp.replace(path)
            except OSError as e:
                raise StorageError(f"Failed to save pet {pet.id}: {e}") from e
        return saved

    def append_interaction(self, record: InteractionRecord) -> None:
        try:
            with open(self._log_file(record.pet_id), "a", encoding="utf-8") as f:
                f.write(record.model_dump_json() + "\n")
        except OSError as e:
            raise StorageError(f"Failed to append interaction for pet {record.pet_id}: {e}") from e

    def list_user_pets(self, user_id: str) -> list[UserPet]:
        pets = []
        for f in sorted(self.pets_dir.glob("*.json")):
            pet = self._read_pet(f)
            if pet and pet.user_id == user_id:
                pets.append(pet)
        return pets

    def list_interactions(self, pet_id: str, limit: int | None = None) -> list[InteractionRecord]:
        path = self._log_file(pet_id)
        if not path.exists():
            return []

        records = []
        for line_no, line in enumerate(path.read_text(encoding="utf-8").splitlines(), 1):
            if not line.strip():
                continue
            try:
                records.append(InteractionRecord.model_validate_json(line))
            except ValidationError:
                logger.warning(f"Skipping corrupt log line {line_no} for pet {pet_id}")

        records.reverse()
        return records[:limit] if limit is not None else records


# -----------------------------------------------------------------------------
# Catalog Store (read-only)
# -----------------------------------------------------------------------------


@runtime_checkable
class CatalogStore(Protocol):
    """Read-only species catalog."""

    def get_species(self, species_id: str) -> PetSpecies | None:
        """Look up a species by id. Returns None if unlisted."""
        ...

    def list_species(self) -> list[PetSpecies]:
        """All listed species, available or not."""
        ...


class MemoryCatalogStore:
    """Catalog held in memory. Used by tests and as the YAML store's backing."""

    def __init__(self, species: list[PetSpecies] | None = None):
        self.species: dict[str, PetSpecies] = {s.id: s for s in species or []}

    def get_species(self, species_id: str) -> PetSpecies | None:
        return self.species.get(species_id)

    def list_species(self) -> list[PetSpecies]:
        return list(self.species.values())

    def add(self, species: PetSpecies) -> None:
        self.species[species.id] = species


class YamlCatalogStore(MemoryCatalogStore):
    """
    Catalog loaded once from a YAML file.

    Expected shape:
        species:
          - id: emberfox
            species_key: ember_fox
            display_name: Ember Fox
            base_stats: {happiness: 60, energy: 100}
            evolution_chain:
              - {stage_number: 1, stage_name: Kit}
              - stage_number: 2
                stage_name: Blaze
                stat_multiplier: 1.2
                requirements: {level: 5, happiness: 70}
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)
        super().__init__(self._load())
        logger.info(f"Loaded {len(self.species)} species from {self.path}")

    def _load(self) -> list[PetSpecies]:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise StorageError(f"Failed to load species catalog {self.path}: {e}") from e

        entries = data.get("species", []) if isinstance(data, dict) else []
        try:
            return [PetSpecies.model_validate(entry) for entry in entries]
        except ValidationError as e:
            raise StorageError(f"Invalid species catalog {self.path}: {e}") from e
