"""
Exception hierarchy for the companion engine.

Callers catch PetEngineError to handle everything the engine raises.
Low-energy refusals are not errors; they come back as refused results.
"""


class PetEngineError(Exception):
    """Base error for all engine failures."""
    pass


class PetNotFoundError(PetEngineError):
    """Pet id is unknown or the pet has been released."""
    def __init__(self, pet_id: str):
        self.pet_id = pet_id
        super().__init__(f"Pet not found: {pet_id}")


class SpeciesNotFoundError(PetEngineError):
    """Species referenced by a pet is missing from the catalog."""
    def __init__(self, species_id: str):
        self.species_id = species_id
        super().__init__(f"Species not found: {species_id}")


class AdoptionError(PetEngineError):
    """Adoption rejected: species unlisted or currently unavailable."""
    pass


class InvalidInteractionError(PetEngineError):
    """Unknown interaction type or malformed parameters."""
    pass


class EvolutionError(PetEngineError):
    """Evolution refused. Carries the requirements still unmet."""
    def __init__(self, pet_id: str, missing_requirements: list[str]):
        self.pet_id = pet_id
        self.missing_requirements = list(missing_requirements)
        detail = ", ".join(self.missing_requirements) or "no further stages"
        super().__init__(f"Pet {pet_id} cannot evolve: {detail}")


class StaleStateError(PetEngineError):
    """Stored pet version doesn't match the version the write was based on."""
    def __init__(self, pet_id: str, expected: int, got: int):
        self.pet_id = pet_id
        self.expected = expected
        self.got = got
        super().__init__(
            f"Stale state for pet {pet_id}: expected version {expected}, "
            f"stored version is {got}. Reload and retry."
        )


class StorageError(PetEngineError):
    """Persistence layer failed to read or write."""
    pass
