"""
Pydantic schemas for the companion HTTP API.

These models define the contract between frontend and engine. Pet and
catalog models are reused from the state schema; this module adds the
request bodies and response envelopes.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from ..state.schema import (
    EvolutionStage,
    InteractionResult,
    Mood,
    PetSpecies,
    UserPet,
)


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------

class AdoptRequest(BaseModel):
    """POST /pets body."""
    user_id: str
    species_id: str
    custom_name: str | None = None


class InteractionRequest(BaseModel):
    """
    POST /pets/{pet_id}/interactions body.

    params by type: feed {food_type}, play {activity_type}, train {stat}.
    """
    interaction_type: str
    params: dict = Field(default_factory=dict)


class EvolveRequest(BaseModel):
    """Items the owner holds, for stages that require them."""
    items: list[str] = Field(default_factory=list)


class FavoriteRequest(BaseModel):
    favorite: bool = True


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------

class SpeciesListResponse(BaseModel):
    ok: bool = True
    species: list[PetSpecies] = []


class PetResponse(BaseModel):
    """A pet as of the request time, decay applied."""
    ok: bool = True
    pet: UserPet
    mood_info: dict = {}
    timestamp: datetime = Field(default_factory=datetime.now)


class PetListResponse(BaseModel):
    ok: bool = True
    user_id: str
    pets: list[UserPet] = []


class InteractionResponse(BaseModel):
    """
    Response after resolving an interaction.

    `refused` results are successful requests: the pet was too tired and
    the refusal was logged.
    """
    ok: bool = True
    pet: UserPet
    result: InteractionResult
    record_id: str
    mood_before: Mood
    mood_after: Mood
    leveled_up: bool = False
    bond_increased: bool = False


class EvolutionCheckResponse(BaseModel):
    ok: bool = True
    can_evolve: bool
    current_stage: int
    next_stage: EvolutionStage | None = None
    missing_requirements: list[str] = []
    max_stage_reached: bool = False


class HistoryEntry(BaseModel):
    id: str
    interaction_type: str
    stat_changes: dict = {}
    rewards: dict = {}
    details: dict = {}
    created_at: datetime


class HistoryResponse(BaseModel):
    ok: bool = True
    pet_id: str
    interactions: list[HistoryEntry] = []


class ErrorResponse(BaseModel):
    """Standard error response."""
    ok: bool = False
    error: str
    code: str | None = None
    details: dict = {}
