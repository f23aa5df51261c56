"""
Companion FastAPI server.

Thin transport over PetManager. The engine is synchronous, so endpoints
are plain `def` and run in FastAPI's threadpool; per-pet locking lives in
the manager.

Endpoints:
- GET    /health                         - Liveness check
- GET    /species                        - Adoptable species
- POST   /pets                           - Adopt
- GET    /pets/{pet_id}                  - Pet with decay applied
- DELETE /pets/{pet_id}                  - Release (soft-retire)
- PUT    /pets/{pet_id}/favorite         - Mark favourite
- POST   /pets/{pet_id}/interactions     - Feed / play / pet / train
- GET    /pets/{pet_id}/interactions     - Interaction history
- GET    /pets/{pet_id}/evolution        - What's missing to evolve
- POST   /pets/{pet_id}/evolve           - Evolve
- GET    /users/{user_id}/pets           - A user's active pets
"""

import logging
from pathlib import Path

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..errors import (
    AdoptionError,
    EvolutionError,
    InvalidInteractionError,
    PetEngineError,
    PetNotFoundError,
    SpeciesNotFoundError,
    StaleStateError,
    StorageError,
)
from ..state import PetManager
from ..systems.mood import mood_info
from .schemas import (
    AdoptRequest,
    ErrorResponse,
    EvolutionCheckResponse,
    EvolveRequest,
    FavoriteRequest,
    HistoryEntry,
    HistoryResponse,
    InteractionRequest,
    InteractionResponse,
    PetListResponse,
    PetResponse,
    SpeciesListResponse,
)

logger = logging.getLogger(__name__)

# Engine error -> (HTTP status, error code). First isinstance match wins.
ERROR_STATUS: list[tuple[type[PetEngineError], int, str]] = [
    (PetNotFoundError, 404, "pet_not_found"),
    (SpeciesNotFoundError, 404, "species_not_found"),
    (AdoptionError, 422, "adoption_rejected"),
    (InvalidInteractionError, 422, "invalid_interaction"),
    (EvolutionError, 409, "evolution_refused"),
    (StaleStateError, 409, "stale_state"),
    (StorageError, 503, "storage_unavailable"),
]


def error_response(exc: PetEngineError) -> JSONResponse:
    """Map an engine error onto a status code and ErrorResponse body."""
    status, code = 400, "engine_error"
    for exc_type, exc_status, exc_code in ERROR_STATUS:
        if isinstance(exc, exc_type):
            status, code = exc_status, exc_code
            break

    details = {}
    if isinstance(exc, EvolutionError):
        details["missing_requirements"] = exc.missing_requirements

    if status >= 500:
        logger.error(f"Storage failure: {exc}")

    body = ErrorResponse(error=str(exc), code=code, details=details)
    return JSONResponse(status_code=status, content=body.model_dump())


def create_app(
    manager: PetManager | None = None,
    data_dir: Path | str = "data",
    catalog_path: Path | str | None = None,
) -> FastAPI:
    """
    Build the FastAPI app.

    Args:
        manager: Pre-built manager (tests inject one with memory stores)
        data_dir: Directory for JsonPetStore when no manager is given
        catalog_path: YAML catalog when no manager is given
    """
    if manager is None:
        manager = PetManager(store=data_dir, catalog=catalog_path)

    app = FastAPI(
        title="Companion Pet API",
        description="REST API for the companion pet simulation engine",
        version="1.0.0",
    )

    # CORS middleware for frontend access
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.manager = manager

    def get_manager() -> PetManager:
        return app.state.manager

    @app.exception_handler(PetEngineError)
    async def handle_engine_error(request: Request, exc: PetEngineError):
        return error_response(exc)

    # -------------------------------------------------------------------------
    # Catalog
    # -------------------------------------------------------------------------

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"ok": True, "service": "companion-api"}

    @app.get("/species", response_model=SpeciesListResponse)
    def list_species(manager: PetManager = Depends(get_manager)):
        return SpeciesListResponse(species=manager.list_available_species())

    # -------------------------------------------------------------------------
    # Pets
    # -------------------------------------------------------------------------

    @app.post("/pets", response_model=PetResponse, status_code=201)
    def adopt(request: AdoptRequest, manager: PetManager = Depends(get_manager)):
        pet = manager.adopt(request.user_id, request.species_id, request.custom_name)
        return PetResponse(pet=pet, mood_info=mood_info(pet.mood))

    @app.get("/pets/{pet_id}", response_model=PetResponse)
    def get_pet(pet_id: str, manager: PetManager = Depends(get_manager)):
        pet = manager.get_pet(pet_id)
        return PetResponse(pet=pet, mood_info=mood_info(pet.mood))

    @app.delete("/pets/{pet_id}", response_model=PetResponse)
    def release(pet_id: str, manager: PetManager = Depends(get_manager)):
        pet = manager.release(pet_id)
        return PetResponse(pet=pet, mood_info=mood_info(pet.mood))

    @app.put("/pets/{pet_id}/favorite", response_model=PetResponse)
    def set_favorite(
        pet_id: str,
        request: FavoriteRequest,
        manager: PetManager = Depends(get_manager),
    ):
        pet = manager.set_favorite(pet_id, request.favorite)
        return PetResponse(pet=pet, mood_info=mood_info(pet.mood))

    @app.get("/users/{user_id}/pets", response_model=PetListResponse)
    def user_pets(user_id: str, manager: PetManager = Depends(get_manager)):
        return PetListResponse(user_id=user_id, pets=manager.get_user_pets(user_id))

    # -------------------------------------------------------------------------
    # Interactions
    # -------------------------------------------------------------------------

    @app.post("/pets/{pet_id}/interactions", response_model=InteractionResponse)
    def interact(
        pet_id: str,
        request: InteractionRequest,
        manager: PetManager = Depends(get_manager),
    ):
        outcome = manager.resolve_interaction(
            pet_id, request.interaction_type, request.params
        )
        return InteractionResponse(
            pet=outcome.pet,
            result=outcome.result,
            record_id=outcome.record.id,
            mood_before=outcome.mood_before,
            mood_after=outcome.mood_after,
            leveled_up=outcome.leveled_up,
            bond_increased=outcome.bond_increased,
        )

    @app.get("/pets/{pet_id}/interactions", response_model=HistoryResponse)
    def history(
        pet_id: str,
        limit: int = Query(default=20, ge=1, le=500),
        manager: PetManager = Depends(get_manager),
    ):
        records = manager.get_interaction_history(pet_id, limit=limit)
        return HistoryResponse(
            pet_id=pet_id,
            interactions=[
                HistoryEntry(
                    id=r.id,
                    interaction_type=r.interaction_type.value,
                    stat_changes=r.stat_changes,
                    rewards=r.rewards,
                    details=r.details,
                    created_at=r.created_at,
                )
                for r in records
            ],
        )

    # -------------------------------------------------------------------------
    # Evolution
    # -------------------------------------------------------------------------

    @app.get("/pets/{pet_id}/evolution", response_model=EvolutionCheckResponse)
    def check_evolution(
        pet_id: str,
        items: list[str] = Query(default=[]),
        manager: PetManager = Depends(get_manager),
    ):
        check = manager.check_evolution(pet_id, items)
        return EvolutionCheckResponse(**check.model_dump())

    @app.post("/pets/{pet_id}/evolve", response_model=PetResponse)
    def evolve(
        pet_id: str,
        request: EvolveRequest | None = None,
        manager: PetManager = Depends(get_manager),
    ):
        items = request.items if request else []
        pet = manager.evolve(pet_id, items)
        return PetResponse(pet=pet, mood_info=mood_info(pet.mood))

    return app
