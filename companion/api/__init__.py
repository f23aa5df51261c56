"""
Companion HTTP API.

FastAPI transport over PetManager. Engine errors map onto HTTP status
codes in one place (server.ERROR_STATUS).
"""

from .server import create_app, error_response
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

__all__ = [
    "create_app",
    "error_response",
    "AdoptRequest",
    "ErrorResponse",
    "EvolutionCheckResponse",
    "EvolveRequest",
    "FavoriteRequest",
    "HistoryEntry",
    "HistoryResponse",
    "InteractionRequest",
    "InteractionResponse",
    "PetListResponse",
    "PetResponse",
    "SpeciesListResponse",
]
