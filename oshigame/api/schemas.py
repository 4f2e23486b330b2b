"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a table-side client and the
engine. Rule violations come back as ErrorResponse with the engine's
error code (INSUFFICIENT_FUNDS, SPOT_FULL, PHASE_MISMATCH, ...).

Error Codes added by the API layer:
- SESSION_NOT_FOUND: Session does not exist or was deleted
- VALIDATION_ERROR: Request body could not be used
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..engine_core.state import GoodsType, OshikatsuDecision
from ..session.history import GameStatus


class APIErrorCode(str, Enum):
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Request Models
# =============================================================================

class PlayerSeat(BaseModel):
    name: str
    player_id: Optional[str] = None


class CreateGameRequest(BaseModel):
    """Start a new game."""
    players: list[PlayerSeat] = Field(..., description="Seats in turn order (1-4)")
    session_id: Optional[str] = None


class SelectRewardCardRequest(BaseModel):
    player_id: str
    card_id: str = Field(..., description="card-A ... card-F")


class DecisionRequest(BaseModel):
    player_id: str
    decision: OshikatsuDecision


class PurchaseGoodsRequest(BaseModel):
    player_id: str
    goods: GoodsType


class KagebunshinRequest(BaseModel):
    player_id: str
    piece_id: str = Field(..., description="A piece holding sashiire")


class MovePieceRequest(BaseModel):
    piece_id: str
    spot_id: int = Field(..., description="Board spot 0-7")


class CompletionRequest(BaseModel):
    player_id: str
    completed: bool = True


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: str = Field(..., description="Machine-readable error code")
    severity: Optional[str] = Field(None, description="low, medium, high or critical")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class ActionResponse(BaseModel):
    """Outcome of an accepted operation."""
    success: bool = True
    session_id: str
    current_round: int
    current_phase: str
    active_player_id: str
    changes: list[str] = Field(default_factory=list)
    created_id: Optional[str] = Field(None, description="Id of a created kagebunshin")
    warnings: list[str] = Field(default_factory=list, description="Save or log failures; the action still applied")


class GameStateResponse(BaseModel):
    """The full session snapshot."""
    session_id: str
    current_round: int
    current_phase: str
    is_game_ended: bool
    waiting_for_players: list[str] = Field(default_factory=list)
    state: dict[str, Any] = Field(..., description="Serialized GameSession")


class PlayerScoreInfo(BaseModel):
    player_id: str
    player_name: str
    total_points: int
    rank: int

    model_config = {"from_attributes": True}


class FinalResultsResponse(BaseModel):
    session_id: str
    is_game_ended: bool
    final_scores: list[PlayerScoreInfo] = Field(default_factory=list)
    winners: list[PlayerScoreInfo] = Field(default_factory=list)
    highest_score: int = 0
    average_score: int = 0
    total_rounds: int = 8


class HistoryPlayerInfo(BaseModel):
    player_id: str
    name: str

    model_config = {"from_attributes": True}


class HistoryEntryInfo(BaseModel):
    """One game in the history index."""
    session_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    players: list[HistoryPlayerInfo] = Field(default_factory=list)
    rounds_reached: int
    status: GameStatus

    model_config = {"from_attributes": True}


class HistoryResponse(BaseModel):
    games: list[HistoryEntryInfo]
    count: int


class SessionListResponse(BaseModel):
    sessions: list[str]
    count: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
