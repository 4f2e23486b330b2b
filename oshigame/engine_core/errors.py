"""
Errors - Error kinds, codes and the GameError value.

Three kinds of error:
- user-input: the action is not allowed right now (funds, phase, turn, full spot).
  Returned as a failed ActionResult; the session is unchanged.
- validation: a structural invariant is broken in a session value.
  Repaired automatically where possible.
- system: unexpected internal failure or corrupt persisted data.
  Surfaced to the caller.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    USER_INPUT = "user-input"
    VALIDATION = "validation"
    SYSTEM = "system"


class ErrorCode(str, Enum):
    """Structured error codes."""
    # User input
    INVALID_PLAYER_COUNT = "INVALID_PLAYER_COUNT"
    DUPLICATE_PLAYER_NAME = "DUPLICATE_PLAYER_NAME"
    EMPTY_PLAYER_NAME = "EMPTY_PLAYER_NAME"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    NO_AVAILABLE_PIECES = "NO_AVAILABLE_PIECES"
    SPOT_FULL = "SPOT_FULL"
    INVALID_PIECE_PLACEMENT = "INVALID_PIECE_PLACEMENT"
    NOT_PLAYER_TURN = "NOT_PLAYER_TURN"
    ACTION_ALREADY_COMPLETED = "ACTION_ALREADY_COMPLETED"
    PHASE_MISMATCH = "PHASE_MISMATCH"
    PHASE_NOT_COMPLETE = "PHASE_NOT_COMPLETE"
    PLAYERS_NOT_READY = "PLAYERS_NOT_READY"
    NOT_GIFT_PIECE = "NOT_GIFT_PIECE"
    INVALID_GOODS_TYPE = "INVALID_GOODS_TYPE"
    INVALID_DECISION = "INVALID_DECISION"
    GAME_OVER = "GAME_OVER"
    NO_SESSION = "NO_SESSION"

    # System
    GAME_STATE_CORRUPTION = "GAME_STATE_CORRUPTION"
    MISSING_REQUIRED_DATA = "MISSING_REQUIRED_DATA"
    SERIALIZATION_ERROR = "SERIALIZATION_ERROR"
    DESERIALIZATION_ERROR = "DESERIALIZATION_ERROR"
    HANDLER_ERROR = "HANDLER_ERROR"

    # Validation
    INVALID_DICE_RESULT = "INVALID_DICE_RESULT"
    INVALID_SPOT_ID = "INVALID_SPOT_ID"
    INVALID_PLAYER_ID = "INVALID_PLAYER_ID"
    INVALID_PIECE_ID = "INVALID_PIECE_ID"
    INVALID_CARD_SELECTION = "INVALID_CARD_SELECTION"
    INVALID_GAME_PHASE = "INVALID_GAME_PHASE"
    GAME_STATE_INCONSISTENCY = "GAME_STATE_INCONSISTENCY"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_PLAYER_COUNT: "Player count must be between 1 and 4",
    ErrorCode.DUPLICATE_PLAYER_NAME: "A player with that name already exists",
    ErrorCode.EMPTY_PLAYER_NAME: "Player name must not be empty",
    ErrorCode.INSUFFICIENT_FUNDS: "Not enough money",
    ErrorCode.NO_AVAILABLE_PIECES: "No otaku piece is available for goods",
    ErrorCode.SPOT_FULL: "This spot is full (3 pieces maximum)",
    ErrorCode.INVALID_PIECE_PLACEMENT: "Otaku pieces without goods cannot be placed",
    ErrorCode.NOT_PLAYER_TURN: "It is not this player's turn",
    ErrorCode.ACTION_ALREADY_COMPLETED: "This action has already been completed",
    ErrorCode.PHASE_MISMATCH: "This action is not allowed in the current phase",
    ErrorCode.PHASE_NOT_COMPLETE: "Not every required player has finished this phase",
    ErrorCode.PLAYERS_NOT_READY: "Waiting for other players",
    ErrorCode.NOT_GIFT_PIECE: "Only a piece holding a gift can make a kagebunshin",
    ErrorCode.INVALID_GOODS_TYPE: "Unknown goods (uchiwa, penlight or sashiire)",
    ErrorCode.INVALID_DECISION: "Unknown oshikatsu decision (participate or rest)",
    ErrorCode.GAME_OVER: "The game is over",
    ErrorCode.NO_SESSION: "No game has been started",
    ErrorCode.GAME_STATE_CORRUPTION: "Game state is corrupted",
    ErrorCode.MISSING_REQUIRED_DATA: "Required data is missing",
    ErrorCode.SERIALIZATION_ERROR: "Failed to save game data",
    ErrorCode.DESERIALIZATION_ERROR: "Failed to load game data",
    ErrorCode.HANDLER_ERROR: "Unexpected error while applying action",
    ErrorCode.INVALID_DICE_RESULT: "Dice result out of range (1-6)",
    ErrorCode.INVALID_SPOT_ID: "Spot id out of range (0-7)",
    ErrorCode.INVALID_PLAYER_ID: "Unknown player id",
    ErrorCode.INVALID_PIECE_ID: "Unknown otaku piece id",
    ErrorCode.INVALID_CARD_SELECTION: "Invalid card selection",
    ErrorCode.INVALID_GAME_PHASE: "Invalid game phase",
    ErrorCode.GAME_STATE_INCONSISTENCY: "Game state is inconsistent",
}


@dataclass
class GameError:
    """A structured error raised by a rule check or a state validation."""
    kind: ErrorKind
    code: ErrorCode
    message: str
    player_id: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def severity(self) -> str:
        """low / medium / high / critical, used by the UI to pick a display."""
        if self.kind == ErrorKind.USER_INPUT:
            return "low"
        if self.kind == ErrorKind.VALIDATION:
            return "medium"
        if self.code == ErrorCode.GAME_STATE_CORRUPTION:
            return "critical"
        return "high"

    def __str__(self) -> str:
        return self.message


def game_error(
    kind: ErrorKind,
    code: ErrorCode,
    player_id: str | None = None,
    message: str | None = None,
    **context: Any,
) -> GameError:
    """Build a GameError with the standard message for its code."""
    return GameError(
        kind=kind,
        code=code,
        message=message or ERROR_MESSAGES[code],
        player_id=player_id,
        context=context,
    )


def user_error(code: ErrorCode, player_id: str | None = None, **context: Any) -> GameError:
    return game_error(ErrorKind.USER_INPUT, code, player_id, **context)


def validation_error(code: ErrorCode, player_id: str | None = None, **context: Any) -> GameError:
    return game_error(ErrorKind.VALIDATION, code, player_id, **context)


def system_error(code: ErrorCode, message: str | None = None, **context: Any) -> GameError:
    return game_error(ErrorKind.SYSTEM, code, None, message, **context)


class GameStateCorruptionError(Exception):
    """Raised when a session value cannot be decoded or repaired."""

    def __init__(self, message: str, errors: list[GameError] | None = None):
        self.errors = errors or []
        super().__init__(message)


class InvalidDiceError(ValueError):
    """Raised when a die value outside 1-6 is passed to a rule function."""

    def __init__(self, dice_result: int):
        self.dice_result = dice_result
        super().__init__(f"Invalid dice result: {dice_result}")
