"""
Engine Core - Deterministic rules engine for the oshikatsu board game.

The engine is the runtime that:
1. Creates the session for 1-4 players
2. Gates operations by phase and turn
3. Applies actions via the reducer
4. Scores fansa time
5. Validates and repairs loaded sessions
"""

from .state import (
    GamePhase,
    GameSession,
    GoodsType,
    OshikatsuDecision,
    OtakuPiece,
    Player,
)
from .action import Action, ActionType, ActionPayload, ActionResult, PlayerSetup
from .errors import ErrorCode, ErrorKind, GameError, GameStateCorruptionError, InvalidDiceError
from .reducer import Reducer, apply_action
from .rng import RandomSource, ScriptedRandom, SeededRandom
from .validation import ValidationResult, recover_session, repair_session, validate_session

__all__ = [
    "GamePhase",
    "GameSession",
    "GoodsType",
    "OshikatsuDecision",
    "OtakuPiece",
    "Player",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "PlayerSetup",
    "ErrorCode",
    "ErrorKind",
    "GameError",
    "GameStateCorruptionError",
    "InvalidDiceError",
    "Reducer",
    "apply_action",
    "RandomSource",
    "ScriptedRandom",
    "SeededRandom",
    "ValidationResult",
    "recover_session",
    "repair_session",
    "validate_session",
]
