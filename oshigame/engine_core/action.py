"""
Action System - Actions, payloads, and results.

Actions represent:
1. Player operations (select card, decide, buy goods, place a piece)
2. Round operations (roll for labor, reveal decisions, score fansa time)
3. Flow control (next phase, next turn, end round, end game)

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .errors import GameError
from .state import GameSession, GoodsType, OshikatsuDecision


class ActionType(Enum):
    """Types of actions in the system."""
    # Setup
    INITIALIZE_GAME = "initialize_game"

    # Player actions
    SELECT_REWARD_CARD = "select_reward_card"
    SELECT_OSHIKATSU_DECISION = "select_oshikatsu_decision"
    PURCHASE_GOODS = "purchase_goods"
    CREATE_KAGEBUNSHIN = "create_kagebunshin"
    MOVE_PIECE = "move_piece"
    SET_PLAYER_ACTION_COMPLETED = "set_player_action_completed"

    # Round actions
    ROLL_DICE_AND_PROCESS_LABOR = "roll_dice_and_process_labor"
    REVEAL_OSHIKATSU_DECISIONS = "reveal_oshikatsu_decisions"
    GENERATE_FANSERVICE_CARDS = "generate_fanservice_cards"
    PROCESS_FANSA_TIME = "process_fansa_time"

    # Flow control
    NEXT_PHASE = "next_phase"
    NEXT_TURN = "next_turn"
    END_ROUND = "end_round"
    END_GAME = "end_game"


@dataclass
class PlayerSetup:
    """One seat at the table, as given to initialize_game."""
    name: str
    player_id: str | None = None


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types have different payload shapes.
    This is a generic container; validation happens in the reducer.
    """
    player_id: str | None = None
    piece_id: str | None = None
    spot_id: int | None = None
    card_id: str | None = None
    decision: OshikatsuDecision | None = None
    goods: GoodsType | None = None
    completed: bool | None = None

    # For initialize_game
    players: list[PlayerSetup] | None = None

    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class Action:
    """
    A complete action to be applied to the session.

    Actions are:
    - Validated against the current phase before application
    - Applied atomically by the reducer
    - Recorded by the controller's log sink
    """
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)
    timestamp: float | None = None
    action_id: str | None = None

    @classmethod
    def initialize_game(cls, players: list[PlayerSetup]) -> Action:
        return cls(ActionType.INITIALIZE_GAME, ActionPayload(players=list(players)))

    @classmethod
    def select_reward_card(cls, player_id: str, card_id: str) -> Action:
        return cls(
            ActionType.SELECT_REWARD_CARD,
            ActionPayload(player_id=player_id, card_id=card_id),
        )

    @classmethod
    def roll_dice_and_process_labor(cls) -> Action:
        return cls(ActionType.ROLL_DICE_AND_PROCESS_LABOR)

    @classmethod
    def select_oshikatsu_decision(cls, player_id: str, decision: OshikatsuDecision) -> Action:
        return cls(
            ActionType.SELECT_OSHIKATSU_DECISION,
            ActionPayload(player_id=player_id, decision=decision),
        )

    @classmethod
    def reveal_oshikatsu_decisions(cls) -> Action:
        return cls(ActionType.REVEAL_OSHIKATSU_DECISIONS)

    @classmethod
    def generate_fanservice_cards(cls) -> Action:
        return cls(ActionType.GENERATE_FANSERVICE_CARDS)

    @classmethod
    def purchase_goods(cls, player_id: str, goods: GoodsType) -> Action:
        return cls(
            ActionType.PURCHASE_GOODS,
            ActionPayload(player_id=player_id, goods=goods),
        )

    @classmethod
    def create_kagebunshin(cls, player_id: str, piece_id: str) -> Action:
        return cls(
            ActionType.CREATE_KAGEBUNSHIN,
            ActionPayload(player_id=player_id, piece_id=piece_id),
        )

    @classmethod
    def move_piece(cls, piece_id: str, spot_id: int) -> Action:
        return cls(
            ActionType.MOVE_PIECE,
            ActionPayload(piece_id=piece_id, spot_id=spot_id),
        )

    @classmethod
    def process_fansa_time(cls) -> Action:
        return cls(ActionType.PROCESS_FANSA_TIME)

    @classmethod
    def set_player_action_completed(cls, player_id: str, completed: bool = True) -> Action:
        return cls(
            ActionType.SET_PLAYER_ACTION_COMPLETED,
            ActionPayload(player_id=player_id, completed=completed),
        )

    @classmethod
    def next_phase(cls) -> Action:
        return cls(ActionType.NEXT_PHASE)

    @classmethod
    def next_turn(cls) -> Action:
        return cls(ActionType.NEXT_TURN)

    @classmethod
    def end_round(cls) -> Action:
        return cls(ActionType.END_ROUND)

    @classmethod
    def end_game(cls) -> Action:
        return cls(ActionType.END_GAME)


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New session (if succeeded)
    - The structured error (if failed)
    - Human-readable changes (for the log and UI)
    """
    success: bool
    new_state: GameSession | None = None
    error: str | None = None
    error_code: str | None = None
    game_error: GameError | None = None

    state_changes: list[str] = field(default_factory=list)

    # Id of anything the action created (a kagebunshin clone)
    created_id: str | None = None

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: str | None = None,
        game_error: GameError | None = None,
    ) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code, game_error=game_error)

    @classmethod
    def from_error(cls, err: GameError) -> ActionResult:
        """Create a failure result from a structured GameError."""
        return cls.failure(err.message, error_code=err.code.value, game_error=err)

    @classmethod
    def success_with_state(
        cls,
        state: GameSession,
        changes: list[str] | None = None,
        created_id: str | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
            created_id=created_id,
        )
