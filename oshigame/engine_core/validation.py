"""
Session Validation - Structural checks and automatic repair.

Validates that:
1. Player count, active index and round are in range
2. The board has the 8 canonical spots, none over capacity
3. Player and piece ids are unique
4. Every player has exactly 4 non-clone pieces and non-negative totals
5. Completion flags cover exactly the seated players

Repair fixes what can be rebuilt from the rest of the session (active
index, flags, board layout). It never invents pieces or scores.
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field
import logging

from .state import Board, BoardSpot, GamePhase, GameSession, TurnState
from .board import NUM_SPOTS, SPOT_CAPACITY, spot_position
from .errors import (
    ErrorCode,
    ErrorKind,
    GameError,
    GameStateCorruptionError,
    validation_error,
)
from .phases import MAX_ROUNDS
from .setup import MAX_PLAYERS, MIN_PLAYERS, PIECES_PER_PLAYER

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[GameError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _inconsistency(player_id: str | None = None, **context) -> GameError:
    return validation_error(ErrorCode.GAME_STATE_INCONSISTENCY, player_id, **context)


def _duplicates(ids: list[str]) -> list[str]:
    return sorted(i for i, n in Counter(ids).items() if n > 1)


def validate_session(
    state: GameSession,
    pieces_per_player: int = PIECES_PER_PLAYER,
    max_rounds: int = MAX_ROUNDS,
) -> ValidationResult:
    """Check the structural invariants of a session. Never raises."""
    errors: list[GameError] = []
    warnings: list[str] = []

    if not MIN_PLAYERS <= len(state.players) <= MAX_PLAYERS:
        errors.append(validation_error(ErrorCode.INVALID_PLAYER_COUNT, count=len(state.players)))

    if not 0 <= state.active_player_index < max(len(state.players), 1):
        errors.append(_inconsistency(
            active_player_index=state.active_player_index,
            player_count=len(state.players),
        ))

    if not 1 <= state.current_round <= max_rounds:
        errors.append(_inconsistency(current_round=state.current_round))

    if not isinstance(state.current_phase, GamePhase):
        errors.append(validation_error(ErrorCode.INVALID_GAME_PHASE, phase=str(state.current_phase)))

    duplicate_players = _duplicates(state.player_ids)
    if duplicate_players:
        errors.append(_inconsistency(duplicate_player_ids=duplicate_players))
    duplicate_pieces = _duplicates([p.piece_id for player in state.players for p in player.otaku_pieces])
    if duplicate_pieces:
        errors.append(_inconsistency(duplicate_piece_ids=duplicate_pieces))

    errors.extend(_validate_board(state))

    for player in state.players:
        regular = len(player.regular_pieces)
        if regular != pieces_per_player:
            errors.append(_inconsistency(
                player.player_id,
                expected_pieces=pieces_per_player,
                actual_pieces=regular,
            ))
        if player.money < 0 or player.points < 0:
            errors.append(_inconsistency(player.player_id, money=player.money, points=player.points))
        for piece in player.otaku_pieces:
            if piece.board_spot_id is not None and piece.goods is None:
                errors.append(validation_error(
                    ErrorCode.INVALID_PIECE_PLACEMENT, player.player_id, piece_id=piece.piece_id
                ))

    flag_ids = set(state.turn_state.phase_actions)
    if flag_ids != set(state.player_ids):
        errors.append(_inconsistency(
            phase_action_ids=sorted(flag_ids),
            player_ids=sorted(state.player_ids),
        ))

    if state.current_phase == GamePhase.GAME_END:
        warnings.append("session has ended")

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def _validate_board(state: GameSession) -> list[GameError]:
    errors = []
    spots = state.board.spots
    ids = [s.spot_id for s in spots]
    if len(spots) != NUM_SPOTS or sorted(ids) != list(range(NUM_SPOTS)):
        errors.append(_inconsistency(spot_ids=ids))

    piece_ids = set(state.pieces_by_id())
    for spot in spots:
        if 0 <= spot.spot_id < NUM_SPOTS and spot.position != spot_position(spot.spot_id):
            errors.append(_inconsistency(spot_id=spot.spot_id, position=(spot.position.row, spot.position.col)))
        if spot.occupancy > SPOT_CAPACITY:
            errors.append(validation_error(ErrorCode.SPOT_FULL, spot_id=spot.spot_id, occupancy=spot.occupancy))
        unknown = [pid for pid in spot.piece_ids if pid not in piece_ids]
        if unknown:
            errors.append(validation_error(ErrorCode.INVALID_PIECE_ID, spot_id=spot.spot_id, piece_ids=unknown))
    return errors


def repair_session(state: GameSession) -> GameSession:
    """
    Rebuild the derivable parts of a session.

    - active index clamped into range
    - flags rebuilt for the seated players (unknown players incomplete),
      waiting list = incomplete players in seat order
    - board rebuilt to the 8 canonical spots, keeping the data of spots
      whose id matches and dropping occupants that are not real pieces
    """
    n = len(state.players)
    active = min(max(state.active_player_index, 0), max(n - 1, 0))

    flags = {pid: state.turn_state.phase_actions.get(pid) is True for pid in state.player_ids}
    turn_state = TurnState(
        phase_actions=flags,
        waiting_for_players=[pid for pid in state.player_ids if not flags[pid]],
    )

    return state._copy_with(
        active_player_index=active,
        turn_state=turn_state,
        board=_repair_board(state),
    )


def _repair_board(state: GameSession) -> Board:
    piece_ids = set(state.pieces_by_id())
    spots = []
    for spot_id in range(NUM_SPOTS):
        existing = state.board.get_spot(spot_id)
        if existing is None:
            spots.append(BoardSpot(spot_id=spot_id, position=spot_position(spot_id)))
            continue
        spots.append(BoardSpot(
            spot_id=spot_id,
            position=spot_position(spot_id),
            piece_ids=[pid for pid in existing.piece_ids if pid in piece_ids],
            oshi_id=existing.oshi_id,
        ))
    return Board(spots=spots)


def recover_session(
    state: GameSession,
    pieces_per_player: int = PIECES_PER_PLAYER,
    max_rounds: int = MAX_ROUNDS,
) -> GameSession:
    """
    Validate, repair if needed, and validate again.

    Raises GameStateCorruptionError when errors survive the repair.
    """
    result = validate_session(state, pieces_per_player, max_rounds)
    if result.valid:
        return state

    logger.warning(
        "Session %s failed validation with %d error(s); repairing",
        state.session_id, len(result.errors),
    )
    repaired = repair_session(state)
    after = validate_session(repaired, pieces_per_player, max_rounds)
    if not after.valid:
        raise GameStateCorruptionError(
            f"Session {state.session_id} could not be repaired: "
            + "; ".join(str(e.context or e.message) for e in after.errors),
            errors=after.errors,
        )
    return repaired


def execute_error_recovery(state: GameSession, error: GameError) -> tuple[GameSession, str]:
    """
    Pick a recovery for an error.

    validation -> auto-repair, system -> minimal-repair,
    user-input -> display-error (session untouched).
    """
    if error.kind == ErrorKind.VALIDATION:
        return repair_session(state), "auto-repair"
    if error.kind == ErrorKind.SYSTEM:
        return repair_session(state), "minimal-repair"
    return state, "display-error"
