"""
Turn & Phase State Machine - Phase order, transition gates, round lifecycle.

Round structure:

    setup -> labor -> oshikatsu-decision -> oshikatsu-goods
          -> oshikatsu-placement -> fansa-time -> round-end -> labor (round + 1)

Simultaneous phases wait for every player's completion flag; the
turn-based fansa-time waits only for the active player. After round 8's
round-end the game moves to the terminal game-end phase.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import math

from .state import (
    GamePhase,
    GameSession,
    OshiPiece,
    OtakuPiece,
    Player,
    TurnState,
)
from .board import clear_board
from .errors import ErrorCode, GameError, user_error

MAX_ROUNDS = 8

PHASE_ORDER: tuple[GamePhase, ...] = (
    GamePhase.SETUP,
    GamePhase.LABOR,
    GamePhase.OSHIKATSU_DECISION,
    GamePhase.OSHIKATSU_GOODS,
    GamePhase.OSHIKATSU_PLACEMENT,
    GamePhase.FANSA_TIME,
    GamePhase.ROUND_END,
)

SIMULTANEOUS_PHASES = frozenset({
    GamePhase.LABOR,
    GamePhase.OSHIKATSU_DECISION,
    GamePhase.OSHIKATSU_GOODS,
    GamePhase.OSHIKATSU_PLACEMENT,
})
TURN_BASED_PHASES = frozenset({GamePhase.FANSA_TIME})


def next_phase(phase: GamePhase) -> GamePhase:
    """The phase after `phase` in the round cycle. round-end wraps to labor."""
    if phase not in PHASE_ORDER:
        raise ValueError(f"Invalid phase: {phase}")
    index = PHASE_ORDER.index(phase)
    if index == len(PHASE_ORDER) - 1:
        return GamePhase.LABOR
    return PHASE_ORDER[index + 1]


def is_simultaneous_phase(phase: GamePhase) -> bool:
    return phase in SIMULTANEOUS_PHASES


def is_turn_based_phase(phase: GamePhase) -> bool:
    return phase in TURN_BASED_PHASES


def next_player_index(current_index: int, total_players: int) -> int:
    return (current_index + 1) % total_players


def can_transition_to_next_phase(state: GameSession) -> bool:
    if state.current_phase == GamePhase.GAME_END:
        return False
    if is_simultaneous_phase(state.current_phase):
        return all(state.turn_state.is_completed(pid) for pid in state.player_ids)
    if is_turn_based_phase(state.current_phase):
        return state.turn_state.is_completed(state.active_player.player_id)
    return True


def can_advance_turn(state: GameSession) -> bool:
    """Turns only advance in the turn-based phase, once the active player is done."""
    if not is_turn_based_phase(state.current_phase):
        return False
    return state.turn_state.is_completed(state.active_player.player_id)


def is_game_complete(current_round: int, phase: GamePhase, max_rounds: int = MAX_ROUNDS) -> bool:
    if current_round > max_rounds:
        return True
    return current_round == max_rounds and phase == GamePhase.ROUND_END


def get_next_game_state(
    current_round: int,
    phase: GamePhase,
    max_rounds: int = MAX_ROUNDS,
) -> tuple[int, GamePhase]:
    """(round, phase) after one transition from (current_round, phase)."""
    if phase == GamePhase.GAME_END or is_game_complete(current_round, phase, max_rounds):
        return current_round, GamePhase.GAME_END
    following = next_phase(phase)
    if phase == GamePhase.ROUND_END:
        return current_round + 1, following
    return current_round, following


def _clear_selections(player: Player, destination: GamePhase) -> Player:
    if destination == GamePhase.OSHIKATSU_DECISION:
        return player._copy_with(selected_reward_card=None)
    if destination == GamePhase.LABOR:
        return player._copy_with(selected_reward_card=None, decision=None)
    return player


def cleanup_round_end(state: GameSession) -> GameSession:
    """
    Reset the board for a new round.

    Clones are deleted, every piece leaves the board, oshi markers and the
    reveal are cleared, and round selections are dropped. Money, points
    and goods on pieces are kept.
    """
    players = []
    for player in state.players:
        pieces = [
            OtakuPiece(
                piece_id=piece.piece_id,
                player_id=piece.player_id,
                board_spot_id=None,
                goods=piece.goods,
                is_kagebunshin=False,
            )
            for piece in player.otaku_pieces
            if not piece.is_kagebunshin
        ]
        players.append(player._copy_with(
            otaku_pieces=pieces,
            selected_reward_card=None,
            decision=None,
        ))

    return state._copy_with(
        players=players,
        board=clear_board(state.board),
        oshi_pieces=[OshiPiece(oshi_id=o.oshi_id) for o in state.oshi_pieces],
        revealed_cards=[],
        current_dice_result=None,
    )


def transition(state: GameSession, max_rounds: int = MAX_ROUNDS) -> GameSession:
    """
    Move to the next phase, ignoring completion gates.

    Flags are reset and round selections are cleared for the
    destination phase. Leaving
    round-end into a new round runs the round cleanup.
    """
    new_round, destination = get_next_game_state(state.current_round, state.current_phase, max_rounds)

    new_state = state
    if state.current_phase == GamePhase.ROUND_END and destination == GamePhase.LABOR:
        new_state = cleanup_round_end(new_state)

    players = [_clear_selections(p, destination) for p in new_state.players]
    return new_state._copy_with(
        players=players,
        current_round=new_round,
        current_phase=destination,
        turn_state=TurnState.fresh(new_state.player_ids),
    )


def end_game(state: GameSession) -> GameSession:
    return state._copy_with(
        current_phase=GamePhase.GAME_END,
        turn_state=TurnState.fresh(state.player_ids),
    )


# Which phase each player operation belongs to.
PHASE_OPERATIONS: dict[str, GamePhase] = {
    "select_reward_card": GamePhase.LABOR,
    "roll_dice_and_process_labor": GamePhase.LABOR,
    "select_oshikatsu_decision": GamePhase.OSHIKATSU_DECISION,
    "reveal_oshikatsu_decisions": GamePhase.OSHIKATSU_DECISION,
    "purchase_goods": GamePhase.OSHIKATSU_GOODS,
    "create_kagebunshin": GamePhase.OSHIKATSU_GOODS,
    "move_piece": GamePhase.OSHIKATSU_PLACEMENT,
    "process_fansa_time": GamePhase.FANSA_TIME,
    "end_round": GamePhase.ROUND_END,
}


def validate_phase_action(state: GameSession, operation: str) -> GameError | None:
    """PHASE_MISMATCH unless `operation` is legal in the current phase."""
    if state.current_phase == GamePhase.GAME_END:
        return user_error(ErrorCode.GAME_OVER, operation=operation)
    required = PHASE_OPERATIONS.get(operation)
    if required is not None and required != state.current_phase:
        return user_error(
            ErrorCode.PHASE_MISMATCH,
            operation=operation,
            required_phase=required.value,
            current_phase=state.current_phase.value,
        )
    return None


@dataclass
class PlayerScore:
    player_id: str
    player_name: str
    total_points: int
    rank: int


@dataclass
class GameStats:
    highest_score: int
    average_score: int
    total_rounds: int


@dataclass
class FinalResults:
    final_scores: list[PlayerScore] = field(default_factory=list)
    winners: list[PlayerScore] = field(default_factory=list)
    game_stats: GameStats | None = None


def calculate_final_results(players: list[Player], total_rounds: int = MAX_ROUNDS) -> FinalResults:
    """
    Rank players by points, highest first.

    Every player tied for the top score is a winner. Tied players share
    a rank. The average is rounded half up.
    """
    ordered = sorted(players, key=lambda p: p.points, reverse=True)
    scores = []
    for index, player in enumerate(ordered):
        if scores and scores[-1].total_points == player.points:
            rank = scores[-1].rank
        else:
            rank = index + 1
        scores.append(PlayerScore(
            player_id=player.player_id,
            player_name=player.name,
            total_points=player.points,
            rank=rank,
        ))

    highest = scores[0].total_points if scores else 0
    average = math.floor(sum(p.points for p in players) / len(players) + 0.5) if players else 0
    return FinalResults(
        final_scores=scores,
        winners=[s for s in scores if s.total_points == highest],
        game_stats=GameStats(highest_score=highest, average_score=average, total_rounds=total_rounds),
    )

