"""
Game Setup - Creates the initial session.

This module handles:
- Validating the seat list (1-4 players, unique non-empty names)
- Assigning ids and colors in seat order
- Giving every player their 4 otaku pieces and starting money
- Laying out the empty board and the three oshi
"""

from __future__ import annotations
import uuid

from .state import (
    GamePhase,
    GameSession,
    OshiPiece,
    OtakuPiece,
    Player,
    PlayerColor,
    TurnState,
)
from .action import PlayerSetup
from .board import create_board
from .errors import ErrorCode, GameError, user_error
from .scoring import OSHI_ORDER

MIN_PLAYERS = 1
MAX_PLAYERS = 4
PIECES_PER_PLAYER = 4
STARTING_MONEY = 3

PLAYER_COLORS = (PlayerColor.RED, PlayerColor.BLUE, PlayerColor.GREEN, PlayerColor.YELLOW)


def validate_player_count(count: int) -> GameError | None:
    if count < MIN_PLAYERS or count > MAX_PLAYERS:
        return user_error(ErrorCode.INVALID_PLAYER_COUNT, count=count)
    return None


def validate_player_name(name: str, existing_names: list[str]) -> GameError | None:
    """Names must be non-blank and unique ignoring case."""
    if not name or not name.strip():
        return user_error(ErrorCode.EMPTY_PLAYER_NAME)
    lowered = name.strip().lower()
    if any(lowered == other.strip().lower() for other in existing_names):
        return user_error(ErrorCode.DUPLICATE_PLAYER_NAME, name=name)
    return None


def validate_player_setups(setups: list[PlayerSetup]) -> GameError | None:
    """First problem with the seat list, or None."""
    count_error = validate_player_count(len(setups))
    if count_error:
        return count_error
    seen: list[str] = []
    for setup in setups:
        name_error = validate_player_name(setup.name, seen)
        if name_error:
            return name_error
        seen.append(setup.name)
    ids: set[str] = set()
    for player_id in resolve_player_ids(setups):
        if player_id in ids:
            return user_error(ErrorCode.INVALID_PLAYER_ID, player_id)
        ids.add(player_id)
    return None


def resolve_player_ids(setups: list[PlayerSetup]) -> list[str]:
    """Explicit ids as given; `player-N` by seat for the rest."""
    return [setup.player_id or f"player-{seat + 1}" for seat, setup in enumerate(setups)]


def create_otaku_pieces(player_id: str, count: int = PIECES_PER_PLAYER) -> list[OtakuPiece]:
    return [
        OtakuPiece(piece_id=f"{player_id}-otaku{i}", player_id=player_id)
        for i in range(1, count + 1)
    ]


def create_players(
    setups: list[PlayerSetup],
    starting_money: int = STARTING_MONEY,
    pieces_per_player: int = PIECES_PER_PLAYER,
) -> list[Player]:
    players = []
    for seat, (setup, player_id) in enumerate(zip(setups, resolve_player_ids(setups))):
        players.append(Player(
            player_id=player_id,
            name=setup.name.strip(),
            color=PLAYER_COLORS[seat],
            money=starting_money,
            points=0,
            otaku_pieces=create_otaku_pieces(player_id, pieces_per_player),
        ))
    return players


def create_session(
    setups: list[PlayerSetup],
    starting_money: int = STARTING_MONEY,
    pieces_per_player: int = PIECES_PER_PLAYER,
    session_id: str | None = None,
) -> GameSession:
    """
    Set up a new game.

    Args:
        setups: One entry per seat, in turn order
        starting_money: Money each player starts with
        pieces_per_player: Non-clone otaku pieces per player
        session_id: Fixed id (a fresh uuid if not given)

    Returns:
        Session in the setup phase, round 1

    Raises:
        ValueError: if the seat list is invalid
    """
    error = validate_player_setups(setups)
    if error:
        raise ValueError(error.message)

    players = create_players(setups, starting_money, pieces_per_player)
    return GameSession(
        session_id=session_id or f"game-{uuid.uuid4().hex[:12]}",
        players=players,
        current_round=1,
        current_phase=GamePhase.SETUP,
        active_player_index=0,
        board=create_board(),
        oshi_pieces=[OshiPiece(oshi_id=oshi_id) for oshi_id in OSHI_ORDER],
        turn_state=TurnState.fresh([p.player_id for p in players]),
    )
