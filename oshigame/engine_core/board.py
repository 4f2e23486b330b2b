"""
Board Placement - The 2x4 hanamichi board.

Spot ids run 0-7; row = id // 4, col = id % 4.

    row 0:  0  1  2  3
    row 1:  4  5  6  7

Each spot holds at most SPOT_CAPACITY otaku pieces.
"""

from __future__ import annotations

from .state import Board, BoardSpot, GameSession, OtakuPiece, SpotPosition
from .errors import ErrorCode, GameError, user_error, validation_error

BOARD_ROWS = 2
BOARD_COLS = 4
NUM_SPOTS = BOARD_ROWS * BOARD_COLS
SPOT_CAPACITY = 3


def spot_position(spot_id: int) -> SpotPosition:
    return SpotPosition(row=spot_id // BOARD_COLS, col=spot_id % BOARD_COLS)


def is_valid_spot_id(spot_id: int) -> bool:
    return isinstance(spot_id, int) and 0 <= spot_id < NUM_SPOTS


def create_spot(spot_id: int) -> BoardSpot:
    return BoardSpot(spot_id=spot_id, position=spot_position(spot_id))


def create_board() -> Board:
    """An empty board with the 8 canonical spots."""
    return Board(spots=[create_spot(i) for i in range(NUM_SPOTS)])


def adjacent_spots(spot_id: int) -> list[int]:
    """Up/down/left/right neighbours inside the grid (2 or 3 results on a 2x4 board)."""
    pos = spot_position(spot_id)
    neighbours = []
    for d_row, d_col in ((-1, 0), (1, 0), (0, -1), (0, 1)):
        row, col = pos.row + d_row, pos.col + d_col
        if 0 <= row < BOARD_ROWS and 0 <= col < BOARD_COLS:
            neighbours.append(row * BOARD_COLS + col)
    return neighbours


def opposite_spot(spot_id: int) -> int:
    """Same column, other row."""
    pos = spot_position(spot_id)
    other_row = (BOARD_ROWS - 1) - pos.row
    return other_row * BOARD_COLS + pos.col


def validate_spot_id(spot_id: int) -> GameError | None:
    if not is_valid_spot_id(spot_id):
        return validation_error(ErrorCode.INVALID_SPOT_ID, spot_id=spot_id)
    return None


def validate_piece_placement(state: GameSession, piece_id: str, spot_id: int) -> GameError | None:
    """
    Check a placement without applying it.

    Returns the first rule broken, or None if the piece may move there.
    """
    spot_error = validate_spot_id(spot_id)
    if spot_error:
        return spot_error

    piece = state.get_piece(piece_id)
    if piece is None:
        return validation_error(ErrorCode.INVALID_PIECE_ID, piece_id=piece_id)

    if piece.goods is None:
        return user_error(ErrorCode.INVALID_PIECE_PLACEMENT, piece.player_id, piece_id=piece_id)

    target = state.board.get_spot(spot_id)
    if target is None:
        return validation_error(ErrorCode.MISSING_REQUIRED_DATA, spot_id=spot_id)

    if target.occupancy >= SPOT_CAPACITY:
        return user_error(ErrorCode.SPOT_FULL, piece.player_id, spot_id=spot_id)

    return None


def place_piece(state: GameSession, piece_id: str, spot_id: int) -> GameSession:
    """
    Move a piece onto a spot. Assumes validate_piece_placement passed.

    The piece is removed from whatever spot held it, appended to the
    target's occupant list, and the owner's canonical piece is updated.
    """
    piece = state.get_piece(piece_id)
    new_spots = []
    for spot in state.board.spots:
        occupants = [pid for pid in spot.piece_ids if pid != piece_id]
        if spot.spot_id == spot_id:
            occupants.append(piece_id)
        new_spots.append(BoardSpot(
            spot_id=spot.spot_id,
            position=spot.position,
            piece_ids=occupants,
            oshi_id=spot.oshi_id,
        ))

    moved = OtakuPiece(
        piece_id=piece.piece_id,
        player_id=piece.player_id,
        board_spot_id=spot_id,
        goods=piece.goods,
        is_kagebunshin=piece.is_kagebunshin,
    )
    owner = state.get_player(piece.player_id)
    new_state = state.with_player(owner.with_piece(moved))
    return new_state._copy_with(board=Board(spots=new_spots))


def pieces_at(state: GameSession, spot_id: int) -> list[OtakuPiece]:
    """Occupants of a spot, in occupant order."""
    spot = state.board.get_spot(spot_id)
    if spot is None:
        return []
    by_id = state.pieces_by_id()
    return [by_id[pid] for pid in spot.piece_ids if pid in by_id]


def clear_board(board: Board) -> Board:
    """Remove every occupant and oshi marker, keeping spot ids and positions."""
    return Board(spots=[
        BoardSpot(spot_id=s.spot_id, position=s.position)
        for s in board.spots
    ])
