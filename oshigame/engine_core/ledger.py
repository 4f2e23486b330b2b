"""
Resource & Goods Ledger - Money and goods bookkeeping for a player.

Validation and application are separate: the reducer calls validate_*
first and only applies when no error is returned.
"""

from __future__ import annotations

from .state import GoodsType, OtakuPiece, Player
from .errors import ErrorCode, GameError, user_error, validation_error

GOODS_PRICES: dict[GoodsType, int] = {
    GoodsType.UCHIWA: 1,
    GoodsType.PENLIGHT: 1,
    GoodsType.SASHIIRE: 2,
}
KAGEBUNSHIN_PRICE = 3


def price_of(goods: GoodsType) -> int:
    return GOODS_PRICES[goods]


def adjust_money(player: Player, amount: int) -> Player:
    """Add (or subtract) money. The balance never goes below zero."""
    return player._copy_with(money=max(0, player.money + amount))


def add_points(player: Player, amount: int) -> Player:
    return player._copy_with(points=max(0, player.points + amount))


def available_pieces(player: Player) -> list[OtakuPiece]:
    """Pieces not currently on the board."""
    return [p for p in player.otaku_pieces if p.board_spot_id is None]


def eligible_piece_for_goods(player: Player) -> OtakuPiece | None:
    """First piece (by piece order) with no goods and no board spot."""
    for piece in player.otaku_pieces:
        if piece.goods is None and piece.board_spot_id is None:
            return piece
    return None


def validate_goods_purchase(player: Player, goods: GoodsType) -> GameError | None:
    price = price_of(goods)
    if player.money < price:
        return user_error(
            ErrorCode.INSUFFICIENT_FUNDS,
            player.player_id,
            required=price,
            available=player.money,
        )
    if eligible_piece_for_goods(player) is None:
        return user_error(ErrorCode.NO_AVAILABLE_PIECES, player.player_id)
    return None


def purchase_goods(player: Player, goods: GoodsType) -> Player:
    """Deduct the price and put the goods on the first eligible piece."""
    piece = eligible_piece_for_goods(player)
    equipped = OtakuPiece(
        piece_id=piece.piece_id,
        player_id=piece.player_id,
        board_spot_id=piece.board_spot_id,
        goods=goods,
        is_kagebunshin=piece.is_kagebunshin,
    )
    paid = adjust_money(player, -price_of(goods))
    return paid.with_piece(equipped)


def validate_kagebunshin(player: Player, piece_id: str, charge: bool = False) -> GameError | None:
    piece = player.get_piece(piece_id)
    if piece is None:
        return validation_error(ErrorCode.INVALID_PIECE_ID, player.player_id, piece_id=piece_id)
    if piece.goods != GoodsType.SASHIIRE:
        return user_error(ErrorCode.NOT_GIFT_PIECE, player.player_id, piece_id=piece_id)
    if charge and player.money < KAGEBUNSHIN_PRICE:
        return user_error(
            ErrorCode.INSUFFICIENT_FUNDS,
            player.player_id,
            required=KAGEBUNSHIN_PRICE,
            available=player.money,
        )
    return None


def next_kagebunshin_id(player: Player, piece_id: str) -> str:
    existing = {p.piece_id for p in player.otaku_pieces}
    n = len(player.clone_pieces) + 1
    while f"{piece_id}-kage-{n}" in existing:
        n += 1
    return f"{piece_id}-kage-{n}"


def create_kagebunshin(player: Player, piece_id: str, charge: bool = False) -> tuple[Player, str]:
    """
    Append a clone of a gift piece. Returns (new player, clone id).

    The clone carries the same goods and starts off the board.
    """
    original = player.get_piece(piece_id)
    clone_id = next_kagebunshin_id(player, piece_id)
    clone = OtakuPiece(
        piece_id=clone_id,
        player_id=player.player_id,
        board_spot_id=None,
        goods=original.goods,
        is_kagebunshin=True,
    )
    new_player = player._copy_with(otaku_pieces=[*player.otaku_pieces, clone])
    if charge:
        new_player = adjust_money(new_player, -KAGEBUNSHIN_PRICE)
    return new_player, clone_id
