"""
Scoring Engine - Fansa time.

For each oshi (A, B, C, in that order) a die picks a spot off the
matching revealed card. Every placed oshi then pays out:

1. Basic split: 6 points shared by the pieces at the oshi's spot.
   floor(6/k) each; the first 6 % k occupants get one extra.
2. Gift doubling: a split share is doubled if its owner owns a gift
   (sashiire) piece anywhere.
3. Uchiwa bonus: +1 per uchiwa piece on a spot adjacent to the oshi.
4. Penlight bonus: +1 per penlight piece on the spot opposite the oshi.
"""

from __future__ import annotations
from dataclasses import dataclass

from .state import (
    Board,
    BoardSpot,
    FansaResult,
    FanserviceCard,
    GameSession,
    GoodsType,
    OshiId,
    OshiPiece,
    OtakuPiece,
    RoundResult,
)
from .board import adjacent_spots, opposite_spot, pieces_at
from .fanservice import map_dice_to_spot_index
from .ledger import add_points
from .rng import RandomSource

BASIC_POINTS = 6
OSHI_ORDER = (OshiId.A, OshiId.B, OshiId.C)


@dataclass
class OshiPlacement:
    """Where an oshi stands this round, and the roll that put it there."""
    oshi_id: OshiId
    spot_id: int
    dice_result: int
    card_id: str


@dataclass
class PointAward:
    """One scoring contribution to one player."""
    player_id: str
    points: int
    reason: str = ""


def place_oshi_pieces(revealed_cards: list[FanserviceCard], rng: RandomSource) -> list[OshiPlacement]:
    """Roll for each oshi in order; oshi i uses revealed card i."""
    placements = []
    for oshi_id, card in zip(OSHI_ORDER, revealed_cards):
        dice_result = rng.roll_die()
        spot_id = card.spots[map_dice_to_spot_index(dice_result)]
        placements.append(OshiPlacement(
            oshi_id=oshi_id,
            spot_id=spot_id,
            dice_result=dice_result,
            card_id=card.card_id,
        ))
    return placements


def calculate_basic_points(spot_id: int, pieces: list[OtakuPiece]) -> list[PointAward]:
    """Split BASIC_POINTS over the occupants, one award per piece in occupant order."""
    k = len(pieces)
    if k == 0:
        return []
    share, remainder = divmod(BASIC_POINTS, k)
    awards = []
    for index, piece in enumerate(pieces):
        points = share + 1 if index < remainder else share
        awards.append(PointAward(
            player_id=piece.player_id,
            points=points,
            reason=f"split at spot {spot_id} ({piece.piece_id})",
        ))
    return awards


def apply_gift_bonus(awards: list[PointAward], all_pieces: list[OtakuPiece]) -> list[PointAward]:
    """Double the split share of every player who owns a gift piece."""
    gift_owners = {p.player_id for p in all_pieces if p.goods == GoodsType.SASHIIRE}
    doubled = []
    for award in awards:
        if award.player_id in gift_owners:
            doubled.append(PointAward(
                player_id=award.player_id,
                points=award.points * 2,
                reason=f"{award.reason} x2 gift",
            ))
        else:
            doubled.append(award)
    return doubled


def calculate_uchiwa_bonus(state: GameSession, spot_id: int) -> list[PointAward]:
    awards = []
    for neighbour in adjacent_spots(spot_id):
        for piece in pieces_at(state, neighbour):
            if piece.goods == GoodsType.UCHIWA:
                awards.append(PointAward(
                    player_id=piece.player_id,
                    points=1,
                    reason=f"uchiwa at spot {neighbour} ({piece.piece_id})",
                ))
    return awards


def calculate_penlight_bonus(state: GameSession, spot_id: int) -> list[PointAward]:
    opposite = opposite_spot(spot_id)
    return [
        PointAward(
            player_id=piece.player_id,
            points=1,
            reason=f"penlight at spot {opposite} ({piece.piece_id})",
        )
        for piece in pieces_at(state, opposite)
        if piece.goods == GoodsType.PENLIGHT
    ]


def awards_for_placement(state: GameSession, placement: OshiPlacement) -> list[PointAward]:
    """Every contribution earned from one oshi's spot."""
    occupants = pieces_at(state, placement.spot_id)
    awards = apply_gift_bonus(
        calculate_basic_points(placement.spot_id, occupants),
        state.all_pieces(),
    )
    awards.extend(calculate_uchiwa_bonus(state, placement.spot_id))
    awards.extend(calculate_penlight_bonus(state, placement.spot_id))
    return awards


def calculate_fansa_points(state: GameSession, placements: list[OshiPlacement]) -> list[FansaResult]:
    """
    Sum the contributions of all placements per player.

    Every player gets a result, in player order; players who scored
    nothing get 0 and an empty breakdown.
    """
    totals = {pid: 0 for pid in state.player_ids}
    breakdowns: dict[str, list[str]] = {pid: [] for pid in state.player_ids}

    for placement in placements:
        for award in awards_for_placement(state, placement):
            if award.player_id not in totals:
                continue
            totals[award.player_id] += award.points
            breakdowns[award.player_id].append(
                f"oshi {placement.oshi_id.value}: +{award.points} {award.reason}"
            )

    return [
        FansaResult(player_id=pid, points_earned=totals[pid], breakdown=breakdowns[pid])
        for pid in state.player_ids
    ]


def _mark_oshi(board: Board, placements: list[OshiPlacement]) -> Board:
    # First oshi placed on a spot keeps the marker.
    markers = {}
    for placement in placements:
        markers.setdefault(placement.spot_id, placement.oshi_id)
    return Board(spots=[
        BoardSpot(
            spot_id=s.spot_id,
            position=s.position,
            piece_ids=list(s.piece_ids),
            oshi_id=markers.get(s.spot_id),
        )
        for s in board.spots
    ])


def process_fansa_time(state: GameSession, rng: RandomSource) -> GameSession:
    """
    Place the oshi, score the board, and record the round's fansa results.

    Assumes the round's reveal has been drawn.
    """
    placements = place_oshi_pieces(state.revealed_cards, rng)
    results = calculate_fansa_points(state, placements)

    new_state = state
    for result in results:
        player = new_state.get_player(result.player_id)
        new_state = new_state.with_player(add_points(player, result.points_earned))

    spot_by_oshi = {p.oshi_id: p.spot_id for p in placements}
    oshi_pieces = [
        OshiPiece(oshi_id=oshi.oshi_id, current_spot_id=spot_by_oshi.get(oshi.oshi_id))
        for oshi in state.oshi_pieces
    ]

    round_result = state.current_round_result() or RoundResult(round_number=state.current_round)
    new_state = new_state.with_round_result(RoundResult(
        round_number=round_result.round_number,
        labor_results=list(round_result.labor_results),
        oshikatsu_decisions=list(round_result.oshikatsu_decisions),
        fansa_results=results,
    ))

    return new_state._copy_with(
        oshi_pieces=oshi_pieces,
        board=_mark_oshi(new_state.board, placements),
        current_dice_result=placements[0].dice_result if placements else state.current_dice_result,
    )
