"""
Tests for fansa time scoring.
"""

import pytest

from ..engine_core.state import FanserviceCard, GamePhase, GoodsType, OshiId, OtakuPiece
from ..engine_core.rng import ScriptedRandom
from ..engine_core.scoring import (
    OshiPlacement,
    PointAward,
    apply_gift_bonus,
    calculate_basic_points,
    calculate_fansa_points,
    place_oshi_pieces,
    process_fansa_time,
)
from .conftest import at_phase, equip, equip_and_place

CARDS = [
    FanserviceCard(card_id="fanservice-card-1", spots=(0, 1, 2)),
    FanserviceCard(card_id="fanservice-card-30", spots=(3, 4, 5)),
    FanserviceCard(card_id="fanservice-card-56", spots=(5, 6, 7)),
]


def pieces(n):
    return [OtakuPiece(piece_id=f"p{i}", player_id=f"player-{i}") for i in range(n)]


class TestBasicSplit:
    """Six points shared over the occupants of the oshi's spot."""

    @pytest.mark.parametrize("k,expected", [
        (1, [6]),
        (2, [3, 3]),
        (3, [2, 2, 2]),
        (4, [2, 2, 1, 1]),
        (5, [2, 1, 1, 1, 1]),
    ])
    def test_split(self, k, expected):
        awards = calculate_basic_points(0, pieces(k))
        assert [a.points for a in awards] == expected
        assert sum(a.points for a in awards) == 6

    def test_empty_spot(self):
        assert calculate_basic_points(0, []) == []


class TestGiftBonus:
    def test_owner_of_gift_doubles(self):
        gift = OtakuPiece(piece_id="g", player_id="player-1", goods=GoodsType.SASHIIRE)
        awards = [PointAward("player-1", 3), PointAward("player-2", 3)]

        doubled = apply_gift_bonus(awards, [gift])

        assert [a.points for a in doubled] == [6, 3]


class TestOshiPlacement:
    def test_dice_pick_card_spots(self):
        placements = place_oshi_pieces(CARDS, ScriptedRandom(dice=[1, 3, 6]))

        assert placements == [
            OshiPlacement(OshiId.A, 0, 1, "fanservice-card-1"),
            OshiPlacement(OshiId.B, 4, 3, "fanservice-card-30"),
            OshiPlacement(OshiId.C, 7, 6, "fanservice-card-56"),
        ]


class TestFansaPoints:
    """Full scoring of a board."""

    @pytest.fixture
    def board_session(self, two_player_session):
        # Aoi: uchiwa at 0. Ren: penlight at 4 (opposite 0, adjacent to 0).
        session = equip_and_place(two_player_session, "player-1-otaku1", GoodsType.UCHIWA, 0)
        session = equip_and_place(session, "player-2-otaku1", GoodsType.PENLIGHT, 4)
        return at_phase(session, GamePhase.FANSA_TIME, revealed_cards=list(CARDS))

    def test_split_uchiwa_and_penlight(self, board_session):
        placements = place_oshi_pieces(CARDS, ScriptedRandom(dice=[1, 3, 6]))
        results = calculate_fansa_points(board_session, placements)

        assert [(r.player_id, r.points_earned) for r in results] == [
            ("player-1", 7),
            ("player-2", 7),
        ]
        assert results[0].breakdown == [
            "oshi A: +6 split at spot 0 (player-1-otaku1)",
            "oshi B: +1 uchiwa at spot 0 (player-1-otaku1)",
        ]
        assert results[1].breakdown == [
            "oshi A: +1 penlight at spot 4 (player-2-otaku1)",
            "oshi B: +6 split at spot 4 (player-2-otaku1)",
        ]

    def test_gift_owner_share_doubled(self, two_player_session):
        session = equip_and_place(two_player_session, "player-1-otaku1", GoodsType.SASHIIRE, 2)
        session = equip_and_place(session, "player-2-otaku1", GoodsType.UCHIWA, 2)
        placements = [OshiPlacement(OshiId.A, 2, 1, "fanservice-card-1")]

        results = calculate_fansa_points(session, placements)

        assert [r.points_earned for r in results] == [6, 3]

    def test_gift_owned_off_the_spot_still_doubles(self, two_player_session):
        session = equip(two_player_session, "player-1-otaku2", GoodsType.SASHIIRE)
        session = equip_and_place(session, "player-1-otaku1", GoodsType.UCHIWA, 2)
        placements = [OshiPlacement(OshiId.A, 2, 1, "fanservice-card-1")]

        results = calculate_fansa_points(session, placements)

        assert results[0].points_earned == 12

    def test_players_who_scored_nothing_get_a_result(self, board_session):
        placements = [OshiPlacement(OshiId.C, 7, 6, "fanservice-card-56")]
        results = calculate_fansa_points(board_session, placements)

        assert [(r.player_id, r.points_earned, r.breakdown) for r in results] == [
            ("player-1", 0, []),
            ("player-2", 0, []),
        ]

    def test_process_fansa_time_updates_session(self, board_session):
        scored = process_fansa_time(board_session, ScriptedRandom(dice=[1, 3, 6]))

        assert scored.get_player("player-1").points == 7
        assert scored.get_player("player-2").points == 7
        assert [(o.oshi_id, o.current_spot_id) for o in scored.oshi_pieces] == [
            (OshiId.A, 0), (OshiId.B, 4), (OshiId.C, 7),
        ]
        assert scored.board.get_spot(0).oshi_id == OshiId.A
        assert scored.board.get_spot(7).oshi_id == OshiId.C
        assert scored.board.get_spot(1).oshi_id is None
        assert scored.current_dice_result == 1
        assert len(scored.current_round_result().fansa_results) == 2

    def test_shared_spot_keeps_first_marker(self, board_session):
        cards = [
            FanserviceCard(card_id="x", spots=(0, 1, 2)),
            FanserviceCard(card_id="y", spots=(0, 3, 5)),
            FanserviceCard(card_id="z", spots=(5, 6, 7)),
        ]
        session = board_session._copy_with(revealed_cards=cards)
        scored = process_fansa_time(session, ScriptedRandom(dice=[1, 2, 6]))

        assert scored.board.get_spot(0).oshi_id == OshiId.A
        # Two oshi on Aoi's spot: 6 + 6 split, Ren gets two penlight bonuses.
        assert scored.get_player("player-1").points == 12
        assert scored.get_player("player-2").points == 2
