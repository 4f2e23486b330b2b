"""
Tests for the phase state machine and round lifecycle.
"""

import pytest

from ..engine_core.state import (
    FanserviceCard,
    GamePhase,
    GoodsType,
    OshiId,
    OshiPiece,
    OshikatsuDecision,
)
from ..engine_core.errors import ErrorCode
from ..engine_core.ledger import create_kagebunshin
from ..engine_core.phases import (
    calculate_final_results,
    can_advance_turn,
    can_transition_to_next_phase,
    cleanup_round_end,
    end_game,
    get_next_game_state,
    is_game_complete,
    next_phase,
    next_player_index,
    transition,
    validate_phase_action,
)
from .conftest import at_phase, equip_and_place


class TestPhaseOrder:
    def test_round_cycle(self):
        phase = GamePhase.SETUP
        seen = []
        for _ in range(7):
            phase = next_phase(phase)
            seen.append(phase)
        assert seen == [
            GamePhase.LABOR,
            GamePhase.OSHIKATSU_DECISION,
            GamePhase.OSHIKATSU_GOODS,
            GamePhase.OSHIKATSU_PLACEMENT,
            GamePhase.FANSA_TIME,
            GamePhase.ROUND_END,
            GamePhase.LABOR,
        ]

    def test_game_end_has_no_next_phase(self):
        with pytest.raises(ValueError):
            next_phase(GamePhase.GAME_END)

    @pytest.mark.parametrize("round_number,phase,expected", [
        (1, GamePhase.SETUP, (1, GamePhase.LABOR)),
        (3, GamePhase.ROUND_END, (4, GamePhase.LABOR)),
        (8, GamePhase.FANSA_TIME, (8, GamePhase.ROUND_END)),
        (8, GamePhase.ROUND_END, (8, GamePhase.GAME_END)),
        (9, GamePhase.LABOR, (9, GamePhase.GAME_END)),
        (5, GamePhase.GAME_END, (5, GamePhase.GAME_END)),
    ])
    def test_next_game_state(self, round_number, phase, expected):
        assert get_next_game_state(round_number, phase) == expected

    def test_game_complete(self):
        assert is_game_complete(8, GamePhase.ROUND_END)
        assert is_game_complete(9, GamePhase.LABOR)
        assert not is_game_complete(8, GamePhase.FANSA_TIME)
        assert not is_game_complete(2, GamePhase.ROUND_END)
        assert is_game_complete(2, GamePhase.ROUND_END, max_rounds=2)

    def test_next_player_index_wraps(self):
        assert next_player_index(0, 3) == 1
        assert next_player_index(2, 3) == 0


class TestTransitionGates:
    """Simultaneous phases wait for everyone; fansa time waits for the active player."""

    def test_simultaneous_needs_every_flag(self, labor_session):
        session = labor_session
        assert not can_transition_to_next_phase(session)

        session = session._copy_with(
            turn_state=session.turn_state.with_completed("player-1", True, session.player_ids)
        )
        assert not can_transition_to_next_phase(session)
        assert session.turn_state.waiting_for_players == ["player-2"]

        session = session._copy_with(
            turn_state=session.turn_state.with_completed("player-2", True, session.player_ids)
        )
        assert can_transition_to_next_phase(session)

    def test_turn_based_needs_active_flag_only(self, two_player_session):
        session = at_phase(two_player_session, GamePhase.FANSA_TIME)
        assert not can_transition_to_next_phase(session)
        assert not can_advance_turn(session)

        session = session._copy_with(
            turn_state=session.turn_state.with_completed("player-1", True, session.player_ids)
        )
        assert can_transition_to_next_phase(session)
        assert can_advance_turn(session)

    def test_setup_and_round_end_are_unconditional(self, two_player_session):
        assert can_transition_to_next_phase(two_player_session)
        assert can_transition_to_next_phase(at_phase(two_player_session, GamePhase.ROUND_END))
        assert not can_advance_turn(at_phase(two_player_session, GamePhase.ROUND_END))

    def test_game_end_is_terminal(self, two_player_session):
        assert not can_transition_to_next_phase(end_game(two_player_session))

    def test_phase_mismatch(self, labor_session):
        error = validate_phase_action(labor_session, "move_piece")
        assert error.code == ErrorCode.PHASE_MISMATCH
        assert error.context["required_phase"] == "oshikatsu-placement"
        assert validate_phase_action(labor_session, "select_reward_card") is None
        assert validate_phase_action(labor_session, "next_phase") is None

    def test_game_over(self, two_player_session):
        error = validate_phase_action(end_game(two_player_session), "next_phase")
        assert error.code == ErrorCode.GAME_OVER


class TestTransition:
    def test_entering_decision_clears_card_keeps_flags_fresh(self, labor_session):
        player = labor_session.players[0]._copy_with(selected_reward_card="card-A")
        session = labor_session.with_player(player)
        session = session._copy_with(
            turn_state=session.turn_state.with_completed("player-1", True, session.player_ids)
        )

        moved = transition(session)

        assert moved.current_phase == GamePhase.OSHIKATSU_DECISION
        assert moved.get_player("player-1").selected_reward_card is None
        assert moved.turn_state.phase_actions == {"player-1": False, "player-2": False}
        assert moved.turn_state.waiting_for_players == ["player-1", "player-2"]

    def test_active_index_is_kept(self, two_player_session):
        session = at_phase(two_player_session, GamePhase.FANSA_TIME, active_player_index=1)
        assert transition(session).active_player_index == 1

    def test_round_end_runs_cleanup(self, two_player_session):
        session = equip_and_place(two_player_session, "player-1-otaku1", GoodsType.SASHIIRE, 3)
        player, clone_id = create_kagebunshin(session.get_player("player-1"), "player-1-otaku1")
        session = session.with_player(player._copy_with(
            money=5, points=9, decision=OshikatsuDecision.REST,
        ))
        session = at_phase(
            session,
            GamePhase.ROUND_END,
            current_round=2,
            revealed_cards=[FanserviceCard(card_id="fanservice-card-1", spots=(0, 1, 2))],
            oshi_pieces=[OshiPiece(OshiId.A, 3), OshiPiece(OshiId.B, 0), OshiPiece(OshiId.C, None)],
            current_dice_result=4,
        )

        moved = transition(session)

        assert (moved.current_round, moved.current_phase) == (3, GamePhase.LABOR)
        aoi = moved.get_player("player-1")
        assert aoi.get_piece(clone_id) is None
        assert len(aoi.otaku_pieces) == 4
        assert aoi.get_piece("player-1-otaku1").goods == GoodsType.SASHIIRE
        assert aoi.get_piece("player-1-otaku1").board_spot_id is None
        assert (aoi.money, aoi.points, aoi.decision) == (5, 9, None)
        assert all(s.occupancy == 0 for s in moved.board.spots)
        assert all(o.current_spot_id is None for o in moved.oshi_pieces)
        assert moved.revealed_cards == []
        assert moved.current_dice_result is None

    def test_cleanup_keeps_goods(self, two_player_session):
        session = equip_and_place(two_player_session, "player-2-otaku2", GoodsType.PENLIGHT, 6)
        cleaned = cleanup_round_end(session)
        assert cleaned.get_piece("player-2-otaku2").goods == GoodsType.PENLIGHT

    def test_last_round_end_finishes_game(self, two_player_session):
        session = at_phase(two_player_session, GamePhase.ROUND_END, current_round=8)
        assert transition(session).current_phase == GamePhase.GAME_END


class TestFinalResults:
    """Ranking and stats."""

    def _players(self, session, points):
        return [p._copy_with(points=pts) for p, pts in zip(session.players, points)]

    def test_ranking_with_tie_for_first(self, three_player_session):
        players = self._players(three_player_session, [10, 7, 10])
        results = calculate_final_results(players)

        assert [(s.player_name, s.total_points, s.rank) for s in results.final_scores] == [
            ("Aoi", 10, 1),
            ("Mio", 10, 1),
            ("Ren", 7, 3),
        ]
        assert [w.player_name for w in results.winners] == ["Aoi", "Mio"]
        assert results.game_stats.highest_score == 10
        assert results.game_stats.average_score == 9
        assert results.game_stats.total_rounds == 8

    def test_average_rounds_half_up(self, two_player_session):
        results = calculate_final_results(self._players(two_player_session, [1, 2]))
        assert results.game_stats.average_score == 2

    def test_single_winner(self, two_player_session):
        results = calculate_final_results(self._players(two_player_session, [3, 12]))
        assert [w.player_id for w in results.winners] == ["player-2"]
        assert results.final_scores[1].rank == 2
