"""
Tests for session validation and repair.
"""

import pytest

from ..engine_core.state import Board, BoardSpot, GoodsType, SpotPosition, TurnState
from ..engine_core.errors import ErrorCode, GameStateCorruptionError, system_error, user_error, validation_error
from ..engine_core.phases import end_game
from ..engine_core.validation import (
    execute_error_recovery,
    recover_session,
    repair_session,
    validate_session,
)
from .conftest import equip_and_place


class TestValidateSession:
    def test_fresh_session_is_valid(self, two_player_session):
        result = validate_session(two_player_session)
        assert result.valid
        assert result.errors == []

    def test_ended_session_warns(self, two_player_session):
        result = validate_session(end_game(two_player_session))
        assert result.valid
        assert result.warnings == ["session has ended"]

    def test_active_index_out_of_range(self, two_player_session):
        result = validate_session(two_player_session._copy_with(active_player_index=4))
        assert not result.valid
        assert result.errors[0].code == ErrorCode.GAME_STATE_INCONSISTENCY

    def test_round_out_of_range(self, two_player_session):
        assert not validate_session(two_player_session._copy_with(current_round=9)).valid

    def test_missing_piece(self, two_player_session):
        player = two_player_session.players[0]
        broken = two_player_session.with_player(player._copy_with(otaku_pieces=player.otaku_pieces[:3]))

        result = validate_session(broken)
        assert not result.valid
        assert result.errors[0].player_id == "player-1"

    def test_negative_money(self, two_player_session):
        player = two_player_session.players[1]._copy_with(money=-1)
        assert not validate_session(two_player_session.with_player(player)).valid

    def test_unknown_occupant(self, two_player_session):
        spot = two_player_session.board.get_spot(2)
        board = two_player_session.board.with_spot(BoardSpot(2, spot.position, ["ghost"]))
        result = validate_session(two_player_session._copy_with(board=board))

        assert [e.code for e in result.errors] == [ErrorCode.INVALID_PIECE_ID]

    def test_shared_player_id(self, two_player_session):
        first = two_player_session.players[0]
        twin = first._copy_with(name="Ren")
        broken = two_player_session._copy_with(players=[first, twin])

        result = validate_session(broken)
        assert not result.valid
        contexts = [e.context for e in result.errors]
        assert {"duplicate_player_ids": ["player-1"]} in contexts
        assert any("duplicate_piece_ids" in c for c in contexts)

    def test_shared_piece_id(self, two_player_session):
        first, second = two_player_session.players
        stolen = second._copy_with(otaku_pieces=second.otaku_pieces[:3] + [first.otaku_pieces[0]])
        result = validate_session(two_player_session.with_player(stolen))

        assert not result.valid
        assert {"duplicate_piece_ids": ["player-1-otaku1"]} in [e.context for e in result.errors]

    def test_flags_must_match_players(self, two_player_session):
        broken = two_player_session._copy_with(turn_state=TurnState.fresh(["player-1"]))
        assert not validate_session(broken).valid


class TestRepair:
    """Repair rebuilds what can be derived and nothing else."""

    def test_clamps_active_index(self, two_player_session):
        repaired = repair_session(two_player_session._copy_with(active_player_index=7))
        assert repaired.active_player_index == 1
        assert validate_session(repaired).valid

    def test_rebuilds_flags(self, two_player_session):
        broken = two_player_session._copy_with(turn_state=TurnState(
            phase_actions={"player-1": True, "stranger": True},
            waiting_for_players=[],
        ))
        repaired = repair_session(broken)

        assert repaired.turn_state.phase_actions == {"player-1": True, "player-2": False}
        assert repaired.turn_state.waiting_for_players == ["player-2"]

    def test_rebuilds_board_keeping_spot_data(self, two_player_session):
        session = equip_and_place(two_player_session, "player-1-otaku1", GoodsType.UCHIWA, 5)
        board = Board(spots=[
            BoardSpot(5, SpotPosition(9, 9), ["player-1-otaku1", "ghost"]),
        ])
        repaired = repair_session(session._copy_with(board=board))

        assert [s.spot_id for s in repaired.board.spots] == list(range(8))
        assert repaired.board.get_spot(5).position == SpotPosition(1, 1)
        assert repaired.board.get_spot(5).piece_ids == ["player-1-otaku1"]
        assert validate_session(repaired).valid

    def test_recover_returns_valid_session_unchanged(self, two_player_session):
        assert recover_session(two_player_session) is two_player_session

    def test_recover_repairs(self, two_player_session):
        recovered = recover_session(two_player_session._copy_with(active_player_index=-1))
        assert recovered.active_player_index == 0

    def test_recover_raises_when_unrepairable(self, two_player_session):
        player = two_player_session.players[0]
        broken = two_player_session.with_player(player._copy_with(otaku_pieces=[]))

        with pytest.raises(GameStateCorruptionError) as exc_info:
            recover_session(broken)
        assert exc_info.value.errors


class TestErrorRecovery:
    @pytest.mark.parametrize("error,action", [
        (validation_error(ErrorCode.INVALID_SPOT_ID), "auto-repair"),
        (system_error(ErrorCode.HANDLER_ERROR), "minimal-repair"),
        (user_error(ErrorCode.SPOT_FULL), "display-error"),
    ])
    def test_recovery_by_kind(self, two_player_session, error, action):
        session, chosen = execute_error_recovery(two_player_session, error)
        assert chosen == action
        assert validate_session(session).valid

    def test_severity(self):
        assert user_error(ErrorCode.SPOT_FULL).severity == "low"
        assert validation_error(ErrorCode.INVALID_SPOT_ID).severity == "medium"
        assert system_error(ErrorCode.HANDLER_ERROR).severity == "high"
        assert system_error(ErrorCode.GAME_STATE_CORRUPTION).severity == "critical"
