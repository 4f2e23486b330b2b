"""
Tests for bots, the action generator and the automated game loop.
"""

import pytest

from ..config import GameConfig
from ..engine_core.state import GamePhase, GoodsType
from ..engine_core.action import Action, ActionType
from ..engine_core.action_generator import ActionGenerator, is_legal, legal_actions
from ..engine_core.ledger import create_kagebunshin
from ..engine_core.rng import SeededRandom
from ..engine_core.validation import validate_session
from ..bots import FirstLegalPolicy, RandomPolicy
from ..session import GameController, GameLoop, GameLoopError, InMemoryLogSink, LoopState
from .conftest import at_phase, equip, equip_and_place


class TestActionGenerator:
    """Legal actions per phase."""

    def test_labor_offers_every_card(self, labor_session):
        actions = legal_actions(labor_session, "player-1")
        assert [a.payload.card_id for a in actions] == [f"card-{x}" for x in "ABCDEF"]

    def test_decision_offers_both(self, two_player_session):
        session = at_phase(two_player_session, GamePhase.OSHIKATSU_DECISION)
        actions = legal_actions(session, "player-2")
        assert {a.payload.decision.value for a in actions} == {"participate", "rest"}

    def test_goods_are_affordable_and_end_with_done(self, goods_session):
        player = goods_session.get_player("player-1")._copy_with(money=1)
        session = goods_session.with_player(player)

        actions = legal_actions(session, "player-1")

        assert [a.payload.goods for a in actions[:-1]] == [GoodsType.UCHIWA, GoodsType.PENLIGHT]
        assert actions[-1].action_type == ActionType.SET_PLAYER_ACTION_COMPLETED

    def test_one_clone_per_gift_piece(self, goods_session):
        session = equip(goods_session, "player-1-otaku1", GoodsType.SASHIIRE)
        actions = legal_actions(session, "player-1")
        clone = Action.create_kagebunshin("player-1", "player-1-otaku1")
        assert is_legal(session, clone)

        player, _ = create_kagebunshin(session.get_player("player-1"), "player-1-otaku1")
        session = session.with_player(player)
        assert not is_legal(session, clone)
        assert any(a.action_type == ActionType.CREATE_KAGEBUNSHIN for a in actions)

    def test_charged_clone_needs_money(self, goods_session):
        session = equip(goods_session, "player-1-otaku1", GoodsType.SASHIIRE)
        session = session.with_player(session.get_player("player-1")._copy_with(money=2))
        actions = legal_actions(session, "player-1", GameConfig(charge_for_kagebunshin=True))
        assert all(a.action_type != ActionType.CREATE_KAGEBUNSHIN for a in actions)

    def test_placement_skips_full_spots(self, placement_session):
        session = placement_session
        for i in range(1, 4):
            session = equip_and_place(session, f"player-2-otaku{i}", GoodsType.UCHIWA, 0)
        session = equip(session, "player-1-otaku1", GoodsType.PENLIGHT)

        actions = legal_actions(session, "player-1")
        spots = [a.payload.spot_id for a in actions if a.action_type == ActionType.MOVE_PIECE]

        assert spots == list(range(1, 8))
        assert is_legal(session, Action.move_piece("player-1-otaku1", 3))
        assert not is_legal(session, Action.move_piece("player-1-otaku1", 0))

    def test_nothing_once_completed(self, labor_session):
        session = labor_session._copy_with(
            turn_state=labor_session.turn_state.with_completed("player-1", True, labor_session.player_ids)
        )
        assert ActionGenerator().generate_for_player(session, "player-1") == []

    def test_nothing_in_fansa_time(self, two_player_session):
        assert legal_actions(at_phase(two_player_session, GamePhase.FANSA_TIME), "player-1") == []


class TestPolicies:
    def test_first_legal(self, labor_session):
        actions = legal_actions(labor_session, "player-1")
        decision = FirstLegalPolicy().select_action(labor_session, actions)
        assert decision.action is actions[0]
        assert decision.evaluated_actions == 1

    def test_random_is_seeded(self, labor_session):
        actions = legal_actions(labor_session, "player-1")
        a = RandomPolicy(seed=4).select_action(labor_session, actions)
        b = RandomPolicy(seed=4).select_action(labor_session, actions)
        assert a.action is b.action
        assert a.confidence == pytest.approx(1 / 6)

    def test_no_actions(self, labor_session):
        with pytest.raises(ValueError):
            RandomPolicy().select_action(labor_session, [])
        assert FirstLegalPolicy().get_name() == "FirstLegalPolicy"


class TestGameLoop:
    """Bot-driven full games."""

    def _controller(self, names=("Aoi", "Ren"), seed=3, **config):
        controller = GameController(
            log_sink=InMemoryLogSink(),
            config=GameConfig(**config),
            rng=SeededRandom(seed),
        )
        controller.initialize_game(list(names), session_id="loop-game")
        return controller

    def test_full_game_first_legal(self):
        controller = self._controller()
        summary = GameLoop(controller).run_game()

        assert summary.loop_state == LoopState.GAME_OVER
        assert summary.rounds_played == 8
        assert controller.is_game_ended()
        assert len(summary.final_results.final_scores) == 2
        assert summary.rejected_actions == []
        assert validate_session(controller.session).valid

    @pytest.mark.parametrize("names", [("Aoi",), ("Aoi", "Ren", "Mio", "Sora")])
    def test_full_game_random(self, names):
        controller = self._controller(names=names, seed=11)
        summary = GameLoop(controller, default_policy=RandomPolicy(seed=11)).run_game()

        assert summary.loop_state == LoopState.GAME_OVER
        assert len(controller.session.round_history) == 8
        assert all(len(r.fansa_results) == len(names) for r in controller.session.round_history)

    def test_short_game(self):
        controller = self._controller(max_rounds=2)
        summary = GameLoop(controller).run_game()
        assert summary.rounds_played == 2
        assert summary.final_results.game_stats.total_rounds == 2

    def test_every_action_is_logged(self):
        controller = self._controller(max_rounds=1)
        summary = GameLoop(controller).run_game()

        entries = controller.log_sink.entries("loop-game")
        # initialize_game is logged by the controller before the loop starts
        assert len(entries) == summary.actions_applied + 1
        assert entries[-1].action == "next_phase"
        assert entries[-1].phase == GamePhase.GAME_END

    def test_per_player_policies(self):
        controller = self._controller()
        loop = GameLoop(controller, policies={"player-2": RandomPolicy(seed=1)})
        assert isinstance(loop.policy_for("player-1"), FirstLegalPolicy)
        assert isinstance(loop.policy_for("player-2"), RandomPolicy)

    def test_needs_a_session(self):
        with pytest.raises(GameLoopError):
            GameLoop(GameController()).run_game()
