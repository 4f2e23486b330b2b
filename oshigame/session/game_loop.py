"""
Game Loop - Automated play for test sessions.

The loop:
1. Asks each seated player's bot for actions in the simultaneous phases
2. Drives the round-level operations (labor dice, reveal, fansa time)
3. Advances the phase
4. Repeats until game-end

Used by the `simulate` command and by integration tests.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging

from ..engine_core.state import GamePhase
from ..engine_core.action import ActionResult
from ..engine_core.action_generator import ActionGenerator
from ..engine_core.phases import FinalResults
from ..bots import BotPolicy, FirstLegalPolicy
from .controller import GameController

logger = logging.getLogger(__name__)


class LoopState(Enum):
    """State of the game loop."""
    RUNNING = "running"
    GAME_OVER = "game_over"
    FAILED = "failed"


class GameLoopError(Exception):
    """Raised when a round-level operation the loop relies on is rejected."""


@dataclass
class GameSummary:
    session_id: str
    loop_state: LoopState
    rounds_played: int
    final_results: FinalResults | None = None
    actions_applied: int = 0
    rejected_actions: list[str] = field(default_factory=list)


class GameLoop:
    """
    The automated game driver.

    Usage:
        controller = GameController()
        controller.initialize_game(["Aoi", "Ren"])
        loop = GameLoop(controller, default_policy=RandomPolicy(seed=1))
        summary = loop.run_game()
    """

    def __init__(
        self,
        controller: GameController,
        policies: dict[str, BotPolicy] | None = None,
        default_policy: BotPolicy | None = None,
        max_actions_per_phase: int = 20,
    ):
        self.controller = controller
        self.policies = dict(policies or {})
        self.default_policy = default_policy or FirstLegalPolicy()
        self.max_actions_per_phase = max_actions_per_phase
        self.generator = ActionGenerator(config=controller.config)
        self.state = LoopState.RUNNING
        self.actions_applied = 0
        self.rejected_actions: list[str] = []

    def policy_for(self, player_id: str) -> BotPolicy:
        return self.policies.get(player_id, self.default_policy)

    def run_game(self) -> GameSummary:
        """Play from the current phase until the game ends."""
        if self.controller.session is None:
            raise GameLoopError("No game has been started")

        try:
            while not self.controller.is_game_ended():
                self.step_phase()
        except GameLoopError:
            self.state = LoopState.FAILED
            raise

        self.state = LoopState.GAME_OVER
        session = self.controller.session
        return GameSummary(
            session_id=session.session_id,
            loop_state=self.state,
            rounds_played=session.current_round,
            final_results=self.controller.get_final_results(),
            actions_applied=self.actions_applied,
            rejected_actions=list(self.rejected_actions),
        )

    def step_phase(self) -> None:
        """Finish the current phase and advance to the next one."""
        phase = self.controller.session.current_phase

        if phase == GamePhase.LABOR:
            self._play_all_players()
            self._require(self.controller.roll_dice_and_process_labor())
        elif phase == GamePhase.OSHIKATSU_DECISION:
            self._play_all_players()
            self._require(self.controller.reveal_oshikatsu_decisions())
        elif phase in (GamePhase.OSHIKATSU_GOODS, GamePhase.OSHIKATSU_PLACEMENT):
            self._play_all_players()
        elif phase == GamePhase.FANSA_TIME:
            self._require(self.controller.process_fansa_time_phase())

        self._require(self.controller.next_phase())

    def _require(self, result: ActionResult) -> ActionResult:
        if not result.success:
            raise GameLoopError(f"{result.error_code}: {result.error}")
        self.actions_applied += 1
        return result

    def _play_all_players(self) -> None:
        for player_id in self.controller.session.player_ids:
            self._play_until_done(player_id)

    def _play_until_done(self, player_id: str) -> None:
        """Let a player's bot act until it is done or out of actions for the phase."""
        for _ in range(self.max_actions_per_phase):
            session = self.controller.session
            if session.turn_state.is_completed(player_id):
                return
            actions = self.generator.generate_for_player(session, player_id)
            if not actions:
                break
            decision = self.policy_for(player_id).select_action(session, actions)
            result = self.controller.dispatch(decision.action)
            if result.success:
                self.actions_applied += 1
            else:
                logger.debug("Bot action rejected for %s: %s", player_id, result.error)
                self.rejected_actions.append(f"{decision.action.action_type.value}: {result.error}")

        if not self.controller.session.turn_state.is_completed(player_id):
            self._require(self.controller.set_player_action_completed(player_id, True))
