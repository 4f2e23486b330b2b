"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to controller calls
2. Keeps one GameController per session id
3. Formats responses

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from .schemas import (
    # Requests
    CreateGameRequest,
    SelectRewardCardRequest,
    DecisionRequest,
    PurchaseGoodsRequest,
    KagebunshinRequest,
    MovePieceRequest,
    CompletionRequest,
    # Responses
    ActionResponse,
    GameStateResponse,
    FinalResultsResponse,
    PlayerScoreInfo,
    ErrorResponse,
    HistoryEntryInfo,
    HistoryResponse,
    APIErrorCode,
)
from ..config import GameConfig
from ..engine_core.action import Action, ActionResult, PlayerSetup
from ..engine_core.rng import RandomSource, SeededRandom
from ..session import (
    FileSessionStore,
    GameController,
    GameHistory,
    InMemoryGameHistory,
    InMemoryLogSink,
    InMemorySessionStore,
    LogSink,
    SessionStore,
)
from ..session.serialization import session_to_dict


def in_memory_stores(session_id: str) -> SessionStore:
    return InMemorySessionStore()


def file_stores(save_dir: str | Path) -> Callable[[str], SessionStore]:
    """Store factory writing one save file per session under save_dir."""
    def factory(session_id: str) -> SessionStore:
        return FileSessionStore(Path(save_dir) / f"{session_id}.json")
    return factory


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        response = service.create_game(CreateGameRequest(players=[...]))
        service.select_reward_card(response.session_id, request)
    """
    config: GameConfig = field(default_factory=GameConfig)
    store_factory: Callable[[str], SessionStore] = in_memory_stores
    log_sink: LogSink = field(default_factory=InMemoryLogSink)
    seed: int | None = None
    history: GameHistory = field(default_factory=InMemoryGameHistory)

    _controllers: dict[str, GameController] = field(default_factory=dict)

    def _new_rng(self) -> RandomSource:
        return SeededRandom(self.seed)

    def _not_found(self, session_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"Session {session_id} not found",
            error_code=APIErrorCode.SESSION_NOT_FOUND.value,
        )

    def _result_to_response(
        self,
        controller: GameController,
        result: ActionResult,
        warnings_from: int = 0,
    ) -> ActionResponse | ErrorResponse:
        if not result.success:
            err = result.game_error
            return ErrorResponse(
                error=result.error or "Action rejected",
                error_code=result.error_code or APIErrorCode.INTERNAL_ERROR.value,
                severity=err.severity if err else None,
                details=err.context if err and err.context else None,
            )
        session = controller.session
        return ActionResponse(
            session_id=session.session_id,
            current_round=session.current_round,
            current_phase=session.current_phase.value,
            active_player_id=session.active_player.player_id,
            changes=result.state_changes,
            created_id=result.created_id,
            warnings=controller.side_channel_errors[warnings_from:],
        )

    def get_controller(self, session_id: str) -> GameController | None:
        return self._controllers.get(session_id)

    def create_game(self, request: CreateGameRequest) -> ActionResponse | ErrorResponse:
        """Start a new game and register its controller."""
        controller = GameController(
            log_sink=self.log_sink,
            config=self.config,
            rng=self._new_rng(),
            history=self.history,
        )
        seats = [PlayerSetup(name=p.name, player_id=p.player_id) for p in request.players]
        result = controller.initialize_game(seats, session_id=request.session_id)
        if result.success:
            session_id = controller.session.session_id
            controller.attach_store(self.store_factory(session_id))
            self._controllers[session_id] = controller
        return self._result_to_response(controller, result)

    def _run(self, session_id: str, call: Callable[[GameController], ActionResult]) -> ActionResponse | ErrorResponse:
        controller = self._controllers.get(session_id)
        if controller is None:
            return self._not_found(session_id)
        before = len(controller.side_channel_errors)
        return self._result_to_response(controller, call(controller), before)

    def select_reward_card(self, session_id: str, request: SelectRewardCardRequest):
        return self._run(session_id, lambda c: c.select_reward_card(request.player_id, request.card_id))

    def roll_dice_and_process_labor(self, session_id: str):
        return self._run(session_id, lambda c: c.roll_dice_and_process_labor())

    def select_oshikatsu_decision(self, session_id: str, request: DecisionRequest):
        return self._run(session_id, lambda c: c.select_oshikatsu_decision(request.player_id, request.decision))

    def reveal_oshikatsu_decisions(self, session_id: str):
        return self._run(session_id, lambda c: c.reveal_oshikatsu_decisions())

    def generate_fanservice_cards(self, session_id: str):
        return self._run(session_id, lambda c: c.generate_fanservice_cards())

    def purchase_goods(self, session_id: str, request: PurchaseGoodsRequest):
        # The controller helper returns a bool, so dispatch for the error.
        return self._run(session_id, lambda c: c.dispatch(Action.purchase_goods(request.player_id, request.goods)))

    def create_kagebunshin(self, session_id: str, request: KagebunshinRequest):
        return self._run(session_id, lambda c: c.dispatch(Action.create_kagebunshin(request.player_id, request.piece_id)))

    def move_piece(self, session_id: str, request: MovePieceRequest):
        return self._run(session_id, lambda c: c.move_piece(request.piece_id, request.spot_id))

    def process_fansa_time(self, session_id: str):
        return self._run(session_id, lambda c: c.process_fansa_time_phase())

    def set_player_action_completed(self, session_id: str, request: CompletionRequest):
        return self._run(session_id, lambda c: c.set_player_action_completed(request.player_id, request.completed))

    def next_phase(self, session_id: str):
        return self._run(session_id, lambda c: c.next_phase())

    def next_turn(self, session_id: str):
        return self._run(session_id, lambda c: c.next_turn())

    def end_round(self, session_id: str):
        return self._run(session_id, lambda c: c.end_round())

    def end_game(self, session_id: str):
        return self._run(session_id, lambda c: c.end_game())

    def get_game_state(self, session_id: str) -> GameStateResponse | ErrorResponse:
        controller = self._controllers.get(session_id)
        if controller is None:
            return self._not_found(session_id)
        session = controller.session
        return GameStateResponse(
            session_id=session.session_id,
            current_round=session.current_round,
            current_phase=session.current_phase.value,
            is_game_ended=controller.is_game_ended(),
            waiting_for_players=list(session.turn_state.waiting_for_players),
            state=session_to_dict(session),
        )

    def get_final_results(self, session_id: str) -> FinalResultsResponse | ErrorResponse:
        controller = self._controllers.get(session_id)
        if controller is None:
            return self._not_found(session_id)
        results = controller.get_final_results()
        stats = results.game_stats
        return FinalResultsResponse(
            session_id=session_id,
            is_game_ended=controller.is_game_ended(),
            final_scores=[PlayerScoreInfo.model_validate(s) for s in results.final_scores],
            winners=[PlayerScoreInfo.model_validate(s) for s in results.winners],
            highest_score=stats.highest_score,
            average_score=stats.average_score,
            total_rounds=stats.total_rounds,
        )

    def delete_session(self, session_id: str) -> bool:
        controller = self._controllers.pop(session_id, None)
        if controller is None:
            return False
        if controller.store is not None:
            controller.store.clear()
        return True

    def list_sessions(self) -> list[str]:
        return list(self._controllers)

    def list_history(self) -> HistoryResponse:
        """Recent games, newest first."""
        entries = [HistoryEntryInfo.model_validate(e) for e in reversed(self.history.entries())]
        return HistoryResponse(games=entries, count=len(entries))
