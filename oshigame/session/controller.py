"""
Game Controller - The caller-facing surface of one local game.

The controller owns the current session snapshot and funnels every
operation through the reducer. After a snapshot is accepted it:
1. Appends an entry to the log sink
2. Saves the session through the session store
3. Updates the game history index

Failures in any side channel are logged and kept in
`side_channel_errors`; they never roll back the accepted snapshot.
"""

from __future__ import annotations
from enum import Enum
from typing import Any
import logging

from ..config import GameConfig
from ..engine_core.state import (
    GamePhase,
    GameSession,
    GoodsType,
    OshikatsuDecision,
    OtakuPiece,
    Player,
)
from ..engine_core.action import Action, ActionPayload, ActionResult, PlayerSetup
from ..engine_core.errors import GameError
from ..engine_core.ledger import available_pieces
from ..engine_core.phases import FinalResults, calculate_final_results
from ..engine_core.reducer import Reducer
from ..engine_core.rng import RandomSource, SeededRandom
from ..engine_core.validation import recover_session
from .history import GameHistory
from .log_sink import GameLogEntry, LogSink
from .persistence import SessionStore

logger = logging.getLogger(__name__)


def _payload_data(payload: ActionPayload) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for name in ("player_id", "piece_id", "spot_id", "card_id", "decision", "goods", "completed"):
        value = getattr(payload, name)
        if value is None:
            continue
        data[name] = value.value if isinstance(value, Enum) else value
    if payload.players:
        data["players"] = [p.name for p in payload.players]
    return data


class GameController:
    """
    Runs one game session for a local table.

    Usage:
        controller = GameController(store=FileSessionStore(path))
        controller.initialize_game(["Aoi", "Ren"])
        controller.select_reward_card("player-1", "card-A")
        ...
    """

    def __init__(
        self,
        store: SessionStore | None = None,
        log_sink: LogSink | None = None,
        config: GameConfig | None = None,
        rng: RandomSource | None = None,
        history: GameHistory | None = None,
    ):
        self.config = config or GameConfig()
        self.reducer = Reducer(config=self.config, rng=rng or SeededRandom())
        self.store = store
        self.log_sink = log_sink
        self.history = history

        self.session: GameSession | None = None
        self.last_error: GameError | None = None
        self.side_channel_errors: list[str] = []

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, action: Action) -> ActionResult:
        """Apply an action; keep the new snapshot only if it was accepted."""
        result = self.reducer.apply(self.session, action)
        if not result.success:
            self.last_error = result.game_error
            return result

        self.last_error = None
        self.session = result.new_state
        self._record(action, result)
        self._save()
        return result

    def _record(self, action: Action, result: ActionResult) -> None:
        if self.log_sink is None:
            return
        data = _payload_data(action.payload)
        data["changes"] = result.state_changes
        entry = GameLogEntry(
            session_id=self.session.session_id,
            action=action.action_type.value,
            round_number=self.session.current_round,
            phase=self.session.current_phase,
            player_id=action.payload.player_id,
            data=data,
        )
        try:
            self.log_sink.append(entry)
        except Exception as e:
            logger.warning("Failed to log %s: %s", action.action_type.value, e)
            self.side_channel_errors.append(f"log: {e}")

    def _save(self) -> None:
        if self.store is not None:
            try:
                self.store.save(self.session)
            except Exception as e:
                logger.warning("Failed to save session %s: %s", self.session.session_id, e)
                self.side_channel_errors.append(f"save: {e}")
        if self.history is not None:
            try:
                self.history.record(self.session)
            except Exception as e:
                logger.warning("Failed to update history for %s: %s", self.session.session_id, e)
                self.side_channel_errors.append(f"history: {e}")

    def attach_store(self, store: SessionStore) -> None:
        """Save through `store` from now on, starting with the current session."""
        self.store = store
        if self.session is not None:
            self._save()

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def load(self) -> GameSession | None:
        """
        Load the saved session, repairing it if needed.

        Raises GameStateCorruptionError if the save is damaged beyond repair.
        """
        if self.store is None:
            return None
        loaded = self.store.load()
        if loaded is None:
            return None
        self.session = recover_session(loaded, self.config.pieces_per_player, self.config.max_rounds)
        return self.session

    def initialize_game(
        self,
        players: list[PlayerSetup | str],
        session_id: str | None = None,
    ) -> ActionResult:
        setups = [PlayerSetup(name=p) if isinstance(p, str) else p for p in players]
        action = Action.initialize_game(setups)
        if session_id:
            action.payload.params["session_id"] = session_id
        return self.dispatch(action)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def move_piece(self, piece_id: str, spot_id: int) -> ActionResult:
        return self.dispatch(Action.move_piece(piece_id, spot_id))

    def select_reward_card(self, player_id: str, card_id: str) -> ActionResult:
        return self.dispatch(Action.select_reward_card(player_id, card_id))

    def roll_dice_and_process_labor(self) -> ActionResult:
        return self.dispatch(Action.roll_dice_and_process_labor())

    def select_oshikatsu_decision(self, player_id: str, decision: OshikatsuDecision | str) -> ActionResult:
        return self.dispatch(Action.select_oshikatsu_decision(player_id, decision))

    def reveal_oshikatsu_decisions(self) -> ActionResult:
        return self.dispatch(Action.reveal_oshikatsu_decisions())

    def generate_fanservice_cards(self) -> ActionResult:
        return self.dispatch(Action.generate_fanservice_cards())

    def purchase_goods(self, player_id: str, goods: GoodsType | str) -> bool:
        return self.dispatch(Action.purchase_goods(player_id, goods)).success

    def create_kagebunshin(self, player_id: str, piece_id: str) -> str | None:
        """Id of the new clone, or None if the piece cannot be cloned."""
        result = self.dispatch(Action.create_kagebunshin(player_id, piece_id))
        return result.created_id if result.success else None

    def process_fansa_time_phase(self) -> ActionResult:
        return self.dispatch(Action.process_fansa_time())

    def next_phase(self) -> ActionResult:
        return self.dispatch(Action.next_phase())

    def next_turn(self) -> ActionResult:
        return self.dispatch(Action.next_turn())

    def set_player_action_completed(self, player_id: str, completed: bool = True) -> ActionResult:
        return self.dispatch(Action.set_player_action_completed(player_id, completed))

    def end_round(self) -> ActionResult:
        return self.dispatch(Action.end_round())

    def end_game(self) -> ActionResult:
        return self.dispatch(Action.end_game())

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    def get_final_results(self) -> FinalResults | None:
        if self.session is None:
            return None
        return calculate_final_results(self.session.players, self.config.max_rounds)

    def is_game_ended(self) -> bool:
        return self.session is not None and self.session.current_phase == GamePhase.GAME_END

    def is_player_turn(self, player_id: str) -> bool:
        if self.session is None:
            return False
        return self.session.active_player.player_id == player_id

    def are_all_players_ready(self) -> bool:
        if self.session is None:
            return False
        return all(self.session.turn_state.is_completed(pid) for pid in self.session.player_ids)

    def get_current_player(self) -> Player | None:
        if self.session is None:
            return None
        return self.session.active_player

    def get_waiting_players(self) -> list[Player]:
        if self.session is None:
            return []
        waiting = set(self.session.turn_state.waiting_for_players)
        return [p for p in self.session.players if p.player_id in waiting]

    def get_available_otaku_pieces(self, player_id: str) -> list[OtakuPiece]:
        """Pieces of a player that are not on the board."""
        if self.session is None:
            return []
        player = self.session.get_player(player_id)
        return available_pieces(player) if player else []
