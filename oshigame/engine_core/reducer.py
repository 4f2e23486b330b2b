"""
Reducer - Applies actions to game sessions.

The reducer is the single point of state mutation.
All state changes must go through apply_action().

Design principles:
- Pure function: (session, action) -> new session
- Validates before applying
- Returns ActionResult with success/failure
- Randomness comes from the injected RandomSource
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .state import (
    DecisionRecord,
    GamePhase,
    GameSession,
    GoodsType,
    OshikatsuDecision,
    RoundResult,
)
from .action import Action, ActionType, ActionResult
from .errors import ErrorCode, GameError, system_error, user_error, validation_error
from .rng import RandomSource, SeededRandom
from .board import place_piece, validate_piece_placement
from .fanservice import prepare_reveal
from .ledger import (
    adjust_money,
    create_kagebunshin,
    purchase_goods,
    validate_goods_purchase,
    validate_kagebunshin,
)
from .rewards import get_reward_card, labor_reward_for, process_labor, validate_dice_result
from .scoring import process_fansa_time
from .phases import (
    can_advance_turn,
    can_transition_to_next_phase,
    end_game,
    next_player_index,
    transition,
    validate_phase_action,
)
from .setup import create_session, validate_player_setups
from ..config import GameConfig

logger = logging.getLogger(__name__)

# Actions whose payload names a seated player.
PLAYER_ACTIONS = frozenset({
    ActionType.SELECT_REWARD_CARD,
    ActionType.SELECT_OSHIKATSU_DECISION,
    ActionType.PURCHASE_GOODS,
    ActionType.CREATE_KAGEBUNSHIN,
    ActionType.SET_PLAYER_ACTION_COMPLETED,
})

OSHIKATSU_PHASES = frozenset({
    GamePhase.OSHIKATSU_DECISION,
    GamePhase.OSHIKATSU_GOODS,
    GamePhase.OSHIKATSU_PLACEMENT,
})


@dataclass
class Reducer:
    """
    Reducer applies actions to game sessions.

    Stateless - all state is in GameSession.
    Config provides the rule constants; rng provides dice and draws.
    """
    config: GameConfig = field(default_factory=GameConfig)
    rng: RandomSource = field(default_factory=SeededRandom)

    def apply(self, state: GameSession | None, action: Action) -> ActionResult:
        """
        Apply an action to the session.

        Returns ActionResult with new session or error. A failed result
        never carries a session; the caller keeps the one it has.
        """
        if action.action_type == ActionType.INITIALIZE_GAME:
            return self._guarded(self._handle_initialize_game, state, action)

        if state is None:
            return self._reject(user_error(ErrorCode.NO_SESSION), action)

        # Validate action is legal
        error = self._validate_action(state, action)
        if error:
            return self._reject(error, action)

        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code=ErrorCode.HANDLER_ERROR.value,
            )
        return self._guarded(handler, state, action)

    def _guarded(self, handler, state: GameSession | None, action: Action) -> ActionResult:
        try:
            result = handler(state, action)
        except Exception as e:
            logger.exception("Handler for %s failed", action.action_type.value)
            return ActionResult.from_error(system_error(ErrorCode.HANDLER_ERROR, str(e) or None))
        if not result.success:
            logger.debug("Rejected %s: %s", action.action_type.value, result.error)
        return result

    def _reject(self, error: GameError, action: Action) -> ActionResult:
        logger.debug("Rejected %s: %s (%s)", action.action_type.value, error.message, error.code.value)
        return ActionResult.from_error(error)

    def _validate_action(self, state: GameSession, action: Action) -> GameError | None:
        """
        Validate that an action is legal in the current state.

        Returns the error if invalid, None if valid.
        """
        if state.current_phase == GamePhase.GAME_END:
            return user_error(ErrorCode.GAME_OVER)

        phase_error = validate_phase_action(state, action.action_type.value)
        if phase_error:
            return phase_error

        if action.action_type in PLAYER_ACTIONS:
            player_id = action.payload.player_id
            if player_id is None or state.get_player(player_id) is None:
                return validation_error(ErrorCode.INVALID_PLAYER_ID, player_id)

        return None

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.SELECT_REWARD_CARD: self._handle_select_reward_card,
            ActionType.ROLL_DICE_AND_PROCESS_LABOR: self._handle_roll_dice,
            ActionType.SELECT_OSHIKATSU_DECISION: self._handle_select_decision,
            ActionType.REVEAL_OSHIKATSU_DECISIONS: self._handle_reveal_decisions,
            ActionType.GENERATE_FANSERVICE_CARDS: self._handle_generate_fanservice_cards,
            ActionType.PURCHASE_GOODS: self._handle_purchase_goods,
            ActionType.CREATE_KAGEBUNSHIN: self._handle_create_kagebunshin,
            ActionType.MOVE_PIECE: self._handle_move_piece,
            ActionType.PROCESS_FANSA_TIME: self._handle_process_fansa_time,
            ActionType.SET_PLAYER_ACTION_COMPLETED: self._handle_set_completed,
            ActionType.NEXT_PHASE: self._handle_next_phase,
            ActionType.NEXT_TURN: self._handle_next_turn,
            ActionType.END_ROUND: self._handle_end_round,
            ActionType.END_GAME: self._handle_end_game,
        }
        return handlers.get(action_type)

    def _mark_completed(self, state: GameSession, player_id: str, completed: bool = True) -> GameSession:
        return state._copy_with(
            turn_state=state.turn_state.with_completed(player_id, completed, state.player_ids)
        )

    def _handle_initialize_game(self, state: GameSession | None, action: Action) -> ActionResult:
        setups = action.payload.players or []
        error = validate_player_setups(setups)
        if error:
            return ActionResult.from_error(error)

        new_state = create_session(
            setups,
            starting_money=self.config.starting_money,
            pieces_per_player=self.config.pieces_per_player,
            session_id=action.payload.params.get("session_id"),
        )
        names = ", ".join(p.name for p in new_state.players)
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Started game {new_state.session_id} with {names}"],
        )

    def _handle_select_reward_card(self, state: GameSession, action: Action) -> ActionResult:
        player = state.get_player(action.payload.player_id)
        if player.selected_reward_card is not None or state.turn_state.is_completed(player.player_id):
            return ActionResult.from_error(
                user_error(ErrorCode.ACTION_ALREADY_COMPLETED, player.player_id)
            )

        card = get_reward_card(action.payload.card_id or "")
        if card is None:
            return ActionResult.from_error(validation_error(
                ErrorCode.INVALID_CARD_SELECTION, player.player_id, card_id=action.payload.card_id
            ))

        new_state = state.with_player(player._copy_with(selected_reward_card=card.card_id))
        new_state = self._mark_completed(new_state, player.player_id)
        return ActionResult.success_with_state(
            new_state,
            changes=[f"{player.name} selected reward card {card.name}"],
        )

    def _handle_roll_dice(self, state: GameSession, action: Action) -> ActionResult:
        round_result = state.current_round_result()
        if round_result is not None and round_result.labor_results:
            return ActionResult.from_error(user_error(ErrorCode.ACTION_ALREADY_COMPLETED))

        missing = [p.player_id for p in state.players if p.selected_reward_card is None]
        if missing:
            return ActionResult.from_error(user_error(ErrorCode.PLAYERS_NOT_READY, waiting=missing))

        dice_result = self.rng.roll_die()
        error = validate_dice_result(dice_result)
        if error:
            return ActionResult.from_error(error)
        new_state = process_labor(state, dice_result)
        changes = [f"Labor dice rolled {dice_result}"]
        for labor in new_state.current_round_result().labor_results:
            changes.append(f"{labor.player_id} earned {labor.reward} with card {labor.selected_card}")
        return ActionResult.success_with_state(new_state, changes=changes)

    def _handle_select_decision(self, state: GameSession, action: Action) -> ActionResult:
        player = state.get_player(action.payload.player_id)
        decision = action.payload.decision
        if decision is None:
            return ActionResult.from_error(validation_error(ErrorCode.MISSING_REQUIRED_DATA, player.player_id))

        try:
            decision = OshikatsuDecision(decision)
        except ValueError:
            return ActionResult.from_error(
                user_error(ErrorCode.INVALID_DECISION, player.player_id, decision=str(decision))
            )

        round_result = state.current_round_result()
        if round_result is not None and round_result.oshikatsu_decisions:
            return ActionResult.from_error(user_error(ErrorCode.ACTION_ALREADY_COMPLETED, player.player_id))

        new_state = state.with_player(player._copy_with(decision=decision))
        new_state = self._mark_completed(new_state, player.player_id)
        return ActionResult.success_with_state(
            new_state,
            changes=[f"{player.name} made an oshikatsu decision"],
        )

    def _handle_reveal_decisions(self, state: GameSession, action: Action) -> ActionResult:
        round_result = state.current_round_result() or RoundResult(round_number=state.current_round)
        if round_result.oshikatsu_decisions:
            return ActionResult.from_error(user_error(ErrorCode.ACTION_ALREADY_COMPLETED))

        missing = [p.player_id for p in state.players if p.decision is None]
        if missing:
            return ActionResult.from_error(user_error(ErrorCode.PLAYERS_NOT_READY, waiting=missing))

        new_state = state
        changes = []
        for player in state.players:
            if player.decision == OshikatsuDecision.REST:
                bonus = labor_reward_for(state, player.player_id)
                new_state = new_state.with_player(adjust_money(player, bonus))
                changes.append(f"{player.name} rests and earns {bonus}")
            else:
                changes.append(f"{player.name} participates")

        new_state = new_state.with_round_result(RoundResult(
            round_number=round_result.round_number,
            labor_results=list(round_result.labor_results),
            oshikatsu_decisions=[DecisionRecord(p.player_id, p.decision) for p in state.players],
            fansa_results=list(round_result.fansa_results),
        ))
        return ActionResult.success_with_state(new_state, changes=changes)

    def _draw_reveal(self, state: GameSession) -> GameSession:
        return state._copy_with(revealed_cards=prepare_reveal(self.rng))

    def _handle_generate_fanservice_cards(self, state: GameSession, action: Action) -> ActionResult:
        if state.current_phase not in OSHIKATSU_PHASES:
            return ActionResult.from_error(user_error(
                ErrorCode.PHASE_MISMATCH,
                operation=action.action_type.value,
                current_phase=state.current_phase.value,
            ))
        if state.revealed_cards:
            return ActionResult.from_error(user_error(ErrorCode.ACTION_ALREADY_COMPLETED))

        new_state = self._draw_reveal(state)
        ids = ", ".join(c.card_id for c in new_state.revealed_cards)
        return ActionResult.success_with_state(new_state, changes=[f"Revealed fanservice cards {ids}"])

    def _handle_purchase_goods(self, state: GameSession, action: Action) -> ActionResult:
        player = state.get_player(action.payload.player_id)
        goods = action.payload.goods
        if goods is None:
            return ActionResult.from_error(validation_error(ErrorCode.MISSING_REQUIRED_DATA, player.player_id))

        try:
            goods = GoodsType(goods)
        except ValueError:
            return ActionResult.from_error(
                user_error(ErrorCode.INVALID_GOODS_TYPE, player.player_id, goods=str(goods))
            )
        error = validate_goods_purchase(player, goods)
        if error:
            return ActionResult.from_error(error)

        new_state = state.with_player(purchase_goods(player, goods))
        return ActionResult.success_with_state(
            new_state,
            changes=[f"{player.name} bought {goods.value}"],
        )

    def _handle_create_kagebunshin(self, state: GameSession, action: Action) -> ActionResult:
        player = state.get_player(action.payload.player_id)
        charge = self.config.charge_for_kagebunshin
        error = validate_kagebunshin(player, action.payload.piece_id or "", charge)
        if error:
            return ActionResult.from_error(error)

        new_player, clone_id = create_kagebunshin(player, action.payload.piece_id, charge)
        return ActionResult.success_with_state(
            state.with_player(new_player),
            changes=[f"{player.name} created kagebunshin {clone_id}"],
            created_id=clone_id,
        )

    def _handle_move_piece(self, state: GameSession, action: Action) -> ActionResult:
        piece_id = action.payload.piece_id or ""
        spot_id = action.payload.spot_id
        if spot_id is None:
            return ActionResult.from_error(validation_error(ErrorCode.MISSING_REQUIRED_DATA, piece_id=piece_id))

        error = validate_piece_placement(state, piece_id, spot_id)
        if error:
            return ActionResult.from_error(error)

        return ActionResult.success_with_state(
            place_piece(state, piece_id, spot_id),
            changes=[f"Moved {piece_id} to spot {spot_id}"],
        )

    def _handle_process_fansa_time(self, state: GameSession, action: Action) -> ActionResult:
        round_result = state.current_round_result()
        if round_result is not None and round_result.fansa_results:
            return ActionResult.from_error(user_error(ErrorCode.ACTION_ALREADY_COMPLETED))

        new_state = state if state.revealed_cards else self._draw_reveal(state)
        new_state = process_fansa_time(new_state, self.rng)
        new_state = self._mark_completed(new_state, state.active_player.player_id)

        changes = [
            f"Oshi {o.oshi_id.value} at spot {o.current_spot_id}"
            for o in new_state.oshi_pieces
            if o.current_spot_id is not None
        ]
        for result in new_state.current_round_result().fansa_results:
            changes.append(f"{result.player_id} earned {result.points_earned} points")
        return ActionResult.success_with_state(new_state, changes=changes)

    def _handle_set_completed(self, state: GameSession, action: Action) -> ActionResult:
        player_id = action.payload.player_id
        completed = True if action.payload.completed is None else action.payload.completed
        return ActionResult.success_with_state(
            self._mark_completed(state, player_id, completed),
            changes=[f"{player_id} {'completed' if completed else 'reopened'} {state.current_phase.value}"],
        )

    def _handle_next_phase(self, state: GameSession, action: Action) -> ActionResult:
        if not can_transition_to_next_phase(state):
            return ActionResult.from_error(user_error(
                ErrorCode.PHASE_NOT_COMPLETE,
                waiting=list(state.turn_state.waiting_for_players),
            ))
        return self._transition(state)

    def _transition(self, state: GameSession) -> ActionResult:
        new_state = transition(state, self.config.max_rounds)
        if new_state.current_phase == GamePhase.OSHIKATSU_GOODS and not new_state.revealed_cards:
            new_state = self._draw_reveal(new_state)

        if new_state.current_phase == GamePhase.GAME_END:
            change = "Game over"
        elif new_state.current_round != state.current_round:
            change = f"Round {new_state.current_round} begins"
        else:
            change = f"Phase {new_state.current_phase.value}"
        return ActionResult.success_with_state(new_state, changes=[change])

    def _handle_next_turn(self, state: GameSession, action: Action) -> ActionResult:
        if not can_advance_turn(state):
            return ActionResult.from_error(user_error(
                ErrorCode.NOT_PLAYER_TURN,
                state.active_player.player_id,
            ))
        index = next_player_index(state.active_player_index, state.num_players)
        new_state = state._copy_with(active_player_index=index)
        return ActionResult.success_with_state(
            new_state,
            changes=[f"{new_state.active_player.name}'s turn"],
        )

    def _handle_end_round(self, state: GameSession, action: Action) -> ActionResult:
        return self._transition(state)

    def _handle_end_game(self, state: GameSession, action: Action) -> ActionResult:
        return ActionResult.success_with_state(end_game(state), changes=["Game ended"])


def apply_action(
    state: GameSession | None,
    action: Action,
    config: GameConfig | None = None,
    rng: RandomSource | None = None,
) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer(config=config or GameConfig(), rng=rng or SeededRandom())
    return reducer.apply(state, action)
