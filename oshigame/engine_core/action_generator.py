"""
Action Generator - Generates the legal player actions for a session.

The action generator is used by:
1. Bots to enumerate possible moves
2. UI to show available actions
3. Validation (is this action in legal_actions?)

Design: Generates Action objects, not just action types.
Round-level actions (rolling for labor, revealing, scoring) are not
player choices and are driven by the game loop instead.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .state import GamePhase, GameSession, GoodsType, OshikatsuDecision, Player
from .action import Action, ActionType
from .board import SPOT_CAPACITY
from .ledger import (
    GOODS_PRICES,
    KAGEBUNSHIN_PRICE,
    eligible_piece_for_goods,
)
from .rewards import REWARD_CARDS
from ..config import GameConfig


@dataclass
class ActionGenerator:
    """
    Generates legal actions for one player in the current phase.

    Every list for a phase the player still has to finish ends with
    set_player_action_completed, so "done" is always an option.
    """
    config: GameConfig = field(default_factory=GameConfig)

    def generate_for_player(self, state: GameSession, player_id: str) -> list[Action]:
        player = state.get_player(player_id)
        if player is None or state.current_phase == GamePhase.GAME_END:
            return []
        if state.turn_state.is_completed(player_id):
            return []

        phase = state.current_phase
        if phase == GamePhase.LABOR:
            return self._generate_card_actions(player)
        if phase == GamePhase.OSHIKATSU_DECISION:
            return self._generate_decision_actions(player)
        if phase == GamePhase.OSHIKATSU_GOODS:
            return self._generate_goods_actions(player) + [self._done(player)]
        if phase == GamePhase.OSHIKATSU_PLACEMENT:
            return self._generate_placement_actions(state, player) + [self._done(player)]
        return []

    def _done(self, player: Player) -> Action:
        return Action.set_player_action_completed(player.player_id, True)

    def _generate_card_actions(self, player: Player) -> list[Action]:
        if player.selected_reward_card is not None:
            return []
        return [Action.select_reward_card(player.player_id, card.card_id) for card in REWARD_CARDS]

    def _generate_decision_actions(self, player: Player) -> list[Action]:
        return [
            Action.select_oshikatsu_decision(player.player_id, decision)
            for decision in OshikatsuDecision
        ]

    def _generate_goods_actions(self, player: Player) -> list[Action]:
        actions = []
        if eligible_piece_for_goods(player) is not None:
            for goods, price in GOODS_PRICES.items():
                if player.money >= price:
                    actions.append(Action.purchase_goods(player.player_id, goods))

        if self.config.charge_for_kagebunshin and player.money < KAGEBUNSHIN_PRICE:
            return actions
        # At most one clone per gift piece.
        cloned = {p.piece_id.split("-kage-")[0] for p in player.clone_pieces}
        for piece in player.regular_pieces:
            if piece.goods == GoodsType.SASHIIRE and piece.piece_id not in cloned:
                actions.append(Action.create_kagebunshin(player.player_id, piece.piece_id))
        return actions

    def _generate_placement_actions(self, state: GameSession, player: Player) -> list[Action]:
        actions = []
        open_spots = [s.spot_id for s in state.board.spots if s.occupancy < SPOT_CAPACITY]
        for piece in player.otaku_pieces:
            if piece.goods is None or piece.is_placed:
                continue
            for spot_id in open_spots:
                actions.append(Action.move_piece(piece.piece_id, spot_id))
        return actions


def legal_actions(state: GameSession, player_id: str, config: GameConfig | None = None) -> list[Action]:
    """
    Convenience function to get legal actions.

    Creates an ActionGenerator and generates actions.
    """
    generator = ActionGenerator(config=config or GameConfig())
    return generator.generate_for_player(state, player_id)


def is_legal(state: GameSession, action: Action, config: GameConfig | None = None) -> bool:
    """Check if a specific player action is among the generated ones."""
    player_id = action.payload.player_id
    if player_id is None and action.action_type == ActionType.MOVE_PIECE:
        piece = state.get_piece(action.payload.piece_id or "")
        player_id = piece.player_id if piece else None
    if player_id is None:
        return False
    for a in legal_actions(state, player_id, config):
        if a.action_type == action.action_type and a.payload == action.payload:
            return True
    return False
