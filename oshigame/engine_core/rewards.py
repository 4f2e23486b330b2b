"""
Reward Engine - Labor-phase reward cards and dice lookup.
"""

from __future__ import annotations

from .state import GameSession, LaborResult, RewardCard, RoundResult
from .errors import ErrorCode, GameError, InvalidDiceError, validation_error
from .ledger import adjust_money

_REWARD_TABLE = {
    "A": (3, 2, 1, 0, 0, 0),
    "B": (2, 3, 2, 1, 0, 0),
    "C": (1, 2, 3, 2, 1, 0),
    "D": (0, 1, 2, 3, 2, 1),
    "E": (0, 0, 1, 2, 3, 2),
    "F": (0, 0, 0, 1, 2, 3),
}

REWARD_CARDS: list[RewardCard] = [
    RewardCard(
        card_id=f"card-{name}",
        name=name,
        rewards={face: payout for face, payout in enumerate(payouts, start=1)},
    )
    for name, payouts in _REWARD_TABLE.items()
]


def get_reward_card(card_id: str) -> RewardCard | None:
    for card in REWARD_CARDS:
        if card.card_id == card_id:
            return card
    return None


def is_valid_dice_result(dice_result: int) -> bool:
    return isinstance(dice_result, int) and 1 <= dice_result <= 6


def validate_dice_result(dice_result: int) -> GameError | None:
    if not is_valid_dice_result(dice_result):
        return validation_error(ErrorCode.INVALID_DICE_RESULT, dice_result=dice_result)
    return None


def calculate_labor_reward(card: RewardCard, dice_result: int) -> int:
    """Payout of a card for a die face. Raises InvalidDiceError outside 1-6."""
    if not is_valid_dice_result(dice_result):
        raise InvalidDiceError(dice_result)
    return card.rewards.get(dice_result, 0)


def process_labor(state: GameSession, dice_result: int) -> GameSession:
    """
    Pay every player for their selected card and record the labor results.

    Players with no selected card are skipped. The round's history entry
    is created if it does not exist yet.
    """
    round_result = state.current_round_result() or RoundResult(round_number=state.current_round)
    labor_results = list(round_result.labor_results)

    new_state = state
    for player in state.players:
        card = get_reward_card(player.selected_reward_card) if player.selected_reward_card else None
        if card is None:
            continue
        reward = calculate_labor_reward(card, dice_result)
        new_state = new_state.with_player(adjust_money(player, reward))
        labor_results.append(LaborResult(
            player_id=player.player_id,
            selected_card=card.name,
            dice_result=dice_result,
            reward=reward,
        ))

    updated = RoundResult(
        round_number=round_result.round_number,
        labor_results=labor_results,
        oshikatsu_decisions=list(round_result.oshikatsu_decisions),
        fansa_results=list(round_result.fansa_results),
    )
    return new_state.with_round_result(updated)._copy_with(current_dice_result=dice_result)


def labor_reward_for(state: GameSession, player_id: str) -> int:
    """The payout a player received in this round's labor, or 0."""
    round_result = state.current_round_result()
    if round_result is None:
        return 0
    for labor in round_result.labor_results:
        if labor.player_id == player_id:
            return labor.reward
    return 0
