"""
Fanservice Card System - Spot cards that decide where the oshi stand.

The deck is every sorted 3-subset of the 8 spot ids (8C3 = 56 cards).
Each round three distinct cards are revealed with a random orientation
and rotation. During fansa time a die picks one of a card's three spots.
"""

from __future__ import annotations
from itertools import combinations

from .state import CardOrientation, CardRotation, FanserviceCard
from .board import NUM_SPOTS
from .errors import InvalidDiceError
from .rng import RandomSource

CARDS_PER_REVEAL = 3


def spot_combinations() -> list[tuple[int, int, int]]:
    """All sorted 3-subsets of the spot ids, in lexicographic order."""
    return list(combinations(range(NUM_SPOTS), 3))


def create_all_fanservice_cards() -> list[FanserviceCard]:
    """The canonical 56-card deck, unrandomized (front, 0 degrees)."""
    return [
        FanserviceCard(card_id=f"fanservice-card-{i}", spots=spots)
        for i, spots in enumerate(spot_combinations(), start=1)
    ]


FANSERVICE_DECK: tuple[FanserviceCard, ...] = tuple(create_all_fanservice_cards())


def select_random_cards(rng: RandomSource, count: int = CARDS_PER_REVEAL) -> list[FanserviceCard]:
    """Draw `count` distinct cards from the deck."""
    return rng.sample(FANSERVICE_DECK, count)


def randomize_card(card: FanserviceCard, rng: RandomSource) -> FanserviceCard:
    """A copy of the card with independently drawn orientation and rotation."""
    return FanserviceCard(
        card_id=card.card_id,
        spots=card.spots,
        orientation=rng.choice(list(CardOrientation)),
        rotation=rng.choice(list(CardRotation)),
    )


def prepare_reveal(rng: RandomSource) -> list[FanserviceCard]:
    """The round's reveal: three distinct, randomized cards."""
    return [randomize_card(card, rng) for card in select_random_cards(rng)]


def map_dice_to_spot_index(dice_result: int) -> int:
    """
    Map a die face to an index into a card's spots.

    1-2 -> 0, 3-4 -> 1, 5-6 -> 2. Anything else raises InvalidDiceError.
    """
    if not isinstance(dice_result, int) or not 1 <= dice_result <= 6:
        raise InvalidDiceError(dice_result)
    return (dice_result - 1) // 2
