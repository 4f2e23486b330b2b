"""
Tests for the fanservice card deck.
"""

import pytest

from ..engine_core.state import CardOrientation, CardRotation
from ..engine_core.errors import InvalidDiceError
from ..engine_core.rng import ScriptedRandom, SeededRandom
from ..engine_core.fanservice import (
    FANSERVICE_DECK,
    create_all_fanservice_cards,
    map_dice_to_spot_index,
    prepare_reveal,
    select_random_cards,
)


class TestDeck:
    def test_fifty_six_sorted_triples(self):
        cards = create_all_fanservice_cards()

        assert len(cards) == 56
        assert len({c.spots for c in cards}) == 56
        assert all(list(c.spots) == sorted(set(c.spots)) for c in cards)
        assert cards[0].card_id == "fanservice-card-1"
        assert cards[0].spots == (0, 1, 2)
        assert cards[-1].card_id == "fanservice-card-56"
        assert cards[-1].spots == (5, 6, 7)


class TestReveal:
    def test_three_distinct_cards(self):
        cards = select_random_cards(SeededRandom(11))
        assert len({c.card_id for c in cards}) == 3

    def test_reveal_randomizes_each_card(self):
        rng = ScriptedRandom(sample_indices=[[10, 20, 30]], choice_indices=[1, 2, 0, 3, 1, 1])
        cards = prepare_reveal(rng)

        assert [c.card_id for c in cards] == [
            FANSERVICE_DECK[10].card_id, FANSERVICE_DECK[20].card_id, FANSERVICE_DECK[30].card_id,
        ]
        assert [(c.orientation, c.rotation) for c in cards] == [
            (CardOrientation.BACK, CardRotation.DEG_180),
            (CardOrientation.FRONT, CardRotation.DEG_270),
            (CardOrientation.BACK, CardRotation.DEG_90),
        ]
        assert FANSERVICE_DECK[10].orientation == CardOrientation.FRONT

    def test_seeded_reveal_is_reproducible(self):
        assert prepare_reveal(SeededRandom(5)) == prepare_reveal(SeededRandom(5))


class TestDiceMapping:
    @pytest.mark.parametrize("die,index", [(1, 0), (2, 0), (3, 1), (4, 1), (5, 2), (6, 2)])
    def test_mapping(self, die, index):
        assert map_dice_to_spot_index(die) == index

    @pytest.mark.parametrize("die", [0, 7])
    def test_out_of_range(self, die):
        with pytest.raises(InvalidDiceError):
            map_dice_to_spot_index(die)
