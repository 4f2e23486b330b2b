"""
Bot Policy - How a stand-in player picks its next move.

The game loop asks the action generator for a seat's legal actions and
hands them to that seat's policy. Policies never see hidden information
beyond the session itself and never mutate it.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
import random

from ..engine_core.state import GameSession
from ..engine_core.action import Action


@dataclass
class BotDecision:
    """The chosen action, plus a note for the action log."""
    action: Action
    explanation: str = ""
    confidence: float = 1.0
    evaluated_actions: int = 0


class BotPolicy(ABC):
    """A seat's move chooser."""

    @abstractmethod
    def select_action(self, state: GameSession, legal_actions: list[Action]) -> BotDecision:
        """
        Choose one of `legal_actions` for the seat.

        Raises ValueError when there is nothing to choose from; the game
        loop only asks while the seat still has work in the phase.
        """

    def get_name(self) -> str:
        return type(self).__name__

    @staticmethod
    def _require_actions(legal_actions: list[Action]) -> None:
        if not legal_actions:
            raise ValueError("No legal actions available")


class RandomPolicy(BotPolicy):
    """
    Uniform choice over the legal actions.

    Seeded runs replay the same game when the engine's RandomSource is
    seeded too.
    """

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def select_action(self, state: GameSession, legal_actions: list[Action]) -> BotDecision:
        self._require_actions(legal_actions)
        picked = self.rng.choice(legal_actions)
        return BotDecision(
            action=picked,
            explanation=f"random pick of {picked.action_type.value}",
            confidence=1.0 / len(legal_actions),
            evaluated_actions=len(legal_actions),
        )


class FirstLegalPolicy(BotPolicy):
    # Generator order is deterministic: card A, participate, cheapest goods, lowest spot.

    def select_action(self, state: GameSession, legal_actions: list[Action]) -> BotDecision:
        self._require_actions(legal_actions)
        return BotDecision(
            action=legal_actions[0],
            explanation=f"first legal {legal_actions[0].action_type.value}",
            evaluated_actions=1,
        )
