"""
Random Sources - Injectable randomness for dice and card draws.

The reducer never calls the `random` module directly. It is handed a
RandomSource, so tests can script dice and draws while production code
uses a seeded (or unseeded) generator.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TypeVar
import random

T = TypeVar("T")


class RandomSource(ABC):
    """Randomness used by the rules engine."""

    @abstractmethod
    def roll_die(self) -> int:
        """Uniform integer in [1, 6]."""

    @abstractmethod
    def sample(self, population: Sequence[T], k: int) -> list[T]:
        """k distinct elements drawn uniformly without replacement."""

    @abstractmethod
    def choice(self, options: Sequence[T]) -> T:
        """One element drawn uniformly."""


class SeededRandom(RandomSource):
    """
    RandomSource backed by random.Random.

    With seed=None the sequence is non-deterministic.
    """

    def __init__(self, seed: int | None = None):
        self.seed = seed
        self._rng = random.Random(seed)

    def roll_die(self) -> int:
        return self._rng.randint(1, 6)

    def sample(self, population: Sequence[T], k: int) -> list[T]:
        return self._rng.sample(list(population), k)

    def choice(self, options: Sequence[T]) -> T:
        return self._rng.choice(list(options))


class ScriptedRandom(RandomSource):
    """
    RandomSource that replays fixed values. For tests.

    Dice come from `dice` in order. `sample` returns the elements at the
    scripted `sample_indices` (or the first k), and `choice` returns the
    element at the next scripted index (or the first).
    """

    def __init__(
        self,
        dice: Sequence[int] = (),
        sample_indices: Sequence[Sequence[int]] = (),
        choice_indices: Sequence[int] = (),
    ):
        self._dice = list(dice)
        self._samples = [list(s) for s in sample_indices]
        self._choices = list(choice_indices)

    def roll_die(self) -> int:
        if not self._dice:
            raise RuntimeError("ScriptedRandom ran out of dice")
        return self._dice.pop(0)

    def sample(self, population: Sequence[T], k: int) -> list[T]:
        items = list(population)
        if self._samples:
            indices = self._samples.pop(0)
            return [items[i] for i in indices[:k]]
        return items[:k]

    def choice(self, options: Sequence[T]) -> T:
        items = list(options)
        if self._choices:
            return items[self._choices.pop(0)]
        return items[0]
