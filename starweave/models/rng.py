"""Seeded linear-congruential random number generator.

Every random decision in galaxy generation goes through one of these, so a
seed plus an identical call sequence always reproduces the same galaxy.
Python's ``random.Random`` is deliberately not used: the recurrence below is
part of the save format, since saved galaxies are regenerated from their seed.
"""

from __future__ import annotations

import math
from typing import Sequence, TypeVar

T = TypeVar("T")

_MULTIPLIER = 9301
_INCREMENT = 49297
_MODULUS = 233280


class SeededRandom:
    """Deterministic uniform source. Not thread-safe."""

    def __init__(self, seed: int) -> None:
        self.seed = int(seed)
        self._state = self.seed

    def next(self) -> float:
        """Advance the recurrence and return a value in [0, 1)."""
        self._state = (self._state * _MULTIPLIER + _INCREMENT) % _MODULUS
        return self._state / _MODULUS

    def range(self, low: float, high: float) -> float:
        """Uniform value in [low, high)."""
        return low + self.next() * (high - low)

    def choice(self, items: Sequence[T]) -> T:
        if not items:
            raise IndexError("Cannot choose from an empty sequence")
        return items[math.floor(self.next() * len(items))]

    def integer(self, low: int, high: int) -> int:
        """Uniform integer in [low, high], inclusive."""
        return math.floor(self.range(low, high + 1))
