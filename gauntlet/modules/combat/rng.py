"""
Seeded pseudo-random generator for reproducible encounters.

A linear congruential generator (Numerical Recipes constants) over 2**32.
Identical seeds yield identical infinite sequences, so a whole battle or an
arena opponent can be replayed from its seed alone. The generator touches no
global state.
"""

from __future__ import annotations

import math
import time
from typing import Optional

_MULTIPLIER = 1664525
_INCREMENT = 1013904223
_MODULUS = 4294967296


class SeededRNG:
    """
    Deterministic RNG.

    >>> a, b = SeededRNG(42), SeededRNG(42)
    >>> [a.next() for _ in range(3)] == [b.next() for _ in range(3)]
    True
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        if seed is None:
            seed = int(time.time() * 1000)
        self.initial_seed = int(seed)
        self._state = self.initial_seed % _MODULUS

    def next(self) -> float:
        """Advance the recurrence and return a float in [0, 1)."""
        self._state = (self._state * _MULTIPLIER + _INCREMENT) % _MODULUS
        return self._state / _MODULUS

    def __call__(self) -> float:
        return self.next()

    def next_float(self, low: float, high: float) -> float:
        """Uniform float in [low, high)."""
        return low + self.next() * (high - low)

    def next_int(self, low: int, high: int) -> int:
        """Uniform integer in [low, high] (both inclusive)."""
        return math.floor(self.next_float(low, high + 1))

    def choice(self, options):
        """Pick one element of a non-empty sequence."""
        return options[math.floor(self.next() * len(options))]
