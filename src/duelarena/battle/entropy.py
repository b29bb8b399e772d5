"""Entropy sources for combat rolls."""

from __future__ import annotations

import random
import secrets
from typing import Optional, Protocol


class EntropySource(Protocol):
    """Supplies bounded random integers for combat rolls."""

    def roll(self, bound: int) -> int:
        """Return an integer N such that 0 <= N < bound."""
        ...


class SystemEntropy:
    """OS-backed generator, suitable when rolls must not be predictable."""

    def __init__(self) -> None:
        self._random = secrets.SystemRandom()

    def roll(self, bound: int) -> int:
        return self._random.randrange(bound)


class SeededEntropy:
    """Deterministic generator for simulations and replays."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self.seed = seed
        self._random = random.Random(seed)

    def roll(self, bound: int) -> int:
        return self._random.randrange(bound)


def checked_roll(source: EntropySource, bound: int) -> int:
    """Draw from ``source`` and reject values outside ``[0, bound)``."""
    value = source.roll(bound)
    if not isinstance(value, int) or not 0 <= value < bound:
        raise ValueError(f"Entropy source returned {value!r}, expected 0 <= value < {bound}")
    return value
