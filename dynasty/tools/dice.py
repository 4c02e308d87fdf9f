"""
Random sources for the regime simulation.

Every chance-based rule (coup roll, ambition drift, governor appointment)
draws from a RandomSource handed to it, never from the module-level
``random`` functions. The default sources are derived from the run seed,
the turn number and a stream label, so a turn replays identically.
"""

import random
from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class RandomSource(Protocol):
    """
    Minimal interface the rules need from a random generator.

    ``random.Random`` satisfies it, as do the scripted sources used in tests.
    """

    def randint(self, a: int, b: int) -> int:
        """Return an integer N with a <= N <= b."""
        ...

    def random(self) -> float:
        """Return a float in [0.0, 1.0)."""
        ...


def turn_rng(seed: int, turn: int, stream: str = "") -> random.Random:
    """
    Build a deterministic generator for one turn and one stream.

    String seeds are hashed with SHA-512 by ``random.Random``, so the result
    does not depend on PYTHONHASHSEED.
    """
    return random.Random(f"{seed}:{turn}:{stream}")


@dataclass
class PercentileRoll:
    """Result of a d100 check against a target chance."""
    roll: int
    chance: int

    @property
    def success(self) -> bool:
        return self.roll <= self.chance

    @property
    def margin(self) -> int:
        """Positive = under the chance, negative = over it."""
        return self.chance - self.roll


def roll_d100(rng: RandomSource) -> int:
    """Roll 1-100 inclusive."""
    return rng.randint(1, 100)


def roll_percentile(rng: RandomSource, chance: int) -> PercentileRoll:
    """Roll d100 and compare against a percentage chance."""
    return PercentileRoll(roll=roll_d100(rng), chance=chance)


def roll_range(rng: RandomSource, low: int, high: int) -> int:
    """Roll an integer in [low, high], tolerating swapped bounds."""
    if low > high:
        low, high = high, low
    return rng.randint(low, high)
