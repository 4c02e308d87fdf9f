"""Random sources and dice helpers for the regime simulation."""

from .dice import (
    RandomSource,
    PercentileRoll,
    turn_rng,
    roll_d100,
    roll_percentile,
    roll_range,
)

__all__ = [
    "RandomSource",
    "PercentileRoll",
    "turn_rng",
    "roll_d100",
    "roll_percentile",
    "roll_range",
]
