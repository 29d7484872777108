"""Numeric helpers shared by the scoring components."""

import math
from typing import Iterable, Optional, Sequence

from rating_system.config.scoring import OVERALL_WEIGHTS, SCORE_MAX, SCORE_MIN


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def clamp_score(value: float) -> float:
    """Clamp a score dimension into [0, 100]."""
    return clamp(value, SCORE_MIN, SCORE_MAX)


def compute_overall(credibility: float, longevity: float, engagement: float) -> float:
    """
    Canonical overall score: 0.5 credibility + 0.3 longevity + 0.2 engagement.

    Pure and clamped, so recomputing with unchanged inputs always yields
    the identical value.
    """
    return clamp_score(
        credibility * OVERALL_WEIGHTS["credibility"]
        + longevity * OVERALL_WEIGHTS["longevity"]
        + engagement * OVERALL_WEIGHTS["engagement"]
    )


def mean(values: Sequence[float], default: float = 0.0) -> float:
    """Arithmetic mean, or default for an empty sequence."""
    if not values:
        return default
    return sum(values) / len(values)


def population_stdev(values: Sequence[float]) -> float:
    """Population standard deviation (divides by N). 0.0 for empty input."""
    if not values:
        return 0.0
    avg = mean(values)
    variance = sum((v - avg) ** 2 for v in values) / len(values)
    return math.sqrt(variance)


def present(values: Iterable[Optional[float]]) -> list[float]:
    """Drop missing (None) values; zero is a real signal and is kept."""
    return [v for v in values if v is not None]


__all__ = [
    "clamp",
    "clamp_score",
    "compute_overall",
    "mean",
    "population_stdev",
    "present",
]
