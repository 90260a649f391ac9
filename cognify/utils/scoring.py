"""
Numeric helpers shared by evaluation and analytics.
"""
import math
from typing import Iterable


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def mean_score(scores: Iterable[float]) -> int:
    """Unweighted mean of scores rounded half-up; 0 for an empty sequence."""
    values = list(scores)
    if not values:
        return 0
    return round_half_up(sum(values) / len(values))
