"""
Common utility functions for the PracticeIQ engine.

Small numeric helpers shared by the performance components.
"""

import math
from typing import Union

Number = Union[int, float]


def safe_divide(numerator: Number, denominator: Number, default: Number = 0) -> float:
    """
    Safely divide two numbers, returning a default value if denominator is zero.

    Args:
        numerator: Number to divide
        denominator: Number to divide by
        default: Value to return if denominator is zero

    Returns:
        Result of division or default value
    """
    if denominator == 0:
        return default
    return numerator / denominator


def round_half_up(value: float) -> int:
    """
    Round to the nearest integer with halves going up.

    ``round()`` uses banker's rounding (``round(72.5) == 72``); scores and
    second counts shown to learners round 72.5 to 73.
    """
    return int(math.floor(value + 0.5))


def clamp(value: Number, lower: Number, upper: Number) -> Number:
    """Saturate ``value`` into ``[lower, upper]``."""
    return max(lower, min(value, upper))


def percentage(part: Number, whole: Number) -> int:
    """Whole-number percentage of ``part`` in ``whole``; 0 when ``whole`` is 0."""
    return round_half_up(safe_divide(part * 100, whole))
