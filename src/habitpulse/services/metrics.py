"""Rounding and percentage helpers shared by the progress services.

Percentages are rounded half-up (``2.5 -> 3``, ``-2.5 -> -2``) so figures match
what the web client displays, rather than Python's round-half-even.
"""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward positive infinity."""

    return int(math.floor(value + 0.5))


def percent(numerator: float, denominator: float) -> int:
    """Return ``numerator / denominator`` as a rounded percentage.

    A zero (or negative) denominator yields 0 instead of raising.
    """

    if denominator <= 0:
        return 0
    return round_half_up(numerator / denominator * 100)


def clamp_percent(value: int) -> int:
    return max(0, min(100, value))


__all__ = ["clamp_percent", "percent", "round_half_up"]
