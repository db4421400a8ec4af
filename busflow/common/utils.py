"""
Common numeric helpers shared across modules.
"""
import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves round up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))
