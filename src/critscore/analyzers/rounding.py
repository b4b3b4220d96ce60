"""Rounding helpers shared by the providers and the scorer."""

import math


def round_half_away(value: float, places: int = 0) -> float:
    """Round to ``places`` decimals, ties away from zero.

    Python's built-in ``round`` rounds ties to even; scores and averages
    here round 2.5 to 3 and -2.5 to -3.
    """
    scale = 10**places
    scaled = value * scale
    truncated = math.trunc(scaled)
    if abs(scaled - truncated) >= 0.5:
        truncated += math.copysign(1.0, scaled)
    return float(truncated) / scale
