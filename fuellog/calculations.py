"""Helper functions for statistics calculations."""

import math
from datetime import date
from typing import List, Optional, Sequence


def safe_divide(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0 when the denominator is 0."""
    if denominator == 0:
        return 0.0
    return numerator / denominator


def sample_stdev(values: Sequence[float]) -> float:
    """
    Sample standard deviation (divides by n - 1).

    Returns 0 for fewer than two values.
    """
    n = len(values)
    if n < 2:
        return 0.0
    mean = sum(values) / n
    return math.sqrt(sum((x - mean) ** 2 for x in values) / (n - 1))


def median(values: Sequence[float]) -> float:
    """Median of the values; averages the middle pair for even lengths."""
    if not values:
        return 0.0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2:
        return ordered[mid]
    return (ordered[mid - 1] + ordered[mid]) / 2


def rolling_average(values: Sequence[float], window: int) -> Optional[float]:
    """Mean of the last `window` values, None when there aren't that many."""
    if window <= 0 or len(values) < window:
        return None
    return sum(values[-window:]) / window


def days_between(first: date, last: date) -> int:
    """Whole days from first to last."""
    return (last - first).days


def tracked_days(first: date, last: date) -> int:
    """Days spanned by a set of entries, at least 1 so it can divide."""
    return max(1, days_between(first, last))


def date_gaps(dates: Sequence[date]) -> List[int]:
    """Days between each pair of consecutive dates."""
    return [days_between(a, b) for a, b in zip(dates, dates[1:])]


def efficiency(distance: float, fuel: float, higher_is_better: bool) -> float:
    """
    Fuel efficiency of one distance/fuel pair.

    - higher_is_better (MPG): distance / fuel
    - otherwise (L/100km): fuel / distance * 100
    """
    if higher_is_better:
        return safe_divide(distance, fuel)
    return safe_divide(fuel, distance) * 100
