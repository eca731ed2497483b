"""
Numeric primitives shared by the metric engines.

Sorted-array helpers, cumulative sums, safe division and interpolated
percentiles. All functions are pure and accept any float sequence.
"""

from __future__ import annotations

import bisect
import math
from typing import Iterable, Optional, Sequence

import numpy as np


def as_array(values: Iterable[float]) -> np.ndarray:
    """Copy values into a 1-d float array."""
    if isinstance(values, np.ndarray):
        return values.astype(float, copy=True).ravel()
    return np.asarray(list(values), dtype=float)


def sorted_ascending(values: Iterable[float]) -> np.ndarray:
    return np.sort(as_array(values))


def sorted_descending(values: Iterable[float]) -> np.ndarray:
    return np.sort(as_array(values))[::-1]


def cumulative_sum(values: Iterable[float]) -> np.ndarray:
    return np.cumsum(as_array(values))


def exact_sum(values: Iterable[float]) -> float:
    """Sum with compensated rounding so equal inputs give bit-identical totals."""
    return math.fsum(as_array(values).tolist())


def first_prefix_reaching(values: Iterable[float], target: float) -> Optional[int]:
    """
    Length of the shortest prefix whose exact sum is at least ``target``.

    Prefix sums are taken with ``math.fsum`` so they round the same way as
    ``exact_sum`` totals. Values must be non-negative, which keeps the prefix
    sums monotone for the binary search. None when the whole sequence falls short.
    """
    x = as_array(values).tolist()
    index = bisect.bisect_left(range(1, len(x) + 1), True, key=lambda k: math.fsum(x[:k]) >= target)
    if index == len(x):
        return None
    return index + 1


def safe_div(numerator: float, denominator: float, default: Optional[float] = None) -> Optional[float]:
    """``numerator / denominator`` or ``default`` when the denominator is zero or non-finite."""
    if denominator == 0 or not math.isfinite(denominator):
        return default
    return numerator / denominator


def count_for_fraction(n: int, fraction: float) -> int:
    """
    Number of ranks covered by ``fraction`` of ``n`` holders.

    Rounded up and never below 1 for a non-empty population, so tiny
    populations still get a best-available estimate.
    """
    if n <= 0:
        return 0
    return min(n, max(1, math.ceil(n * fraction - 1e-12)))


def percentile(sorted_values: Sequence[float], q: float) -> float:
    """
    Percentile ``q`` in [0, 100] of an ascending array.

    Ranks that fall between two order statistics are linearly interpolated
    (numpy's default "linear" method). An empty input yields 0.0.
    """
    if not 0 <= q <= 100:
        raise ValueError(f"Percentile must be within [0, 100]: {q}")
    if len(sorted_values) == 0:
        return 0.0
    return float(np.percentile(np.asarray(sorted_values, dtype=float), q))


def median(sorted_values: Sequence[float]) -> float:
    return percentile(sorted_values, 50.0)
