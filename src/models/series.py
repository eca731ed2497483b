"""Price and derived time series models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass(frozen=True, slots=True)
class PricePoint:
    """
    Raw price observation as delivered by an upstream price feed.

    Not validated on construction: malformed points are counted and skipped
    by ``to_series``.
    """

    timestamp: float  # Epoch milliseconds
    price: float


@dataclass(frozen=True, slots=True)
class SeriesPoint:
    """
    One value of a derived series, aligned to ``timestamp``.

    ``value`` is ``None`` where the quantity is undefined (e.g. a Sharpe
    ratio over a window with zero dispersion).
    """

    timestamp: float
    value: Optional[float]


@dataclass(frozen=True, slots=True)
class ParsedSeries:
    """Output of ``to_series``: the accepted points and how many were skipped."""

    points: Tuple[SeriesPoint, ...] = field(default_factory=tuple)
    skipped: int = 0

    def __len__(self) -> int:
        return len(self.points)

    @property
    def values(self) -> List[Optional[float]]:
        return [p.value for p in self.points]


@dataclass(frozen=True, slots=True)
class Drawdown:
    """Maximum peak-to-trough decline of a series, as a fraction of the peak."""

    max_drawdown: float
    timestamp: Optional[float]
