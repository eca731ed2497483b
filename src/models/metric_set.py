"""Distribution metric records and pairwise comparison results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

# Order in which metrics are compared and serialized
METRIC_NAMES: Tuple[str, ...] = (
    "gini_coefficient",
    "hhi",
    "nakamoto_coefficient",
    "shannon_entropy",
    "palma_ratio",
    "top1_percent",
    "top10_percent",
    "median_holding",
)


def _present(value: Optional[float], precision: Optional[int]) -> Optional[float]:
    """Round for presentation only; ``None`` stays ``None``."""
    if value is None or precision is None:
        return value
    return round(value, precision)


@dataclass(frozen=True, slots=True)
class MetricSet:
    """
    Inequality/concentration metrics of one distribution.

    Units:
    - gini_coefficient: [0, 1]
    - hhi: [0, 10000] (percentage shares squared)
    - nakamoto_coefficient: holder count, 0 when supply is 0
    - shannon_entropy: bits, >= 0
    - palma_ratio: >= 0, None when the bottom-40% holds nothing
    - top1_percent / top10_percent: percent of supply [0, 100], None when supply is 0
    - median_holding: balance units

    Values are stored at full precision; round via ``to_dict(precision=...)``.
    """

    gini_coefficient: float
    hhi: float
    nakamoto_coefficient: int
    shannon_entropy: float
    palma_ratio: Optional[float]
    top1_percent: Optional[float]
    top10_percent: Optional[float]
    median_holding: float
    holder_count: int = 0
    total_supply: float = 0.0
    token_id: str = ""

    def get(self, name: str) -> Optional[float]:
        """Metric value by name (see METRIC_NAMES)."""
        if name not in METRIC_NAMES:
            raise KeyError(f"Unknown metric: {name}")
        return getattr(self, name)

    def to_dict(self, precision: Optional[int] = None) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "token_id": self.token_id,
            "holder_count": self.holder_count,
            "total_supply": _present(self.total_supply, precision),
        }
        for name in METRIC_NAMES:
            value = getattr(self, name)
            result[name] = value if isinstance(value, int) else _present(value, precision)
        return result


@dataclass(frozen=True, slots=True)
class MetricDelta:
    """
    One metric compared across two distributions.

    ``delta`` is ``second - first``; it is ``None`` when either side is undefined.
    """

    name: str
    first: Optional[float]
    second: Optional[float]
    delta: Optional[float]

    def to_dict(self, precision: Optional[int] = None) -> Dict[str, Any]:
        return {
            "name": self.name,
            "first": _present(self.first, precision),
            "second": _present(self.second, precision),
            "delta": _present(self.delta, precision),
        }


@dataclass(frozen=True, slots=True)
class ComparisonResult:
    """Two metric sets with one signed delta per metric."""

    first: MetricSet
    second: MetricSet
    deltas: Tuple[MetricDelta, ...] = field(default_factory=tuple)
    label: str = ""

    def delta(self, name: str) -> MetricDelta:
        """Delta entry for a metric name."""
        for entry in self.deltas:
            if entry.name == name:
                return entry
        raise KeyError(f"Unknown metric: {name}")

    def to_dict(self, precision: Optional[int] = 4) -> Dict[str, Any]:
        return {
            "label": self.label,
            "first": self.first.to_dict(precision),
            "second": self.second.to_dict(precision),
            "deltas": {d.name: d.to_dict(precision) for d in self.deltas},
        }


@dataclass(frozen=True, slots=True)
class HolderBuckets:
    """
    Holder counts by share of supply.

    whale >= 1%, shark >= 0.1%, dolphin >= 0.01%, fish below that.
    """

    whale: int = 0
    shark: int = 0
    dolphin: int = 0
    fish: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"whale": self.whale, "shark": self.shark, "dolphin": self.dolphin, "fish": self.fish}
