"""Composite 0-100 decentralization score built from a MetricSet."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from ...models.metric_set import MetricSet
from .distribution_metrics import HHI_SCALE

# Component weights (sum to 1.0)
WEIGHTS: Dict[str, float] = {
    "nakamoto": 0.25,
    "gini": 0.20,
    "entropy": 0.20,
    "hhi": 0.15,
    "holder_growth": 0.10,
    "stability": 0.10,
}

NAKAMOTO_CAP = 50  # Holders needed for a full Nakamoto score
ENTROPY_CAP_BITS = 10.0

GRADE_BANDS = ((80.0, "A"), (60.0, "B"), (40.0, "C"), (20.0, "D"))


@dataclass(frozen=True)
class DecentralizationScore:
    """Overall score, letter grade and per-component scores (all 0-100)."""

    overall: float
    grade: str
    components: Dict[str, float] = field(default_factory=dict)

    def to_dict(self, precision: int = 1) -> Dict[str, object]:
        return {
            "overall": round(self.overall, precision),
            "grade": self.grade,
            "components": {k: round(v, precision) for k, v in self.components.items()},
        }


def grade_for(score: float) -> str:
    for floor, grade in GRADE_BANDS:
        if score >= floor:
            return grade
    return "F"


def decentralization_score(
    metrics: MetricSet,
    holder_growth: float = 50.0,
    stability: float = 50.0,
) -> DecentralizationScore:
    """
    Score a metric set.

    ``holder_growth`` and ``stability`` are externally supplied 0-100 scores
    and default to a neutral 50.
    """
    components = {
        "nakamoto": min(100.0, metrics.nakamoto_coefficient / NAKAMOTO_CAP * 100.0),
        "gini": (1.0 - metrics.gini_coefficient) * 100.0,
        "entropy": min(100.0, metrics.shannon_entropy / ENTROPY_CAP_BITS * 100.0),
        "hhi": max(0.0, (1.0 - metrics.hhi / HHI_SCALE) * 100.0),
        "holder_growth": float(holder_growth),
        "stability": float(stability),
    }
    overall = sum(components[name] * weight for name, weight in WEIGHTS.items())
    return DecentralizationScore(overall=overall, grade=grade_for(overall), components=components)
