"""
Comparator - pairs two metric sets and produces signed deltas.

Sign convention is uniform for every metric: ``delta = second - first``.
A positive Gini/HHI/Palma delta therefore means the second distribution is
more concentrated; a positive Nakamoto/entropy delta means it is more
decentralized.

Values keep full precision; rounding happens only in ``to_dict``.
"""

from __future__ import annotations

from typing import Optional, Union

from ...models.distribution import Distribution
from ...models.metric_set import METRIC_NAMES, ComparisonResult, MetricDelta, MetricSet
from ...utils.logging_setup import get_logger
from .distribution_metrics import DistributionMetricsEngine

logger = get_logger(__name__)


def _signed_delta(first: Optional[float], second: Optional[float]) -> Optional[float]:
    if first is None or second is None:
        return None
    return second - first


def compare_metric_sets(first: MetricSet, second: MetricSet, label: str = "") -> ComparisonResult:
    """
    Compare two metric sets.

    Undefined metrics on either side surface as a ``None`` delta for that
    metric only; the comparison itself always succeeds.
    """
    deltas = tuple(
        MetricDelta(
            name=name,
            first=first.get(name),
            second=second.get(name),
            delta=_signed_delta(first.get(name), second.get(name)),
        )
        for name in METRIC_NAMES
    )
    if not label:
        label = f"{first.token_id or 'first'} vs {second.token_id or 'second'}"
    return ComparisonResult(first=first, second=second, deltas=deltas, label=label)


class Comparator:
    """
    Compares two distributions (or two precomputed metric sets).

    Deterministic: the same two inputs always produce identical results.
    """

    def __init__(self, engine: Optional[DistributionMetricsEngine] = None):
        self.engine = engine or DistributionMetricsEngine()

    def compare(
        self,
        first: Union[Distribution, MetricSet],
        second: Union[Distribution, MetricSet],
        label: str = "",
    ) -> ComparisonResult:
        first_metrics = self._metrics(first)
        second_metrics = self._metrics(second)

        result = compare_metric_sets(first_metrics, second_metrics, label)
        undefined = [d.name for d in result.deltas if d.delta is None]
        if undefined:
            logger.debug(f"Comparison '{result.label}' has undefined metrics: {', '.join(undefined)}")
        return result

    def _metrics(self, side: Union[Distribution, MetricSet]) -> MetricSet:
        if isinstance(side, MetricSet):
            return side
        return self.engine.compute(side)


def compare_distributions(first: Distribution, second: Distribution, label: str = "") -> ComparisonResult:
    """Compute metrics for both distributions and compare them (``second - first``)."""
    return Comparator().compare(first, second, label)
