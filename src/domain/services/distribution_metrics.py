"""
Distribution Metrics Engine - inequality and concentration of token holdings.

Computes:
- Gini coefficient (sorted-order formula)
- Herfindahl-Hirschman Index on the 0-10000 scale
- Nakamoto coefficient (fewest top holders reaching the threshold share)
- Shannon entropy in bits
- Palma ratio (top 10% / bottom 40%)
- Top 1% / top 10% holder shares and the median holding

Degenerate-input policy:
- Zero supply, empty or single-holder distributions never raise.
- Gini is 0 when the total is 0 or there is at most one holder.
- HHI, entropy and Nakamoto are 0 when the total is 0.
- Palma and the top-share percentages are None when undefined.
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np

from config.models import MetricsConfig

from ...models.distribution import Distribution
from ...models.metric_set import HolderBuckets, MetricSet
from ...utils.logging_setup import get_logger
from ..exceptions import ConfigurationError
from .numeric import (
    as_array,
    count_for_fraction,
    cumulative_sum,
    exact_sum,
    first_prefix_reaching,
    median,
    percentile,
    safe_div,
    sorted_ascending,
    sorted_descending,
)

logger = get_logger(__name__)

HHI_SCALE = 10_000.0

# Holder bucket thresholds as fraction of supply
WHALE_SHARE = 0.01
SHARK_SHARE = 0.001
DOLPHIN_SHARE = 0.0001


# =============================================================================
# INDIVIDUAL METRICS
# =============================================================================

def gini_coefficient(balances: Iterable[float]) -> float:
    """
    Gini coefficient in [0, 1]; 0 = perfectly equal.

    Uses ``G = (2 * sum(i * x_i) - (n + 1) * sum(x)) / (n * sum(x))`` over
    ascending balances with 1-based ``i``.
    """
    x = sorted_ascending(balances)
    n = len(x)
    total = exact_sum(x)
    if n <= 1 or total == 0:
        return 0.0

    index = np.arange(1, n + 1, dtype=float)
    weighted = float(np.dot(index, x))
    gini = (2.0 * weighted - (n + 1) * total) / (n * total)
    return min(1.0, max(0.0, gini))


def herfindahl_index(balances: Iterable[float]) -> float:
    """HHI on the 0-10000 scale (sum of squared percentage shares)."""
    x = as_array(balances)
    total = exact_sum(x)
    if total == 0:
        return 0.0
    shares = x / total
    return float(np.dot(shares, shares)) * HHI_SCALE


def nakamoto_coefficient(
    balances: Iterable[float],
    threshold: float = 0.5,
    supply: Optional[float] = None,
) -> int:
    """
    Fewest largest holders whose combined balance reaches ``threshold`` of supply.

    Returns 0 when supply is 0, and the holder count when the observed
    holders never reach the threshold (possible only against an explicit
    supply larger than the observed sum).
    """
    x = sorted_descending(balances)
    total = exact_sum(x) if supply is None else supply
    if len(x) == 0 or total == 0:
        return 0

    reached = first_prefix_reaching(x, threshold * total)
    if reached is None:
        logger.debug(f"Nakamoto threshold {threshold:.0%} not reached by {len(x)} observed holders")
        return len(x)
    return reached


def shannon_entropy(balances: Iterable[float]) -> float:
    """Shannon entropy in bits over nonzero shares; max is log2(n)."""
    x = as_array(balances)
    total = exact_sum(x)
    if total == 0:
        return 0.0
    shares = x[x > 0] / total
    entropy = -float(np.sum(shares * np.log2(shares)))
    return max(0.0, entropy)


def normalized_entropy(balances: Iterable[float]) -> float:
    """Shannon entropy divided by log2(n), in [0, 1]; 0 for n <= 1."""
    x = as_array(balances)
    n = len(x)
    if n <= 1:
        return 0.0
    return shannon_entropy(x) / math.log2(n)


def palma_ratio(
    balances: Iterable[float],
    top_fraction: float = 0.10,
    bottom_fraction: float = 0.40,
) -> Optional[float]:
    """
    Top-10% holdings divided by bottom-40% holdings.

    Group sizes are rounded up. None when the bottom group holds nothing.
    """
    x = sorted_ascending(balances)
    n = len(x)
    if n == 0 or exact_sum(x) == 0:
        return None

    bottom_sum = exact_sum(x[:count_for_fraction(n, bottom_fraction)])
    top_sum = exact_sum(x[n - count_for_fraction(n, top_fraction):])
    return safe_div(top_sum, bottom_sum)


def top_share_percent(
    balances: Iterable[float],
    fraction: float,
    supply: Optional[float] = None,
) -> Optional[float]:
    """Percent of supply held by the largest ``ceil(fraction * n)`` holders."""
    x = sorted_descending(balances)
    total = exact_sum(x) if supply is None else supply
    if total == 0:
        return None
    top_sum = exact_sum(x[:count_for_fraction(len(x), fraction)])
    return top_sum * 100.0 / total


def top_n_concentration(
    balances: Iterable[float],
    top_n: int,
    supply: Optional[float] = None,
) -> float:
    """Fraction of supply held by the ``top_n`` largest holders (0 when supply is 0)."""
    x = sorted_descending(balances)
    total = exact_sum(x) if supply is None else supply
    if total == 0 or top_n <= 0:
        return 0.0
    return exact_sum(x[:top_n]) / total


def lorenz_curve(balances: Iterable[float]) -> List[Tuple[float, float]]:
    """
    Lorenz curve points ``(holder fraction, wealth fraction)`` starting at (0, 0).

    A zero-total distribution is drawn on the equality line.
    """
    x = sorted_ascending(balances)
    n = len(x)
    if n == 0:
        return [(0.0, 0.0), (1.0, 1.0)]

    total = exact_sum(x)
    cumulative = cumulative_sum(x)
    points = [(0.0, 0.0)]
    for i in range(n):
        holder_share = (i + 1) / n
        wealth_share = holder_share if total == 0 else float(cumulative[i]) / total
        points.append((holder_share, wealth_share))
    return points


def holder_buckets(balances: Iterable[float], supply: Optional[float] = None) -> HolderBuckets:
    """Count holders by share of supply (whale/shark/dolphin/fish)."""
    x = as_array(balances)
    total = exact_sum(x) if supply is None else supply
    if total == 0:
        return HolderBuckets()

    shares = x / total
    whale = int(np.count_nonzero(shares >= WHALE_SHARE))
    shark = int(np.count_nonzero((shares >= SHARK_SHARE) & (shares < WHALE_SHARE)))
    dolphin = int(np.count_nonzero((shares >= DOLPHIN_SHARE) & (shares < SHARK_SHARE)))
    return HolderBuckets(whale=whale, shark=shark, dolphin=dolphin, fish=len(x) - whale - shark - dolphin)


def balance_percentiles(balances: Iterable[float], qs: Iterable[float]) -> Dict[str, float]:
    """Interpolated balance percentiles keyed ``p25``, ``p50``, ..."""
    x = sorted_ascending(balances)
    return {f"p{q:g}": percentile(x, q) for q in qs}


# =============================================================================
# ENGINE
# =============================================================================

class DistributionMetricsEngine:
    """
    Computes a MetricSet from a Distribution.

    Pure and stateless apart from its configuration; safe to share between
    threads.

    Example:
        engine = DistributionMetricsEngine()
        metrics = engine.compute(Distribution.from_amounts([100, 100, 100, 100]))
    """

    def __init__(self, config: Optional[MetricsConfig] = None):
        """
        Initialize the engine.

        Args:
            config: Metrics configuration (defaults to MetricsConfig()).

        Raises:
            ConfigurationError: If a threshold or fraction is outside (0, 1].
        """
        self.config = config or MetricsConfig()
        for name in (
            "nakamoto_threshold",
            "top1_fraction",
            "top10_fraction",
            "palma_top_fraction",
            "palma_bottom_fraction",
        ):
            value = getattr(self.config, name)
            if not 0 < value <= 1:
                raise ConfigurationError(f"metrics.{name} must be within (0, 1]: {value}")

    def compute(self, distribution: Distribution) -> MetricSet:
        """
        Compute all metrics for one distribution.

        Args:
            distribution: Validated holder balances.

        Returns:
            Immutable MetricSet at full precision.
        """
        cfg = self.config
        amounts = distribution.amounts
        supply = distribution.supply
        ascending = sorted_ascending(amounts)

        metrics = MetricSet(
            gini_coefficient=gini_coefficient(ascending),
            hhi=herfindahl_index(ascending),
            nakamoto_coefficient=nakamoto_coefficient(ascending, cfg.nakamoto_threshold, supply),
            shannon_entropy=shannon_entropy(ascending),
            palma_ratio=palma_ratio(ascending, cfg.palma_top_fraction, cfg.palma_bottom_fraction),
            top1_percent=top_share_percent(ascending, cfg.top1_fraction, supply),
            top10_percent=top_share_percent(ascending, cfg.top10_fraction, supply),
            median_holding=median(ascending),
            holder_count=distribution.holder_count,
            total_supply=supply,
            token_id=distribution.token_id,
        )

        if supply == 0:
            logger.debug(
                f"Distribution {distribution.token_id or '<unnamed>'} has zero supply "
                f"({distribution.holder_count} holders); ratio metrics reported as undefined"
            )
        return metrics

    def percentiles(self, distribution: Distribution) -> Dict[str, float]:
        """Configured balance percentiles of a distribution."""
        return balance_percentiles(distribution.amounts, self.config.percentiles)


_default_engine: Optional[DistributionMetricsEngine] = None


def compute_metrics(distribution: Distribution, config: Optional[MetricsConfig] = None) -> MetricSet:
    """Compute a MetricSet with the given (or default) configuration."""
    global _default_engine
    if config is not None:
        return DistributionMetricsEngine(config).compute(distribution)
    if _default_engine is None:
        _default_engine = DistributionMetricsEngine()
    return _default_engine.compute(distribution)
