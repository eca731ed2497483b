"""Domain services - pure metric engines."""

from .distribution_metrics import DistributionMetricsEngine, compute_metrics
from .comparator import Comparator, compare_distributions, compare_metric_sets
from .returns import (
    VolatilityAnalyzer,
    VolatilityReport,
    to_series,
    simple_returns,
    log_returns,
    rolling_std,
    sharpe,
    max_drawdown,
)
from .decentralization import DecentralizationScore, decentralization_score
from .holder_stats import holder_stats_from_distribution
from .holder_behavior import (
    HolderBehaviorAnalyzer,
    classify_holder_behavior,
    classify_snapshot_series,
    holding_duration,
    observation_periods,
    turnover_rate,
)

__all__ = [
    "DistributionMetricsEngine",
    "compute_metrics",
    "Comparator",
    "compare_distributions",
    "compare_metric_sets",
    "VolatilityAnalyzer",
    "VolatilityReport",
    "to_series",
    "simple_returns",
    "log_returns",
    "rolling_std",
    "sharpe",
    "max_drawdown",
    "DecentralizationScore",
    "decentralization_score",
    "holder_stats_from_distribution",
    "HolderBehaviorAnalyzer",
    "classify_holder_behavior",
    "classify_snapshot_series",
    "holding_duration",
    "observation_periods",
    "turnover_rate",
]
