"""Data models for the holder analytics system."""

from .behavior import BehaviorChange, BehaviorReport, HolderBehavior, HoldingDuration, Turnover
from .distribution import Balance, Distribution
from .metric_set import METRIC_NAMES, MetricSet, MetricDelta, ComparisonResult, HolderBuckets
from .series import PricePoint, SeriesPoint, ParsedSeries, Drawdown
from .snapshot import (
    SNAPSHOT_FIELDS,
    HolderSnapshot,
    SnapshotChanges,
    HolderDelta,
    EventKind,
    StreamEvent,
)

__all__ = [
    "HolderBehavior",
    "BehaviorChange",
    "BehaviorReport",
    "HoldingDuration",
    "Turnover",
    "Balance",
    "Distribution",
    "METRIC_NAMES",
    "MetricSet",
    "MetricDelta",
    "ComparisonResult",
    "HolderBuckets",
    "PricePoint",
    "SeriesPoint",
    "ParsedSeries",
    "Drawdown",
    "SNAPSHOT_FIELDS",
    "HolderSnapshot",
    "SnapshotChanges",
    "HolderDelta",
    "EventKind",
    "StreamEvent",
]
