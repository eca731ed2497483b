"""Snapshot source implementations."""

from .distribution import DistributionSnapshotSource
from .retrying import RetryingSnapshotSource
from .seeded import SeededSnapshotSource, generate_balances, generate_distribution

__all__ = [
    "DistributionSnapshotSource",
    "RetryingSnapshotSource",
    "SeededSnapshotSource",
    "generate_balances",
    "generate_distribution",
]
