"""Snapshot source backed by a balance-list fetcher."""

from __future__ import annotations

from typing import Awaitable, Callable, Optional

from ...domain.services.holder_stats import holder_stats_from_distribution
from ...models.distribution import Distribution
from ...models.snapshot import HolderSnapshot

BalanceFetcher = Callable[[], Awaitable[Distribution]]
HolderCountFetcher = Callable[[], Awaitable[Optional[int]]]


class DistributionSnapshotSource:
    """
    Adapts an async holder-list fetcher into a SnapshotSource.

    The optional holder-count fetcher supplies the upstream's total holder
    count when the balance list only covers the largest holders.
    """

    def __init__(self, fetch_balances: BalanceFetcher, fetch_holder_count: Optional[HolderCountFetcher] = None):
        self._fetch_balances = fetch_balances
        self._fetch_holder_count = fetch_holder_count

    async def fetch_snapshot(self) -> HolderSnapshot:
        distribution = await self._fetch_balances()
        reported = await self._fetch_holder_count() if self._fetch_holder_count else None
        return holder_stats_from_distribution(distribution, reported_holders=reported)
