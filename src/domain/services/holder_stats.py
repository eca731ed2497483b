"""Holder statistics snapshot derived from a balance list."""

from __future__ import annotations

from typing import Optional

from ...models.distribution import Distribution
from ...models.snapshot import HolderSnapshot
from .distribution_metrics import top_n_concentration
from .numeric import median, sorted_ascending


def holder_stats_from_distribution(
    distribution: Distribution,
    reported_holders: Optional[int] = None,
) -> HolderSnapshot:
    """
    Build the streaming snapshot from a fetched balance list.

    Args:
        distribution: The fetched holders (often only the largest ones).
        reported_holders: Holder count reported by the upstream API, which can
            exceed the number of holders actually fetched.

    Returns:
        HolderSnapshot with top-10/top-50 holder shares in percent of the
        observed balances and the median observed balance.
    """
    amounts = distribution.amounts
    observed_total = distribution.observed_total
    total_holders = reported_holders if reported_holders else distribution.holder_count

    return HolderSnapshot(
        total_holders=total_holders,
        top10_percentage=top_n_concentration(amounts, 10, observed_total) * 100.0,
        top50_percentage=top_n_concentration(amounts, 50, observed_total) * 100.0,
        median_balance=median(sorted_ascending(amounts)),
    )
