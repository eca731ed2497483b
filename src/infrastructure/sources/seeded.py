"""
Deterministic synthetic holder data.

All randomness comes from a ``numpy.random.Generator`` built from an
explicit seed, so the same seed always reproduces the same balances and
snapshot sequence. Used by the CLI demo and tests.
"""

from __future__ import annotations

import asyncio
from typing import Tuple

import numpy as np

from ...domain.services.holder_stats import holder_stats_from_distribution
from ...models.distribution import Distribution
from ...models.snapshot import HolderSnapshot
from ...utils.logging_setup import get_logger

logger = get_logger(__name__)

DEFAULT_PARETO_ALPHA = 1.16  # ~80/20 wealth split
BALANCE_SCALE = 1_000.0


def generate_balances(
    seed: int,
    holders: int,
    alpha: float = DEFAULT_PARETO_ALPHA,
    scale: float = BALANCE_SCALE,
) -> np.ndarray:
    """Pareto-distributed balances (heavy right tail)."""
    rng = np.random.default_rng(seed)
    return (rng.pareto(alpha, holders) + 1.0) * scale


def generate_distribution(
    seed: int,
    holders: int = 200,
    alpha: float = DEFAULT_PARETO_ALPHA,
    token_id: str = "",
) -> Distribution:
    """Synthetic Distribution for one token."""
    return Distribution.from_amounts(generate_balances(seed, holders, alpha).tolist(), token_id=token_id)


class SeededSnapshotSource:
    """
    Snapshot source that random-walks a synthetic holder base.

    Each fetch lets existing balances drift, adds or removes a few holders
    and returns the resulting holder statistics. ``failure_rate`` makes a
    fraction of fetches raise ConnectionError to exercise error handling.
    """

    def __init__(
        self,
        seed: int,
        initial_holders: int = 200,
        holder_step: Tuple[int, int] = (-3, 10),
        failure_rate: float = 0.0,
        latency_ms: int = 0,
        alpha: float = DEFAULT_PARETO_ALPHA,
    ):
        if initial_holders <= 0:
            raise ValueError(f"initial_holders must be positive: {initial_holders}")
        self._rng = np.random.default_rng(seed)
        self._alpha = alpha
        self._balances = (self._rng.pareto(alpha, initial_holders) + 1.0) * BALANCE_SCALE
        self._holder_step = holder_step
        self._failure_rate = failure_rate
        self._latency_ms = latency_ms
        self.fetch_count = 0

    async def fetch_snapshot(self) -> HolderSnapshot:
        self.fetch_count += 1
        if self._latency_ms:
            await asyncio.sleep(self._latency_ms / 1000.0)
        if self._failure_rate and self._rng.random() < self._failure_rate:
            raise ConnectionError(f"Simulated upstream failure on fetch {self.fetch_count}")

        self._step()
        distribution = Distribution.from_amounts(self._balances.tolist())
        return holder_stats_from_distribution(distribution)

    def _step(self) -> None:
        drift = self._rng.lognormal(mean=0.0, sigma=0.02, size=len(self._balances))
        balances = self._balances * drift

        low, high = self._holder_step
        change = int(self._rng.integers(low, high + 1))
        if change > 0:
            joiners = (self._rng.pareto(self._alpha, change) + 1.0) * BALANCE_SCALE
            balances = np.concatenate([balances, joiners])
        elif change < 0 and len(balances) + change >= 1:
            leavers = self._rng.choice(len(balances), size=-change, replace=False)
            balances = np.delete(balances, leavers)
        self._balances = balances

    @property
    def holder_count(self) -> int:
        return len(self._balances)
