"""Pytest configuration and fixtures."""

from typing import List

import pytest

from config.models import RetryConfig, StreamConfig
from src.models.distribution import Distribution
from src.models.series import PricePoint


@pytest.fixture
def equal_distribution() -> Distribution:
    """Four holders with identical balances."""
    return Distribution.from_amounts([100, 100, 100, 100], token_id="EQUAL", total_supply=400)


@pytest.fixture
def whale_distribution() -> Distribution:
    """One holder with 97% of supply."""
    return Distribution.from_amounts([970, 10, 10, 10], token_id="WHALE", total_supply=1000)


@pytest.fixture
def price_points() -> List[PricePoint]:
    """Ten daily prices."""
    prices = [100.0, 102.0, 101.0, 105.0, 103.0, 108.0, 107.0, 110.0, 104.0, 109.0]
    return [PricePoint(timestamp=i * 86_400_000, price=p) for i, p in enumerate(prices)]


@pytest.fixture
def fast_stream_config() -> StreamConfig:
    """Short poll interval; heartbeat far enough away not to interleave."""
    return StreamConfig(interval_ms=20, heartbeat_ms=60_000, poll_on_start=True)


@pytest.fixture
def fast_retry_config() -> RetryConfig:
    """Millisecond backoff without jitter."""
    return RetryConfig(max_attempts=3, initial_delay_ms=1, max_delay_ms=5, jitter=False)
