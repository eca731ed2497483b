"""Unit tests for snapshot source implementations."""

from unittest.mock import AsyncMock

import pytest

from config.models import RetryConfig
from src.domain.exceptions import ConfigurationError
from src.domain.interfaces import SnapshotSource, as_poll_fn
from src.infrastructure.sources import (
    DistributionSnapshotSource,
    RetryingSnapshotSource,
    SeededSnapshotSource,
    generate_distribution,
)
from src.models.distribution import Distribution

from tests.helpers import ScriptedSource, holders


class TestAsPollFn:
    """Adapting sources to poll callables."""

    def test_protocol_instance(self):
        source = ScriptedSource([holders(1)])
        assert isinstance(source, SnapshotSource)
        assert as_poll_fn(source) == source.fetch_snapshot

    def test_bare_callable(self):
        async def poll():
            return holders(1)

        assert as_poll_fn(poll) is poll

    @pytest.mark.asyncio
    async def test_callable_source_polls_fetch_snapshot(self):
        class CallableSource(ScriptedSource):
            def __call__(self):
                raise AssertionError("source must be polled through fetch_snapshot")

        source = CallableSource([holders(3)])
        poll = as_poll_fn(source)

        assert await poll() == holders(3)
        assert source.calls == 1

    @pytest.mark.asyncio
    async def test_mock_source_polls_fetch_snapshot(self):
        source = AsyncMock()
        source.fetch_snapshot.return_value = holders(5)

        assert await as_poll_fn(source)() == holders(5)
        source.fetch_snapshot.assert_awaited_once()
        source.assert_not_called()

    def test_rejects_non_callable(self):
        with pytest.raises(TypeError):
            as_poll_fn(42)


class TestRetryingSnapshotSource:
    """Exponential backoff retries via tenacity."""

    @pytest.mark.asyncio
    async def test_recovers_after_failures(self, fast_retry_config):
        inner = ScriptedSource([ConnectionError("a"), ConnectionError("b"), holders(5)])
        source = RetryingSnapshotSource(inner, fast_retry_config)

        assert await source.fetch_snapshot() == holders(5)
        assert inner.calls == 3

    @pytest.mark.asyncio
    async def test_reraises_last_error(self, fast_retry_config):
        inner = ScriptedSource([ConnectionError("down")])
        source = RetryingSnapshotSource(inner, fast_retry_config)

        with pytest.raises(ConnectionError, match="down"):
            await source.fetch_snapshot()
        assert inner.calls == 3

    @pytest.mark.asyncio
    async def test_non_retryable_error(self, fast_retry_config):
        inner = ScriptedSource([ValueError("bad payload")])
        source = RetryingSnapshotSource(inner, fast_retry_config, retry_on=(ConnectionError,))

        with pytest.raises(ValueError):
            await source.fetch_snapshot()
        assert inner.calls == 1

    @pytest.mark.asyncio
    async def test_wraps_bare_callable(self, fast_retry_config):
        outcomes = [TimeoutError(), holders(8)]
        calls = []

        async def poll():
            calls.append(1)
            item = outcomes.pop(0)
            if isinstance(item, Exception):
                raise item
            return item

        source = RetryingSnapshotSource(poll, fast_retry_config)

        assert await source.fetch_snapshot() == holders(8)
        assert len(calls) == 2

    def test_invalid_attempts(self):
        with pytest.raises(ConfigurationError):
            RetryingSnapshotSource(ScriptedSource([holders(1)]), RetryConfig(max_attempts=0))


class TestSeededSnapshotSource:
    """Deterministic synthetic snapshots."""

    @pytest.mark.asyncio
    async def test_same_seed_same_sequence(self):
        a, b = SeededSnapshotSource(seed=7), SeededSnapshotSource(seed=7)
        for _ in range(5):
            assert await a.fetch_snapshot() == await b.fetch_snapshot()

    @pytest.mark.asyncio
    async def test_different_seeds_differ(self):
        a, b = SeededSnapshotSource(seed=1), SeededSnapshotSource(seed=2)
        assert await a.fetch_snapshot() != await b.fetch_snapshot()

    @pytest.mark.asyncio
    async def test_snapshot_fields(self):
        source = SeededSnapshotSource(seed=3, initial_holders=100)
        snapshot = await source.fetch_snapshot()

        assert snapshot.total_holders == source.holder_count
        assert 0 < snapshot.top10_percentage <= snapshot.top50_percentage <= 100.0
        assert snapshot.median_balance > 0
        assert source.fetch_count == 1

    @pytest.mark.asyncio
    async def test_failure_rate(self):
        source = SeededSnapshotSource(seed=3, failure_rate=1.0)
        with pytest.raises(ConnectionError):
            await source.fetch_snapshot()

    def test_invalid_holder_count(self):
        with pytest.raises(ValueError):
            SeededSnapshotSource(seed=1, initial_holders=0)

    def test_generate_distribution_deterministic(self):
        first = generate_distribution(seed=11, holders=50, token_id="SYN")
        second = generate_distribution(seed=11, holders=50, token_id="SYN")
        assert first == second
        assert first.holder_count == 50
        assert all(b.amount >= 1_000.0 for b in first.balances)


class TestDistributionSnapshotSource:
    """Snapshots derived from fetched balance lists."""

    @pytest.mark.asyncio
    async def test_uses_reported_holder_count(self):
        fetch = AsyncMock(return_value=Distribution.from_amounts([50, 30, 20]))
        count = AsyncMock(return_value=1_234)
        snapshot = await DistributionSnapshotSource(fetch, count).fetch_snapshot()

        assert snapshot.total_holders == 1_234
        assert snapshot.top10_percentage == pytest.approx(100.0)
        assert snapshot.top50_percentage == pytest.approx(100.0)
        assert snapshot.median_balance == pytest.approx(30.0)

    @pytest.mark.asyncio
    async def test_observed_holder_count(self):
        fetch = AsyncMock(return_value=Distribution.from_amounts([1] * 20))
        snapshot = await DistributionSnapshotSource(fetch).fetch_snapshot()

        assert snapshot.total_holders == 20
        assert snapshot.top10_percentage == pytest.approx(50.0)
