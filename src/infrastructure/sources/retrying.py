"""Retry wrapper for snapshot sources (exponential backoff via tenacity)."""

from __future__ import annotations

from typing import Optional, Tuple, Type

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from config.models import RetryConfig

from ...domain.exceptions import ConfigurationError
from ...domain.interfaces.snapshot_source import PollFn, SnapshotSource, as_poll_fn
from ...models.snapshot import HolderSnapshot
from ...utils.logging_setup import get_logger

logger = get_logger(__name__)


class RetryingSnapshotSource:
    """
    SnapshotSource that retries a failing inner source.

    Delay before retry ``k`` (1-based) is
    ``initial_delay * backoff_multiplier ** (k - 1)`` capped at ``max_delay``,
    plus up to 50% of the initial delay of random jitter when enabled.
    The last exception is re-raised once attempts are exhausted.
    """

    def __init__(
        self,
        inner: SnapshotSource | PollFn,
        config: Optional[RetryConfig] = None,
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    ):
        self._fetch = as_poll_fn(inner)
        self._config = config or RetryConfig()
        if self._config.max_attempts <= 0:
            raise ConfigurationError(f"retry.max_attempts must be positive: {self._config.max_attempts}")
        self._retry_on = retry_on

    def _retrying(self) -> AsyncRetrying:
        cfg = self._config
        wait = wait_exponential(
            multiplier=cfg.initial_delay_ms / 1000.0,
            max=cfg.max_delay_ms / 1000.0,
            exp_base=cfg.backoff_multiplier,
        )
        if cfg.jitter and cfg.initial_delay_ms > 0:
            wait = wait + wait_random(0, cfg.initial_delay_ms / 2000.0)

        return AsyncRetrying(
            stop=stop_after_attempt(cfg.max_attempts),
            wait=wait,
            retry=retry_if_exception_type(self._retry_on),
            reraise=True,
            before_sleep=self._log_retry,
        )

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"Snapshot fetch failed, retrying ({retry_state.attempt_number}/{self._config.max_attempts}): {error}"
        )

    async def fetch_snapshot(self) -> HolderSnapshot:
        async for attempt in self._retrying():
            with attempt:
                return await self._fetch()
        raise AssertionError("unreachable: tenacity re-raises after the last attempt")
