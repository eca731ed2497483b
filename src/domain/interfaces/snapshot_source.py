"""Snapshot source protocol for the delta streaming engine."""

from __future__ import annotations
from typing import Awaitable, Callable, Protocol, runtime_checkable

from ...models.snapshot import HolderSnapshot

# Bare poll function accepted wherever a SnapshotSource is
PollFn = Callable[[], Awaitable[HolderSnapshot]]


@runtime_checkable
class SnapshotSource(Protocol):
    """
    Protocol for holder-statistics providers.

    The only contract is a single async fetch that may fail. Caching,
    retries and timeouts belong to the implementation (or a wrapper such as
    RetryingSnapshotSource), never to the streaming engine.

    Implementations:
    - SeededSnapshotSource (deterministic demo/test data)
    - RetryingSnapshotSource (wraps another source)
    """

    async def fetch_snapshot(self) -> HolderSnapshot:
        """
        Fetch the latest holder statistics.

        Raises:
            Exception: Any failure of the upstream call.
        """
        ...


def as_poll_fn(source: SnapshotSource | PollFn) -> PollFn:
    """
    Accept either a SnapshotSource or a bare async callable.

    An object with ``fetch_snapshot`` is always polled through it, even if
    the object itself is callable.
    """
    if isinstance(source, SnapshotSource):
        return source.fetch_snapshot
    if callable(source):
        return source
    raise TypeError(f"Expected a SnapshotSource or async callable, got {type(source).__name__}")
