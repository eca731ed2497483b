"""Domain interfaces for dependency injection."""

from .snapshot_source import SnapshotSource, PollFn, as_poll_fn

__all__ = [
    "SnapshotSource",
    "PollFn",
    "as_poll_fn",
]
