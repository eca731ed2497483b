"""Application layer - streaming session orchestration."""

from .delta_stream import (
    DeltaStreamSession,
    SessionState,
    compute_delta,
    start_delta_stream,
)

__all__ = [
    "DeltaStreamSession",
    "SessionState",
    "compute_delta",
    "start_delta_stream",
]
