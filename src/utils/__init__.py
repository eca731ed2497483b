"""Utility modules."""

from .logging_setup import (
    setup_category_logging,
    shutdown_logging,
    get_logger,
    set_verbose_mode,
)
from .trace_context import (
    get_session_id,
    new_session,
    generate_session_id,
)
from .timezone import now_utc, to_epoch_ms

__all__ = [
    # Logging setup
    "setup_category_logging",
    "shutdown_logging",
    "get_logger",
    "set_verbose_mode",
    # Trace context
    "get_session_id",
    "new_session",
    "generate_session_id",
    # Time
    "now_utc",
    "to_epoch_ms",
]
