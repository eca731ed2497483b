"""
Timezone utilities.

Conventions:
- Internal timestamps: UTC (timezone-aware datetimes)
- Wire timestamps: integer epoch milliseconds
"""

from __future__ import annotations

from datetime import datetime, timezone

UTC = timezone.utc


def now_utc() -> datetime:
    """Get current time in UTC (timezone-aware)."""
    return datetime.now(UTC)


def to_epoch_ms(dt: datetime) -> int:
    """Convert a datetime to epoch milliseconds (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp() * 1000)
