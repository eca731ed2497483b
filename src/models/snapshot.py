"""Holder statistics snapshots, deltas and stream events."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from ..utils.timezone import now_utc, to_epoch_ms

SNAPSHOT_FIELDS: Tuple[str, ...] = (
    "total_holders",
    "top10_percentage",
    "top50_percentage",
    "median_balance",
)


@dataclass(frozen=True, slots=True)
class HolderSnapshot:
    """
    A single point-in-time read of holder statistics.

    Any field may be ``None`` when the upstream source could only deliver
    part of the statistics; a partial snapshot is still the best available one.
    """

    total_holders: Optional[int] = None
    top10_percentage: Optional[float] = None
    top50_percentage: Optional[float] = None
    median_balance: Optional[float] = None

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "HolderSnapshot":
        """Build from a snake_case or camelCase mapping; missing keys become None."""
        def pick(snake: str, camel: str) -> Any:
            if snake in data:
                return data[snake]
            return data.get(camel)

        total_holders = pick("total_holders", "totalHolders")
        return cls(
            total_holders=int(total_holders) if total_holders is not None else None,
            top10_percentage=_as_float(pick("top10_percentage", "top10Percentage")),
            top50_percentage=_as_float(pick("top50_percentage", "top50Percentage")),
            median_balance=_as_float(pick("median_balance", "medianBalance")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in SNAPSHOT_FIELDS}


def _as_float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


@dataclass(frozen=True, slots=True)
class SnapshotChanges:
    """Per-field ``current - previous``; ``None`` where either side is missing."""

    total_holders: Optional[int] = None
    top10_percentage: Optional[float] = None
    top50_percentage: Optional[float] = None
    median_balance: Optional[float] = None

    @classmethod
    def between(cls, current: HolderSnapshot, previous: HolderSnapshot) -> "SnapshotChanges":
        values = {}
        for name in SNAPSHOT_FIELDS:
            now, before = getattr(current, name), getattr(previous, name)
            values[name] = None if now is None or before is None else now - before
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return {name: getattr(self, name) for name in SNAPSHOT_FIELDS}


@dataclass(frozen=True, slots=True)
class HolderDelta:
    """
    Change between two consecutive snapshots of one stream session.

    ``changes`` is ``None`` on the first tick of a session.
    """

    current: HolderSnapshot
    changes: Optional[SnapshotChanges] = None
    timestamp: datetime = field(default_factory=now_utc)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": to_epoch_ms(self.timestamp),
            "current": self.current.to_dict(),
            "changes": self.changes.to_dict() if self.changes is not None else None,
        }


class EventKind(Enum):
    """Stream event type (also the SSE ``event:`` name)."""
    UPDATE = "update"
    HEARTBEAT = "heartbeat"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class StreamEvent:
    """
    One event emitted by a delta stream session.

    - UPDATE: ``data`` is a HolderDelta, ``event_id`` increases per session
    - HEARTBEAT: no payload
    - ERROR: ``data`` is a human-readable message
    """

    kind: EventKind
    data: Union[HolderDelta, str, None] = None
    event_id: Optional[int] = None
    timestamp: datetime = field(default_factory=now_utc)

    def payload(self) -> Dict[str, Any]:
        """JSON-serializable payload for the transport layer."""
        if self.kind is EventKind.UPDATE and isinstance(self.data, HolderDelta):
            return self.data.to_dict()
        if self.kind is EventKind.ERROR:
            return {"message": self.data}
        return {"timestamp": to_epoch_ms(self.timestamp)}
