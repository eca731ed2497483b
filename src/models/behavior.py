"""Holder behavior records: per-address classification, holding duration and turnover."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class HolderBehavior(Enum):
    """How one address's position moved between two snapshots."""
    NEW_ENTRANT = "new_entrant"
    EXITED = "exited"
    FLIPPER = "flipper"
    DIAMOND_HANDS = "diamond_hands"
    ACCUMULATOR = "accumulator"
    DISTRIBUTOR = "distributor"


@dataclass(frozen=True, slots=True)
class BehaviorChange:
    """
    One address classified across a first and a last snapshot.

    ``first_balance`` is None for new entrants, ``last_balance`` is None for
    exited holders. ``change`` is the fractional balance change, None unless
    the address held a positive balance in both snapshots.
    """

    address: str
    behavior: HolderBehavior
    first_balance: Optional[float] = None
    last_balance: Optional[float] = None
    change: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "behavior": self.behavior.value,
            "first_balance": self.first_balance,
            "last_balance": self.last_balance,
            "change": self.change,
        }


@dataclass(frozen=True, slots=True)
class BehaviorReport:
    """All classified addresses plus the observation span in days."""

    changes: Tuple[BehaviorChange, ...] = field(default_factory=tuple)
    elapsed_days: float = 0.0

    def __len__(self) -> int:
        return len(self.changes)

    def behavior_of(self, address: str) -> HolderBehavior:
        for change in self.changes:
            if change.address == address:
                return change.behavior
        raise KeyError(f"Unknown address: {address}")

    def as_mapping(self) -> Dict[str, HolderBehavior]:
        return {c.address: c.behavior for c in self.changes}

    def counts(self) -> Dict[str, int]:
        """Addresses per behavior, with every behavior present."""
        counts = {behavior.value: 0 for behavior in HolderBehavior}
        for change in self.changes:
            counts[change.behavior.value] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "elapsed_days": self.elapsed_days,
            "counts": self.counts(),
            "holders": [c.to_dict() for c in self.changes],
        }


@dataclass(frozen=True, slots=True)
class HoldingDuration:
    """Holding-period statistics in days; all zero for no holders."""

    average: float = 0.0
    median: float = 0.0
    p90: float = 0.0
    minimum: float = 0.0
    maximum: float = 0.0
    holders: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "avg": self.average,
            "median": self.median,
            "p90": self.p90,
            "min": self.minimum,
            "max": self.maximum,
            "holders": self.holders,
        }


@dataclass(frozen=True, slots=True)
class Turnover:
    """
    Holder churn between two snapshots.

    ``turnover_rate`` is ``(entered + exited) / addresses seen in either``,
    in [0, 1]; 0 when neither snapshot has holders.
    """

    entered: int = 0
    exited: int = 0
    turnover_rate: float = 0.0

    @property
    def turnover_percent(self) -> float:
        return self.turnover_rate * 100.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entered": self.entered,
            "exited": self.exited,
            "turnover_rate": self.turnover_rate,
            "turnover_percent": self.turnover_percent,
        }
