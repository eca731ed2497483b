"""Holder balance and distribution models."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional, Tuple

import numpy as np

from ..domain.exceptions import InvalidInputError

# Relative slack when checking an explicit supply against the observed sum
_SUPPLY_TOLERANCE = 1e-9


@dataclass(frozen=True, slots=True)
class Balance:
    """
    One holder's balance of a token.

    ``address`` is an opaque holder identifier. ``amount`` must be a finite,
    non-negative number; anything else is rejected at construction.
    """

    address: str
    amount: float

    def __post_init__(self) -> None:
        try:
            amount = float(self.amount)
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"Balance for {self.address!r} is not numeric: {self.amount!r}") from e
        if not math.isfinite(amount):
            raise InvalidInputError(f"Balance for {self.address!r} is not finite: {self.amount!r}")
        if amount < 0:
            raise InvalidInputError(f"Balance for {self.address!r} is negative: {amount}")
        object.__setattr__(self, "amount", amount)


@dataclass(frozen=True, slots=True)
class Distribution:
    """
    All holder balances of one token at one instant.

    ``total_supply`` is optional. When omitted, the supply is inferred as the
    sum of the observed balances. When given (e.g. only the top holders were
    fetched), it must be finite and at least the observed sum.
    """

    balances: Tuple[Balance, ...] = field(default_factory=tuple)
    token_id: str = ""
    total_supply: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "balances", tuple(self.balances))
        if self.total_supply is None:
            return

        supply = float(self.total_supply)
        if not math.isfinite(supply) or supply < 0:
            raise InvalidInputError(f"Total supply must be finite and non-negative: {self.total_supply!r}")
        observed = self.observed_total
        if supply < observed * (1 - _SUPPLY_TOLERANCE):
            raise InvalidInputError(
                f"Total supply {supply} is smaller than the sum of balances {observed}"
            )
        object.__setattr__(self, "total_supply", supply)

    @classmethod
    def from_amounts(
        cls,
        amounts: Iterable[float],
        token_id: str = "",
        total_supply: Optional[float] = None,
    ) -> "Distribution":
        """Build a distribution from bare amounts (addresses are synthesized)."""
        balances = tuple(
            Balance(address=f"holder-{i}", amount=amount)
            for i, amount in enumerate(amounts)
        )
        return cls(balances=balances, token_id=token_id, total_supply=total_supply)

    @classmethod
    def from_records(
        cls,
        records: Iterable[Mapping[str, Any]],
        token_id: str = "",
        total_supply: Optional[float] = None,
    ) -> "Distribution":
        """
        Build a distribution from loosely-shaped records.

        Each record needs an ``address`` and either ``amount`` or ``balance``.
        """
        balances = []
        for i, record in enumerate(records):
            if "amount" in record:
                amount = record["amount"]
            elif "balance" in record:
                amount = record["balance"]
            else:
                raise InvalidInputError(f"Record {i} has no amount/balance field: {dict(record)!r}")
            balances.append(Balance(address=str(record.get("address", f"holder-{i}")), amount=amount))
        return cls(balances=tuple(balances), token_id=token_id, total_supply=total_supply)

    @property
    def amounts(self) -> np.ndarray:
        """Balances as a float array, in input order."""
        return np.fromiter((b.amount for b in self.balances), dtype=float, count=len(self.balances))

    @property
    def holder_count(self) -> int:
        return len(self.balances)

    @property
    def observed_total(self) -> float:
        """Sum of the observed balances."""
        return math.fsum(b.amount for b in self.balances)

    @property
    def supply(self) -> float:
        """Explicit total supply if known, otherwise the observed sum."""
        return self.total_supply if self.total_supply is not None else self.observed_total
