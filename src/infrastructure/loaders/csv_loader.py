"""
CSV loaders for holder balances and price history.

Balance files need an ``amount`` (or ``balance``) column and may carry an
``address`` column. Price files need ``timestamp`` and ``price`` columns;
timestamps are epoch milliseconds or anything ``pandas.to_datetime`` parses.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import pandas as pd

from ...domain.exceptions import InvalidInputError
from ...models.distribution import Distribution
from ...models.series import PricePoint
from ...utils.logging_setup import get_logger

logger = get_logger(__name__)

AMOUNT_COLUMNS = ("amount", "balance")


def _read_csv(path: str | Path) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {path}")
    frame = pd.read_csv(path)
    frame.columns = [str(c).strip().lower() for c in frame.columns]
    return frame


def load_distribution_csv(
    path: str | Path,
    token_id: Optional[str] = None,
    total_supply: Optional[float] = None,
) -> Distribution:
    """
    Load one token's holder balances.

    Raises:
        FileNotFoundError: If the file does not exist.
        InvalidInputError: If no amount column exists or a balance is invalid.
    """
    frame = _read_csv(path)
    column = next((c for c in AMOUNT_COLUMNS if c in frame.columns), None)
    if column is None:
        raise InvalidInputError(f"{path}: expected one of columns {AMOUNT_COLUMNS}, got {list(frame.columns)}")

    addresses = (
        frame["address"].astype(str).tolist()
        if "address" in frame.columns
        else [f"holder-{i}" for i in range(len(frame))]
    )
    records = [{"address": a, "amount": v} for a, v in zip(addresses, frame[column].tolist())]
    distribution = Distribution.from_records(
        records,
        token_id=token_id if token_id is not None else Path(path).stem,
        total_supply=total_supply,
    )
    logger.info(f"Loaded {distribution.holder_count} balances from {path}")
    return distribution


def load_prices_csv(path: str | Path) -> List[PricePoint]:
    """
    Load raw price points (unvalidated; ``to_series`` filters them).

    Non-numeric timestamps are parsed as datetimes and converted to epoch ms.
    """
    frame = _read_csv(path)
    missing = {"timestamp", "price"} - set(frame.columns)
    if missing:
        raise InvalidInputError(f"{path}: missing columns {sorted(missing)}")

    timestamps = pd.to_numeric(frame["timestamp"], errors="coerce")
    if timestamps.isna().all() and len(frame):
        parsed = pd.to_datetime(frame["timestamp"], utc=True, errors="coerce")
        timestamps = (parsed - pd.Timestamp(0, tz="UTC")) // pd.Timedelta(milliseconds=1)

    prices = pd.to_numeric(frame["price"], errors="coerce")
    points = [PricePoint(timestamp=t, price=p) for t, p in zip(timestamps.tolist(), prices.tolist())]
    logger.info(f"Loaded {len(points)} price points from {path}")
    return points
