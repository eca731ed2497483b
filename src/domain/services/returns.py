"""
Return/Volatility Module - returns, rolling volatility and rolling Sharpe.

Computes:
- Aligned (timestamp, price) series from raw price points
- Simple and log returns
- Rolling standard deviation over a trailing window
- Rolling Sharpe ratio over a trailing window
- Maximum drawdown

Rolling statistics use a sliding-window accumulator (O(n), not O(n * w)).
Each rolling output is aligned to the last timestamp of its window and
``len(output) == max(0, len(input) - window + 1)``.

Standard deviation is the population deviation of the window. Annualization
is off by default; pass ``periods_per_year`` (or use VolatilityAnalyzer).
"""

from __future__ import annotations

import math
import numbers
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from config.models import VolatilityConfig

from ...models.series import Drawdown, ParsedSeries, PricePoint, SeriesPoint
from ...utils.logging_setup import get_logger
from ..exceptions import ConfigurationError, InvalidInputError

logger = get_logger(__name__)

# Relative variance below which the running update is replaced by a two-pass recompute
_RECOMPUTE_VARIANCE_RTOL = 1e-8

RawPrice = Union[PricePoint, Mapping[str, Any], Tuple[float, float]]
SeriesLike = Union[ParsedSeries, Sequence[SeriesPoint]]


# =============================================================================
# SERIES EXTRACTION
# =============================================================================

def _coerce_point(raw: RawPrice) -> Tuple[Any, Any]:
    if isinstance(raw, PricePoint):
        return raw.timestamp, raw.price
    if isinstance(raw, Mapping):
        timestamp = raw.get("timestamp", raw.get("t"))
        return timestamp, raw.get("price", raw.get("v"))
    timestamp, price = raw
    return timestamp, price


def _finite(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def to_series(prices: Iterable[RawPrice]) -> ParsedSeries:
    """
    Extract an aligned ``(timestamp, price)`` series from raw price points.

    Points with a missing/non-finite timestamp or price, or a negative
    price, are skipped and counted. Timestamps must be non-decreasing.

    Raises:
        InvalidInputError: If accepted timestamps go backwards.
    """
    points: List[SeriesPoint] = []
    skipped = 0
    for raw in prices:
        try:
            raw_timestamp, raw_price = _coerce_point(raw)
        except (TypeError, ValueError):
            skipped += 1
            continue

        timestamp = _finite(raw_timestamp)
        price = _finite(raw_price)
        if timestamp is None or price is None or price < 0:
            skipped += 1
            continue

        if points and timestamp < points[-1].timestamp:
            raise InvalidInputError(
                f"Price timestamps must be non-decreasing: {timestamp} after {points[-1].timestamp}"
            )
        points.append(SeriesPoint(timestamp=timestamp, value=price))

    if skipped:
        logger.warning(f"Skipped {skipped} malformed price point(s); kept {len(points)}")
    return ParsedSeries(points=tuple(points), skipped=skipped)


def _points(series: SeriesLike) -> Sequence[SeriesPoint]:
    return series.points if isinstance(series, ParsedSeries) else series


def _value(point: SeriesPoint) -> float:
    if point.value is None or not math.isfinite(point.value):
        raise InvalidInputError(f"Series value at {point.timestamp} is undefined: {point.value!r}")
    return point.value


# =============================================================================
# RETURNS
# =============================================================================

def simple_returns(series: SeriesLike) -> List[SeriesPoint]:
    """
    ``r_t = (p_t - p_{t-1}) / p_{t-1}`` aligned to ``t``.

    One shorter than the input; empty for fewer than 2 points. A zero
    previous price yields a 0.0 return.
    """
    points = _points(series)
    out: List[SeriesPoint] = []
    for prev, cur in zip(points, points[1:]):
        p0, p1 = _value(prev), _value(cur)
        out.append(SeriesPoint(timestamp=cur.timestamp, value=0.0 if p0 == 0 else (p1 - p0) / p0))
    return out


def log_returns(series: SeriesLike) -> List[SeriesPoint]:
    """``ln(p_t / p_{t-1})`` aligned to ``t``; 0.0 when either price is zero."""
    points = _points(series)
    out: List[SeriesPoint] = []
    for prev, cur in zip(points, points[1:]):
        p0, p1 = _value(prev), _value(cur)
        out.append(SeriesPoint(timestamp=cur.timestamp, value=0.0 if p0 == 0 or p1 == 0 else math.log(p1 / p0)))
    return out


# =============================================================================
# ROLLING WINDOWS
# =============================================================================

class SlidingWindow:
    """
    Fixed-size trailing window with running mean and sum of squared deviations.

    Uses Welford's update for both insertion and removal. When the running
    variance is small against the squared mean it is recomputed in two passes
    over the window, so tiny real spread survives and a window of identical
    values has exactly zero variance.
    """

    def __init__(self, size: int):
        self.size = size
        self._values: Deque[float] = deque()
        self._mean = 0.0
        self._m2 = 0.0

    def push(self, value: float) -> None:
        if len(self._values) == self.size:
            self._remove(self._values.popleft())
        self._values.append(value)
        n = len(self._values)
        delta = value - self._mean
        self._mean += delta / n
        self._m2 += delta * (value - self._mean)

    def _remove(self, value: float) -> None:
        n = len(self._values)
        if n == 0:
            self._mean = 0.0
            self._m2 = 0.0
            return
        delta = value - self._mean
        self._mean -= delta / n
        self._m2 -= delta * (value - self._mean)

    @property
    def full(self) -> bool:
        return len(self._values) == self.size

    @property
    def mean(self) -> float:
        return self._mean

    @property
    def variance(self) -> float:
        """Population variance of the values in the window."""
        n = len(self._values)
        if n == 0:
            return 0.0
        variance = max(self._m2 / n, 0.0)
        if variance <= _RECOMPUTE_VARIANCE_RTOL * self._mean * self._mean:
            return self._exact_variance()
        return variance

    def _exact_variance(self) -> float:
        if min(self._values) == max(self._values):
            return 0.0
        n = len(self._values)
        mean = math.fsum(self._values) / n
        return math.fsum((v - mean) ** 2 for v in self._values) / n

    @property
    def std(self) -> float:
        return math.sqrt(self.variance)


def _check_window(window: int) -> None:
    if isinstance(window, bool) or not isinstance(window, numbers.Integral) or window <= 0:
        raise InvalidInputError(f"Window size must be a positive integer: {window!r}")


def rolling_std(
    series: SeriesLike,
    window: int,
    periods_per_year: Optional[int] = None,
) -> List[SeriesPoint]:
    """
    Trailing-window standard deviation, aligned to each window's last timestamp.

    Args:
        series: Usually a return series.
        window: Window size (positive integer).
        periods_per_year: If given, scale by ``sqrt(periods_per_year)``.

    Raises:
        InvalidInputError: For a non-positive window or an undefined value.
    """
    _check_window(window)
    scale = math.sqrt(periods_per_year) if periods_per_year else 1.0
    acc = SlidingWindow(window)
    out: List[SeriesPoint] = []
    for point in _points(series):
        acc.push(_value(point))
        if acc.full:
            out.append(SeriesPoint(timestamp=point.timestamp, value=acc.std * scale))
    return out


def sharpe(
    returns: SeriesLike,
    window: int,
    risk_free_rate: float = 0.0,
    periods_per_year: Optional[int] = None,
) -> List[SeriesPoint]:
    """
    Rolling Sharpe ratio: mean excess return over its standard deviation.

    ``risk_free_rate`` is per period. With ``periods_per_year`` the mean is
    annualized linearly and the deviation by the square root. A window with
    zero deviation yields a point whose value is ``None``.
    """
    _check_window(window)
    acc = SlidingWindow(window)
    out: List[SeriesPoint] = []
    for point in _points(returns):
        acc.push(_value(point) - risk_free_rate)
        if not acc.full:
            continue
        std = acc.std
        if std == 0:
            out.append(SeriesPoint(timestamp=point.timestamp, value=None))
            continue
        ratio = acc.mean / std
        if periods_per_year:
            ratio *= math.sqrt(periods_per_year)
        out.append(SeriesPoint(timestamp=point.timestamp, value=ratio))
    return out


def max_drawdown(series: SeriesLike) -> Drawdown:
    """Largest peak-to-trough decline as a fraction of the running peak."""
    peak = -math.inf
    worst = 0.0
    points = _points(series)
    worst_at: Optional[float] = points[0].timestamp if points else None
    for point in points:
        value = _value(point)
        peak = max(peak, value)
        drawdown = 0.0 if peak <= 0 else (peak - value) / peak
        if drawdown > worst:
            worst = drawdown
            worst_at = point.timestamp
    return Drawdown(max_drawdown=worst, timestamp=worst_at)


# =============================================================================
# ANALYZER
# =============================================================================

@dataclass
class VolatilityReport:
    """Returns, per-window rolling volatility/Sharpe and drawdown of one price series."""

    series: ParsedSeries
    returns: List[SeriesPoint]
    rolling_std: Dict[int, List[SeriesPoint]] = field(default_factory=dict)
    sharpe: Dict[int, List[SeriesPoint]] = field(default_factory=dict)
    drawdown: Optional[Drawdown] = None

    def to_frame(self) -> pd.DataFrame:
        """One row per return timestamp; rolling columns are NaN before the window fills."""
        frame = pd.DataFrame(
            {"return": [p.value for p in self.returns]},
            index=pd.Index([p.timestamp for p in self.returns], name="timestamp"),
        )
        for window, points in self.rolling_std.items():
            frame[f"std_{window}"] = self._aligned(frame.index, points)
        for window, points in self.sharpe.items():
            frame[f"sharpe_{window}"] = self._aligned(frame.index, points)
        return frame

    @staticmethod
    def _aligned(index: pd.Index, points: List[SeriesPoint]) -> pd.Series:
        # Rolling points end at the last return, so align by position; timestamps may repeat
        padding = [None] * (len(index) - len(points))
        return pd.Series(padding + [p.value for p in points], index=index, dtype=float)


class VolatilityAnalyzer:
    """
    Runs the return/volatility pipeline with configured annualization.

    Example:
        analyzer = VolatilityAnalyzer(VolatilityConfig(periods_per_year=365))
        report = analyzer.analyze(price_points, windows=[7, 30])
    """

    def __init__(self, config: Optional[VolatilityConfig] = None):
        self.config = config or VolatilityConfig()
        if self.config.periods_per_year <= 0:
            raise ConfigurationError(
                f"volatility.periods_per_year must be positive: {self.config.periods_per_year}"
            )
        for window in self.config.default_windows:
            if window <= 0:
                raise ConfigurationError(f"volatility.default_windows must be positive: {window}")

    def analyze(self, prices: Iterable[RawPrice], windows: Optional[Sequence[int]] = None) -> VolatilityReport:
        series = to_series(prices)
        rets = simple_returns(series)
        ppy = self.config.periods_per_year
        report = VolatilityReport(series=series, returns=rets, drawdown=max_drawdown(series))
        for window in windows or self.config.default_windows:
            report.rolling_std[window] = rolling_std(rets, window, periods_per_year=ppy)
            report.sharpe[window] = sharpe(
                rets, window, risk_free_rate=self.config.risk_free_rate, periods_per_year=ppy
            )
        logger.debug(
            f"Volatility over {len(series)} prices ({series.skipped} skipped), windows={list(report.rolling_std)}"
        )
        return report
