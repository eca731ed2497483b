"""
Holder Behavior - how individual addresses move between balance snapshots.

Computes:
- Per-address classification between a first and a last snapshot
  (new entrant, exited, flipper, diamond hands, accumulator, distributor)
- Holding-duration statistics from first-seen/last-seen times
- Turnover (entered + exited over all addresses seen)

Snapshots are keyed by address. An address holds a position when its
balance is positive; zero balances count as absent. Repeated addresses in
one snapshot are summed.
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from config.models import BehaviorConfig

from ...models.behavior import BehaviorChange, BehaviorReport, HolderBehavior, HoldingDuration, Turnover
from ...models.distribution import Balance, Distribution
from ...utils.logging_setup import get_logger
from ..exceptions import ConfigurationError, InvalidInputError

logger = get_logger(__name__)

MS_PER_DAY = 86_400_000

SnapshotLike = Union[Distribution, Mapping[str, float], Iterable[Balance]]
TimedSnapshot = Tuple[float, SnapshotLike]


def balances_by_address(snapshot: SnapshotLike) -> Dict[str, float]:
    """
    Positive balances keyed by address, in first-seen order.

    Raises:
        InvalidInputError: For a negative, non-finite or non-numeric balance.
    """
    if isinstance(snapshot, Distribution):
        balances: Iterable[Balance] = snapshot.balances
    elif isinstance(snapshot, Mapping):
        balances = (Balance(address=str(a), amount=v) for a, v in snapshot.items())
    else:
        balances = snapshot

    held: Dict[str, float] = {}
    for balance in balances:
        if not isinstance(balance, Balance):
            raise InvalidInputError(f"Expected Balance entries, got {type(balance).__name__}")
        held[balance.address] = held.get(balance.address, 0.0) + balance.amount
    return {address: amount for address, amount in held.items() if amount > 0}


def _classify_held(change: float, elapsed_days: float, config: BehaviorConfig) -> HolderBehavior:
    if elapsed_days < config.flipper_max_days:
        return HolderBehavior.FLIPPER
    if elapsed_days >= config.diamond_hands_min_days and abs(change) < config.diamond_hands_max_change:
        return HolderBehavior.DIAMOND_HANDS
    if change > config.trend_change:
        return HolderBehavior.ACCUMULATOR
    if change < -config.trend_change:
        return HolderBehavior.DISTRIBUTOR
    return HolderBehavior.DIAMOND_HANDS


def classify_holder_behavior(
    first: SnapshotLike,
    last: SnapshotLike,
    elapsed_days: float,
    config: Optional[BehaviorConfig] = None,
) -> BehaviorReport:
    """
    Classify every address present in either snapshot.

    Addresses only in ``last`` are new entrants and addresses only in
    ``first`` have exited. An address held in both is a flipper when the
    snapshots are less than ``flipper_max_days`` apart; otherwise its
    fractional balance change decides between diamond hands, accumulator
    and distributor.

    Raises:
        InvalidInputError: If ``elapsed_days`` is negative or not finite.
    """
    config = config or BehaviorConfig()
    elapsed = float(elapsed_days)
    if not math.isfinite(elapsed) or elapsed < 0:
        raise InvalidInputError(f"Elapsed days must be finite and non-negative: {elapsed_days!r}")

    before = balances_by_address(first)
    after = balances_by_address(last)

    changes: List[BehaviorChange] = []
    for address, old in before.items():
        new = after.get(address)
        if new is None:
            changes.append(BehaviorChange(address, HolderBehavior.EXITED, first_balance=old))
            continue
        change = (new - old) / old
        changes.append(
            BehaviorChange(
                address,
                _classify_held(change, elapsed, config),
                first_balance=old,
                last_balance=new,
                change=change,
            )
        )
    for address, new in after.items():
        if address not in before:
            changes.append(BehaviorChange(address, HolderBehavior.NEW_ENTRANT, last_balance=new))

    report = BehaviorReport(changes=tuple(changes), elapsed_days=elapsed)
    logger.debug(f"Classified {len(report)} addresses over {elapsed:.1f} days: {report.counts()}")
    return report


def _check_timestamps(snapshots: Sequence[TimedSnapshot]) -> None:
    for (t0, _), (t1, _) in zip(snapshots, snapshots[1:]):
        if t1 < t0:
            raise InvalidInputError(f"Snapshot timestamps must be non-decreasing: {t1} after {t0}")


def classify_snapshot_series(
    snapshots: Sequence[TimedSnapshot],
    config: Optional[BehaviorConfig] = None,
) -> BehaviorReport:
    """
    Classify addresses across the first and last of ``(epoch_ms, snapshot)`` pairs.

    Fewer than two snapshots give an empty report.
    """
    if len(snapshots) < 2:
        return BehaviorReport()
    _check_timestamps(snapshots)
    (start, first), (end, last) = snapshots[0], snapshots[-1]
    return classify_holder_behavior(first, last, (end - start) / MS_PER_DAY, config)


def observation_periods(snapshots: Sequence[TimedSnapshot]) -> Dict[str, Tuple[float, float]]:
    """First-seen and last-seen epoch ms of every address holding a positive balance."""
    _check_timestamps(snapshots)
    periods: Dict[str, Tuple[float, float]] = {}
    for timestamp, snapshot in snapshots:
        for address in balances_by_address(snapshot):
            first_seen = periods[address][0] if address in periods else timestamp
            periods[address] = (first_seen, timestamp)
    return periods


def holding_duration(
    periods: Union[Mapping[str, Tuple[float, float]], Iterable[Tuple[float, float]]],
) -> HoldingDuration:
    """
    Holding-period statistics in days from ``(first_seen, last_seen)`` epoch ms.

    Median and p90 are nearest-rank: the sorted durations at indices
    ``n // 2`` and ``9 * n // 10``.

    Raises:
        InvalidInputError: If a last-seen time precedes its first-seen time.
    """
    pairs = periods.values() if isinstance(periods, Mapping) else periods
    durations = []
    for first_seen, last_seen in pairs:
        if last_seen < first_seen:
            raise InvalidInputError(f"Last seen {last_seen} precedes first seen {first_seen}")
        durations.append((last_seen - first_seen) / MS_PER_DAY)
    if not durations:
        return HoldingDuration()

    durations.sort()
    n = len(durations)
    return HoldingDuration(
        average=math.fsum(durations) / n,
        median=durations[n // 2],
        p90=durations[9 * n // 10],
        minimum=durations[0],
        maximum=durations[-1],
        holders=n,
    )


def turnover_rate(first: SnapshotLike, last: SnapshotLike) -> Turnover:
    """Addresses that entered and exited between two snapshots, and their share of all addresses seen."""
    before = balances_by_address(first)
    after = balances_by_address(last)
    entered = sum(1 for address in after if address not in before)
    exited = sum(1 for address in before if address not in after)
    seen = len(before.keys() | after.keys())
    return Turnover(
        entered=entered,
        exited=exited,
        turnover_rate=(entered + exited) / seen if seen else 0.0,
    )


class HolderBehaviorAnalyzer:
    """
    Behavior classification with configured thresholds.

    Example:
        analyzer = HolderBehaviorAnalyzer(BehaviorConfig(flipper_max_days=3))
        report = analyzer.classify(week_1, week_9, elapsed_days=56)
    """

    def __init__(self, config: Optional[BehaviorConfig] = None):
        self.config = config or BehaviorConfig()
        if self.config.flipper_max_days < 0 or self.config.diamond_hands_min_days < 0:
            raise ConfigurationError("behavior day thresholds must be non-negative")
        if self.config.diamond_hands_max_change < 0 or self.config.trend_change < 0:
            raise ConfigurationError("behavior change thresholds must be non-negative")

    def classify(self, first: SnapshotLike, last: SnapshotLike, elapsed_days: float) -> BehaviorReport:
        return classify_holder_behavior(first, last, elapsed_days, self.config)

    def classify_series(self, snapshots: Sequence[TimedSnapshot]) -> BehaviorReport:
        return classify_snapshot_series(snapshots, self.config)

    def turnover(self, first: SnapshotLike, last: SnapshotLike) -> Turnover:
        return turnover_rate(first, last)
