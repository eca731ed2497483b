"""Rich table renderers for the CLI."""

from __future__ import annotations

from typing import Dict, Optional

import pandas as pd
from rich.table import Table

from ..domain.services.decentralization import DecentralizationScore
from ..domain.services.returns import VolatilityReport
from ..models.behavior import BehaviorReport, Turnover
from ..models.metric_set import METRIC_NAMES, ComparisonResult, HolderBuckets, MetricSet
from .formatters import format_delta, format_percent, format_value

# Direction in which each metric indicates a more even distribution
DECENTRALIZING_DIRECTION: Dict[str, bool] = {
    "gini_coefficient": False,
    "hhi": False,
    "nakamoto_coefficient": True,
    "shannon_entropy": True,
    "palma_ratio": False,
    "top1_percent": False,
    "top10_percent": False,
}


def render_metrics(
    metrics: MetricSet,
    score: Optional[DecentralizationScore] = None,
    buckets: Optional[HolderBuckets] = None,
) -> Table:
    table = Table(title=f"Distribution metrics: {metrics.token_id or 'token'}", show_header=True)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right")

    table.add_row("holders", format_value(metrics.holder_count))
    table.add_row("total_supply", format_value(metrics.total_supply, 2))
    for name in METRIC_NAMES:
        table.add_row(name, format_value(metrics.get(name)))
    if buckets is not None:
        for bucket, count in buckets.to_dict().items():
            table.add_row(f"{bucket}s", format_value(count), style="dim")
    if score is not None:
        table.add_row("decentralization", f"{score.overall:.1f} ({score.grade})", style="bold")
    return table


def render_comparison(result: ComparisonResult) -> Table:
    table = Table(title=result.label or "Comparison", show_header=True)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column(result.first.token_id or "first", justify="right")
    table.add_column(result.second.token_id or "second", justify="right")
    table.add_column("Delta", justify="right")

    for entry in result.deltas:
        table.add_row(
            entry.name,
            format_value(entry.first),
            format_value(entry.second),
            format_delta(entry.delta, higher_is_better=DECENTRALIZING_DIRECTION.get(entry.name)),
        )
    return table


def render_volatility(report: VolatilityReport, tail: int = 10) -> Table:
    """Last ``tail`` rows of the per-timestamp return/volatility frame."""
    frame = report.to_frame().tail(tail)
    title = f"Returns and volatility ({len(report.series)} prices, {report.series.skipped} skipped)"
    if report.drawdown is not None:
        title += f", max drawdown {format_percent(report.drawdown.max_drawdown * 100.0)}"

    table = Table(title=title, show_header=True)
    table.add_column("timestamp", style="dim", no_wrap=True)
    for column in frame.columns:
        table.add_column(str(column), justify="right")
    for timestamp, row in frame.iterrows():
        cells = [format_value(None if pd.isna(row[c]) else float(row[c])) for c in frame.columns]
        table.add_row(f"{timestamp:.0f}", *cells)
    return table


def render_behavior(report: BehaviorReport, turnover: Optional[Turnover] = None) -> Table:
    """Address counts per behavior, with turnover rows when given."""
    table = Table(title=f"Holder behavior over {report.elapsed_days:.1f} days", show_header=True)
    table.add_column("Behavior", style="cyan", no_wrap=True)
    table.add_column("Holders", justify="right")

    for behavior, count in report.counts().items():
        table.add_row(behavior, format_value(count))
    if turnover is not None:
        table.add_row("entered", format_value(turnover.entered), style="dim")
        table.add_row("exited", format_value(turnover.exited), style="dim")
        table.add_row("turnover", format_percent(turnover.turnover_percent), style="bold")
    return table
