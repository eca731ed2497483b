"""
Formatting utilities for CLI tables.

Uses Rich markup syntax for colored deltas.
"""

from __future__ import annotations

from typing import Optional


def format_value(value: Optional[float], decimals: int = 4) -> str:
    """Format a metric value; undefined values render as "-"."""
    if value is None:
        return "-"
    if isinstance(value, int):
        return f"{value:,}"
    return f"{value:,.{decimals}f}"


def format_delta(delta: Optional[float], decimals: int = 4, higher_is_better: Optional[bool] = None) -> str:
    """
    Format a signed delta with optional color coding.

    Args:
        delta: second - first (or None).
        decimals: Decimal places.
        higher_is_better: True colors increases green, False colors them red,
            None leaves the value uncolored.
    """
    if delta is None:
        return "-"
    formatted = f"{delta:+,.{decimals}f}" if not isinstance(delta, int) else f"{delta:+,}"
    if higher_is_better is None or delta == 0:
        return formatted
    good = (delta > 0) == higher_is_better
    return f"[green]{formatted}[/]" if good else f"[red]{formatted}[/]"


def format_percent(value: Optional[float], decimals: int = 2) -> str:
    if value is None:
        return "-"
    return f"{value:.{decimals}f}%"
