"""CLI presentation (rich tables)."""

from .tables import render_behavior, render_comparison, render_metrics, render_volatility

__all__ = ["render_behavior", "render_comparison", "render_metrics", "render_volatility"]
