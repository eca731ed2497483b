"""File loaders for balances and prices."""

from .csv_loader import load_distribution_csv, load_prices_csv

__all__ = ["load_distribution_csv", "load_prices_csv"]
