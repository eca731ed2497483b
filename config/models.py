"""Configuration data models."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Any, List


@dataclass
class MetricsConfig:
    """Distribution metrics configuration."""
    nakamoto_threshold: float = 0.5
    top1_fraction: float = 0.01
    top10_fraction: float = 0.10
    palma_top_fraction: float = 0.10
    palma_bottom_fraction: float = 0.40
    percentiles: List[float] = field(default_factory=lambda: [25, 50, 75, 90, 95, 99])


@dataclass
class VolatilityConfig:
    """Return/volatility configuration."""
    periods_per_year: int = 365
    risk_free_rate: float = 0.0  # Per period, not annual
    default_windows: List[int] = field(default_factory=lambda: [7, 30])


@dataclass
class StreamConfig:
    """Delta stream session configuration."""
    interval_ms: int = 30_000
    heartbeat_ms: int = 15_000
    poll_on_start: bool = True
    failure_warn_threshold: int = 5  # Consecutive failed polls before escalating the log level
    max_queue_size: int = 100  # Outbound events buffered for a slow subscriber


@dataclass
class RetryConfig:
    """Snapshot source retry configuration."""
    max_attempts: int = 3
    initial_delay_ms: int = 500
    max_delay_ms: int = 10_000
    backoff_multiplier: float = 2.0
    jitter: bool = True  # Add up to 50% of the initial delay at random


@dataclass
class BehaviorConfig:
    """Holder behavior classification thresholds."""
    flipper_max_days: float = 7.0  # Shorter observation windows classify every holder as a flipper
    diamond_hands_min_days: float = 180.0
    diamond_hands_max_change: float = 0.10  # Fractional balance change
    trend_change: float = 0.20  # Accumulator above +trend_change, distributor below -trend_change


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    json: bool = True
    dir: str = "./logs"
    console: bool = False


@dataclass
class AppConfig:
    """Complete application configuration."""
    metrics: MetricsConfig
    volatility: VolatilityConfig
    stream: StreamConfig
    retry: RetryConfig
    behavior: BehaviorConfig
    logging: LoggingConfig
    raw: Dict[str, Any]  # Raw merged config dict
