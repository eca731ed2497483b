"""
Configuration manager with environment-based loading.

Supports:
- Base configuration (base.yaml)
- Environment-specific overrides (dev.yaml, prod.yaml)
- Secrets loading (secrets.yaml - gitignored)
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, Any
import yaml
import logging

from .models import (
    AppConfig,
    MetricsConfig,
    VolatilityConfig,
    StreamConfig,
    RetryConfig,
    BehaviorConfig,
    LoggingConfig,
)


logger = logging.getLogger(__name__)


class ConfigManager:
    """
    Configuration manager with environment support.

    Loads configuration in this order:
    1. base.yaml (default config)
    2. {env}.yaml (environment-specific, e.g., dev.yaml)
    3. secrets.yaml (if exists, gitignored)

    Later configs override earlier ones.
    """

    def __init__(self, config_dir: str | Path = "config", env: str = "dev"):
        """
        Initialize config manager.

        Args:
            config_dir: Directory containing config files.
            env: Environment name (dev, prod, etc).
        """
        self.config_dir = Path(config_dir)
        self.env = env
        self.config: Dict[str, Any] = {}

    def load(self) -> AppConfig:
        """
        Load configuration from YAML files.

        Returns:
            AppConfig object.

        Raises:
            FileNotFoundError: If base config not found.
            ValueError: If config is invalid.
        """
        base_path = self.config_dir / "base.yaml"
        if not base_path.exists():
            raise FileNotFoundError(f"Base config not found: {base_path}")

        self.config = self._load_yaml(base_path)
        logger.info(f"Loaded base config from {base_path}")

        env_path = self.config_dir / f"{self.env}.yaml"
        if env_path.exists():
            env_config = self._load_yaml(env_path)
            self.config = self._merge_dicts(self.config, env_config)
            logger.info(f"Loaded {self.env} config from {env_path}")

        secrets_path = self.config_dir / "secrets.yaml"
        if secrets_path.exists():
            secrets = self._load_yaml(secrets_path)
            self.config = self._merge_dicts(self.config, secrets)
            logger.info("Loaded secrets")

        return self._parse_config()

    def _load_yaml(self, path: Path) -> Dict[str, Any]:
        """Load YAML file."""
        with open(path, "r") as f:
            return yaml.safe_load(f) or {}

    def _merge_dicts(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dicts (override wins)."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_dicts(result[key], value)
            else:
                result[key] = value
        return result

    def _parse_config(self) -> AppConfig:
        """Parse raw dict into AppConfig."""
        try:
            metrics_raw = self.config.get("metrics", {})
            top_raw = metrics_raw.get("top_share_fractions", {})
            metrics = MetricsConfig(
                nakamoto_threshold=float(metrics_raw.get("nakamoto_threshold", 0.5)),
                top1_fraction=float(top_raw.get("top1", 0.01)),
                top10_fraction=float(top_raw.get("top10", 0.10)),
                palma_top_fraction=float(metrics_raw.get("palma_top_fraction", 0.10)),
                palma_bottom_fraction=float(metrics_raw.get("palma_bottom_fraction", 0.40)),
                percentiles=[float(p) for p in metrics_raw.get("percentiles", [25, 50, 75, 90, 95, 99])],
            )

            volatility_raw = self.config.get("volatility", {})
            volatility = VolatilityConfig(
                periods_per_year=int(volatility_raw.get("periods_per_year", 365)),
                risk_free_rate=float(volatility_raw.get("risk_free_rate", 0.0)),
                default_windows=[int(w) for w in volatility_raw.get("default_windows", [7, 30])],
            )

            stream_raw = self.config.get("stream", {})
            stream = StreamConfig(
                interval_ms=int(stream_raw.get("interval_ms", 30_000)),
                heartbeat_ms=int(stream_raw.get("heartbeat_ms", 15_000)),
                poll_on_start=bool(stream_raw.get("poll_on_start", True)),
                failure_warn_threshold=int(stream_raw.get("failure_warn_threshold", 5)),
                max_queue_size=int(stream_raw.get("max_queue_size", 100)),
            )

            retry_raw = self.config.get("retry", {})
            retry = RetryConfig(
                max_attempts=int(retry_raw.get("max_attempts", 3)),
                initial_delay_ms=int(retry_raw.get("initial_delay_ms", 500)),
                max_delay_ms=int(retry_raw.get("max_delay_ms", 10_000)),
                backoff_multiplier=float(retry_raw.get("backoff_multiplier", 2.0)),
                jitter=bool(retry_raw.get("jitter", True)),
            )

            behavior_raw = self.config.get("behavior", {})
            behavior = BehaviorConfig(
                flipper_max_days=float(behavior_raw.get("flipper_max_days", 7.0)),
                diamond_hands_min_days=float(behavior_raw.get("diamond_hands_min_days", 180.0)),
                diamond_hands_max_change=float(behavior_raw.get("diamond_hands_max_change", 0.10)),
                trend_change=float(behavior_raw.get("trend_change", 0.20)),
            )

            logging_raw = self.config.get("logging", {})
            logging_config = LoggingConfig(
                level=logging_raw.get("level", "INFO"),
                json=logging_raw.get("json", True),
                dir=logging_raw.get("dir", "./logs"),
                console=logging_raw.get("console", False),
            )

            return AppConfig(
                metrics=metrics,
                volatility=volatility,
                stream=stream,
                retry=retry,
                behavior=behavior,
                logging=logging_config,
                raw=self.config,
            )

        except Exception as e:
            raise ValueError(f"Failed to parse config: {e}")
