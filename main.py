"""
Holder Analytics - Main Entry Point

Usage:
    python main.py metrics holders.csv              # Distribution metrics of one token
    python main.py compare token_a.csv token_b.csv  # Side-by-side metric deltas
    python main.py behavior week1.csv week9.csv --days 56
    python main.py volatility prices.csv --window 7 --window 30
    python main.py --env demo stream --seed 42 --ticks 5
"""

from __future__ import annotations
import asyncio
import argparse
import json
import sys

from rich.console import Console

from config.config_manager import ConfigManager
from config.models import AppConfig
from src.application import DeltaStreamSession
from src.domain.exceptions import HolderAnalyticsError
from src.domain.services import (
    Comparator,
    DistributionMetricsEngine,
    HolderBehaviorAnalyzer,
    VolatilityAnalyzer,
    decentralization_score,
)
from src.domain.services.distribution_metrics import holder_buckets
from src.infrastructure.loaders import load_distribution_csv, load_prices_csv
from src.infrastructure.sources import RetryingSnapshotSource, SeededSnapshotSource
from src.infrastructure.transport import format_stream_event
from src.models.snapshot import EventKind
from src.presentation import render_behavior, render_comparison, render_metrics, render_volatility
from src.utils.logging_setup import get_logger, setup_category_logging, shutdown_logging

logger = get_logger(__name__)
console = Console()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Token holder distribution analytics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py metrics data/holders.csv --json
  python main.py compare data/a.csv data/b.csv
  python main.py behavior data/a.csv data/b.csv --days 30
  python main.py volatility data/prices.csv --window 7
  python main.py --env demo stream --seed 7 --ticks 10 --failure-rate 0.2
        """
    )

    parser.add_argument(
        "--env",
        type=str,
        default="dev",
        choices=["dev", "prod", "demo"],
        help="Environment to load config for (default: dev)"
    )

    parser.add_argument(
        "--config-dir",
        type=str,
        default="config",
        help="Directory containing base.yaml and environment overrides"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level for all categories)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override the configured log level"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    metrics_parser = subparsers.add_parser("metrics", help="Compute distribution metrics from a balances CSV")
    metrics_parser.add_argument("csv", help="CSV with an amount (or balance) column")
    metrics_parser.add_argument("--supply", type=float, help="Total supply if the CSV lists only top holders")
    metrics_parser.add_argument("--json", action="store_true", help="Print JSON instead of a table")

    compare_parser = subparsers.add_parser("compare", help="Compare the metrics of two balance CSVs")
    compare_parser.add_argument("csv_a")
    compare_parser.add_argument("csv_b")
    compare_parser.add_argument("--label", type=str, default="", help="Comparison label")
    compare_parser.add_argument("--json", action="store_true", help="Print JSON instead of a table")

    behavior_parser = subparsers.add_parser("behavior", help="Classify holder behavior between two balance CSVs")
    behavior_parser.add_argument("csv_first", help="Earlier snapshot (address and amount columns)")
    behavior_parser.add_argument("csv_last", help="Later snapshot (address and amount columns)")
    behavior_parser.add_argument("--days", type=float, required=True, help="Days between the two snapshots")
    behavior_parser.add_argument("--json", action="store_true", help="Print JSON instead of a table")

    volatility_parser = subparsers.add_parser("volatility", help="Returns, rolling volatility and Sharpe")
    volatility_parser.add_argument("csv", help="CSV with timestamp and price columns")
    volatility_parser.add_argument(
        "--window",
        type=int,
        action="append",
        help="Rolling window size (repeatable; defaults to volatility.default_windows)"
    )
    volatility_parser.add_argument("--tail", type=int, default=10, help="Rows to show (default: 10)")

    stream_parser = subparsers.add_parser("stream", help="Stream SSE delta events from a seeded demo source")
    stream_parser.add_argument("--seed", type=int, default=42, help="Random seed for the synthetic holders")
    stream_parser.add_argument("--ticks", type=int, default=5, help="Stop after this many update/error events")
    stream_parser.add_argument("--holders", type=int, default=200, help="Initial synthetic holder count")
    stream_parser.add_argument("--failure-rate", type=float, default=0.0, help="Fraction of failing fetches")
    stream_parser.add_argument("--interval-ms", type=int, help="Override stream.interval_ms")
    stream_parser.add_argument("--no-retry", action="store_true", help="Do not retry failed fetches")

    return parser.parse_args(argv)


def run_metrics(args: argparse.Namespace, config: AppConfig) -> int:
    engine = DistributionMetricsEngine(config.metrics)
    distribution = load_distribution_csv(args.csv, total_supply=args.supply)
    metrics = engine.compute(distribution)
    score = decentralization_score(metrics)
    buckets = holder_buckets(distribution.amounts, distribution.supply)

    if args.json:
        payload = {
            "metrics": metrics.to_dict(precision=4),
            "percentiles": engine.percentiles(distribution),
            "buckets": buckets.to_dict(),
            "decentralization": score.to_dict(),
        }
        print(json.dumps(payload, indent=2))
    else:
        console.print(render_metrics(metrics, score=score, buckets=buckets))
    return 0


def run_compare(args: argparse.Namespace, config: AppConfig) -> int:
    comparator = Comparator(DistributionMetricsEngine(config.metrics))
    result = comparator.compare(
        load_distribution_csv(args.csv_a),
        load_distribution_csv(args.csv_b),
        label=args.label,
    )
    if args.json:
        print(json.dumps(result.to_dict(precision=4), indent=2))
    else:
        console.print(render_comparison(result))
    return 0


def run_behavior(args: argparse.Namespace, config: AppConfig) -> int:
    analyzer = HolderBehaviorAnalyzer(config.behavior)
    first = load_distribution_csv(args.csv_first)
    last = load_distribution_csv(args.csv_last)
    report = analyzer.classify(first, last, elapsed_days=args.days)
    turnover = analyzer.turnover(first, last)

    if args.json:
        payload = report.to_dict()
        payload["turnover"] = turnover.to_dict()
        print(json.dumps(payload, indent=2))
    else:
        console.print(render_behavior(report, turnover))
    return 0


def run_volatility(args: argparse.Namespace, config: AppConfig) -> int:
    analyzer = VolatilityAnalyzer(config.volatility)
    report = analyzer.analyze(load_prices_csv(args.csv), windows=args.window)
    console.print(render_volatility(report, tail=args.tail))
    return 0


async def run_stream(args: argparse.Namespace, config: AppConfig) -> int:
    """
    Print SSE frames from a demo session until ``--ticks`` poll outcomes arrive.

    Returns:
        Exit code (0 even if some polls failed; failures are stream events).
    """
    stream_config = config.stream
    if args.interval_ms:
        stream_config.interval_ms = args.interval_ms

    source = SeededSnapshotSource(args.seed, initial_holders=args.holders, failure_rate=args.failure_rate)
    poll_source = source if args.no_retry else RetryingSnapshotSource(source, config.retry)

    outcomes = 0
    async with DeltaStreamSession(poll_source, stream_config) as session:
        async for event in session:
            sys.stdout.write(format_stream_event(event))
            sys.stdout.flush()
            if event.kind is not EventKind.HEARTBEAT:
                outcomes += 1
            if outcomes >= args.ticks:
                break
        stats = session.stats

    logger.info(f"Stream demo finished after {source.fetch_count} fetches: {stats}")
    return 0


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = ConfigManager(config_dir=args.config_dir, env=args.env).load()
    except (FileNotFoundError, ValueError) as e:
        print(f"Configuration error: {e}")
        sys.exit(2)

    setup_category_logging(
        env=args.env,
        log_dir=config.logging.dir,
        level=args.log_level or config.logging.level,
        console=config.logging.console,
        verbose=args.verbose,
        json_format=config.logging.json,
    )

    try:
        if args.command == "metrics":
            exit_code = run_metrics(args, config)
        elif args.command == "compare":
            exit_code = run_compare(args, config)
        elif args.command == "behavior":
            exit_code = run_behavior(args, config)
        elif args.command == "volatility":
            exit_code = run_volatility(args, config)
        else:
            exit_code = asyncio.run(run_stream(args, config))
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("Shutdown requested")
        sys.exit(0)
    except (HolderAnalyticsError, FileNotFoundError) as e:
        print(f"Error: {e}")
        sys.exit(1)
    finally:
        shutdown_logging()


if __name__ == "__main__":
    main()
