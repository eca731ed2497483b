"""
Logging setup with categories and session trace ID support.

Provides:
- 4 log categories: system, metrics, stream, data
- Automatic module → category routing
- Session ID correlation in all logs
- One JSON-lines file per category, written through a queue listener
- Optional colored console output

Categories:
- system: Startup, shutdown, config, CLI
- metrics: Distribution metrics, comparisons, volatility
- stream: Delta streaming sessions, polls, heartbeats
- data: Snapshot sources, retries, input parsing
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys
from datetime import datetime
from pathlib import Path
from queue import Queue
from typing import Dict, List, Optional

from .trace_context import get_session_id

# =============================================================================
# GLOBAL STATE
# =============================================================================

# Global verbose flag (set via --verbose CLI flag)
_verbose_mode: bool = False

# Global log level override (set via --log-level CLI flag)
_log_level_override: Optional[str] = None

# Configured category loggers
_category_loggers: Dict[str, logging.Logger] = {}

# Queue listeners for async file logging (one per category)
_queue_listeners: List[logging.handlers.QueueListener] = []

# =============================================================================
# LOG CATEGORIES AND ROUTING
# =============================================================================

LOGGER_PREFIX = "holder"

CATEGORIES = ["system", "metrics", "stream", "data"]

CATEGORY_SUFFIXES = {
    "system": "sys",
    "metrics": "met",
    "stream": "str",
    "data": "dat",
}

# Module path → category routing
# More specific paths should come first
MODULE_ROUTING: List[tuple[str, str]] = [
    ("src.domain.services.holder_stats", "data"),
    ("src.domain.services", "metrics"),
    ("src.application", "stream"),
    ("src.infrastructure.transport", "stream"),
    ("src.infrastructure", "data"),
    ("src.models", "data"),

    # Default fallback
    ("src", "system"),
]


def get_category_for_module(module_name: str) -> str:
    """
    Determine the log category for a given module name.

    Args:
        module_name: Full module path (e.g., "src.application.delta_stream").

    Returns:
        Category name (system, metrics, stream or data).
    """
    for prefix, category in MODULE_ROUTING:
        if module_name.startswith(prefix):
            return category
    return "system"


# =============================================================================
# GLOBAL CONFIGURATION
# =============================================================================

def set_verbose_mode(enabled: bool) -> None:
    """Enable or disable verbose mode (DEBUG level logging)."""
    global _verbose_mode
    _verbose_mode = enabled


def set_log_level_override(level: Optional[str]) -> None:
    """Set a global log level override."""
    global _log_level_override
    _log_level_override = level.upper() if level else None


def get_effective_log_level() -> str:
    """Get the effective log level (considering verbose mode and overrides)."""
    if _verbose_mode:
        return "DEBUG"
    if _log_level_override:
        return _log_level_override
    return "INFO"


# =============================================================================
# FORMATTERS
# =============================================================================

class SessionIdFilter(logging.Filter):
    """Stamp the current session ID on each record in the emitting context."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "session"):
            record.session = get_session_id()
        return True


def _record_session(record: logging.LogRecord) -> str:
    return getattr(record, "session", None) or get_session_id()


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging with session ID support.

    Formats log records as single-line JSON with timestamp, level,
    category, session ID, message and optional extra data.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string."""
        log_entry = {
            "ts": datetime.now().astimezone().isoformat(),
            "level": record.levelname,
            "cat": self._get_category(record.name),
            "session": _record_session(record),
            "msg": record.getMessage(),
        }

        if hasattr(record, "data") and record.data:
            log_entry["data"] = record.data

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)

    def _get_category(self, logger_name: str) -> str:
        """Extract category from logger name."""
        if logger_name.startswith(f"{LOGGER_PREFIX}."):
            parts = logger_name.split(".")
            if len(parts) >= 2 and parts[1] in CATEGORIES:
                return parts[1]
        return "system"


class ConsoleFormatter(logging.Formatter):
    """
    Console formatter with session ID and color support.

    Format: [LEVEL] [session] message
    """

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for console output."""
        session_id = _record_session(record)
        level = record.levelname

        if self.use_colors:
            color = self.COLORS.get(level, "")
            return f"{color}[{level:7}]{self.RESET} [{session_id}] {record.getMessage()}"
        return f"[{level:7}] [{session_id}] {record.getMessage()}"


# =============================================================================
# LOGGER FACTORY
# =============================================================================

def get_logger(module_name: str) -> logging.Logger:
    """
    Get a logger for the given module, automatically routed to its category.

    Args:
        module_name: Module name (typically __name__).

    Returns:
        Logger instance that routes to the appropriate category.

    Example:
        from src.utils.logging_setup import get_logger
        logger = get_logger(__name__)
        logger.info("Processing...")
    """
    category = get_category_for_module(module_name)
    return logging.getLogger(f"{LOGGER_PREFIX}.{category}")


# =============================================================================
# CATEGORY LOGGING SETUP
# =============================================================================

def setup_category_logging(
    env: str,
    log_dir: str = "./logs",
    level: str = "INFO",
    console: bool = False,
    verbose: bool = False,
    json_format: bool = True,
) -> Dict[str, logging.Logger]:
    """
    Set up separate log files for each category.

    Creates log files in a date-specific subdirectory:
    - logs/{date}/holder_{env}_sys_{date}.log - System events
    - logs/{date}/holder_{env}_met_{date}.log - Metrics events
    - logs/{date}/holder_{env}_str_{date}.log - Stream events
    - logs/{date}/holder_{env}_dat_{date}.log - Data events

    Args:
        env: Environment name (dev/prod/demo).
        log_dir: Base directory for log files.
        level: Default logging level.
        console: Enable console output.
        verbose: Enable verbose (DEBUG) mode.
        json_format: Write JSON lines (otherwise plain text).

    Returns:
        Dict mapping category name to logger.
    """
    # Clean up existing handlers and listeners before reconfiguration
    shutdown_logging()
    for category in CATEGORIES:
        logger = logging.getLogger(f"{LOGGER_PREFIX}.{category}")
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

    set_verbose_mode(verbose)
    if not verbose:
        set_log_level_override(level)

    date_str = datetime.now().strftime("%Y-%m-%d")
    log_path = Path(log_dir) / date_str
    log_path.mkdir(parents=True, exist_ok=True)

    effective_level = getattr(logging, get_effective_log_level(), logging.INFO)

    for category in CATEGORIES:
        suffix = CATEGORY_SUFFIXES[category]
        filename = f"holder_{env}_{suffix}_{date_str}.log"

        logger = logging.getLogger(f"{LOGGER_PREFIX}.{category}")
        logger.setLevel(effective_level)
        logger.propagate = False
        for existing in logger.filters[:]:
            if isinstance(existing, SessionIdFilter):
                logger.removeFilter(existing)
        logger.addFilter(SessionIdFilter())

        if json_format:
            formatter: logging.Formatter = JSONFormatter()
        else:
            formatter = logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )

        file_handler = logging.FileHandler(
            filename=str(log_path / filename),
            mode="a",
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(effective_level)

        # Non-blocking writes: records go through a queue to the file handler
        log_queue: Queue = Queue(-1)
        logger.addHandler(logging.handlers.QueueHandler(log_queue))

        listener = logging.handlers.QueueListener(
            log_queue, file_handler, respect_handler_level=True
        )
        listener.start()
        _queue_listeners.append(listener)

        if console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(ConsoleFormatter(use_colors=sys.stderr.isatty()))
            console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
            logger.addHandler(console_handler)

        _category_loggers[category] = logger

    return _category_loggers


def shutdown_logging() -> None:
    """Shutdown all queue listeners (call during application shutdown)."""
    for listener in _queue_listeners:
        listener.stop()
    _queue_listeners.clear()
