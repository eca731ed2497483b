"""Unit tests for category logging and session trace IDs."""

import json
import logging

import pytest

from src.utils.logging_setup import (
    JSONFormatter,
    SessionIdFilter,
    get_category_for_module,
    get_logger,
    setup_category_logging,
    shutdown_logging,
)
from src.utils.trace_context import generate_session_id, get_session_id, new_session


class TestCategoryRouting:
    """Module path to category mapping."""

    @pytest.mark.parametrize(
        "module,category",
        [
            ("src.domain.services.distribution_metrics", "metrics"),
            ("src.domain.services.returns", "metrics"),
            ("src.domain.services.holder_stats", "data"),
            ("src.application.delta_stream", "stream"),
            ("src.infrastructure.transport.sse", "stream"),
            ("src.infrastructure.sources.retrying", "data"),
            ("src.presentation.tables", "system"),
            ("__main__", "system"),
        ],
    )
    def test_routing(self, module, category):
        assert get_category_for_module(module) == category

    def test_logger_name(self):
        assert get_logger("src.application.delta_stream").name == "holder.stream"


class TestTraceContext:
    """Session ID propagation."""

    def test_default(self):
        assert get_session_id() == "------"

    def test_new_session_binds_and_resets(self):
        with new_session("abc123") as session_id:
            assert session_id == "abc123"
            assert get_session_id() == "abc123"
        assert get_session_id() == "------"

    def test_generated_ids(self):
        session_id = generate_session_id()
        assert len(session_id) == 6
        int(session_id, 16)


class TestJsonFormatter:
    """JSON lines carry category and session."""

    def test_session_stamped_by_filter(self):
        record = logging.LogRecord("holder.stream", logging.INFO, __file__, 1, "poll ok", None, None)
        with new_session("feed01"):
            SessionIdFilter().filter(record)

        entry = json.loads(JSONFormatter().format(record))
        assert entry["session"] == "feed01"
        assert entry["cat"] == "stream"
        assert entry["msg"] == "poll ok"
        assert entry["level"] == "INFO"


class TestSetupCategoryLogging:
    """File handlers per category."""

    def test_writes_json_lines(self, tmp_path):
        loggers = setup_category_logging(env="test", log_dir=str(tmp_path), level="INFO")
        try:
            assert set(loggers) == {"system", "metrics", "stream", "data"}
            with new_session("beef00"):
                get_logger("src.application.delta_stream").info("session started")
        finally:
            shutdown_logging()

        (log_file,) = list(tmp_path.glob("*/holder_test_str_*.log"))
        entry = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert entry["msg"] == "session started"
        assert entry["session"] == "beef00"


class TestUtilsExports:
    """Package-level utility exports."""

    def test_exports_resolve(self):
        import src.utils as utils

        assert set(utils.__all__) == {
            "setup_category_logging",
            "shutdown_logging",
            "get_logger",
            "set_verbose_mode",
            "get_session_id",
            "new_session",
            "generate_session_id",
            "now_utc",
            "to_epoch_ms",
        }
        assert all(callable(getattr(utils, name)) for name in utils.__all__)
