"""
Tests for logger functionality.
"""

import pytest

import jobrank.logger as logger_module
from jobrank.logger import StructuredLogger, get_logger, reset_logger


@pytest.fixture(autouse=True)
def restore_global_logger():
    """Put back the process-wide logger other modules already hold."""
    saved = logger_module._global_logger
    yield
    logger_module._global_logger = saved


class TestStructuredLogger:
    """Test structured logging functionality."""

    def test_logger_creation(self, tmp_path):
        """Logger should be created with default settings."""
        logger = StructuredLogger(
            name="test",
            level="INFO",
            log_dir=tmp_path,
            enable_console=False,
        )

        assert logger.logger.name == "test"
        assert logger.metrics["api_calls"] == 0

    def test_log_methods(self, tmp_path):
        """All log level methods should work."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        # Should not raise exceptions
        logger.debug("Debug message")
        logger.info("Info message")
        logger.warning("Warning message")
        logger.error("Error message")
        logger.critical("Critical message")

    def test_log_with_context(self, tmp_path):
        """Context is appended as JSON, non-ASCII kept readable."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.info("Searching group", title="Бухгалтер", members=3)

        content = next(tmp_path.glob("*.log")).read_text(encoding="utf-8")
        assert 'Searching group | Context: {"title": "Бухгалтер", "members": 3}' in content

    def test_metrics_tracking(self, tmp_path):
        """Metrics should be tracked correctly."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.record_api_call()
        logger.record_api_call()
        logger.record_postings_fetched(237)
        logger.record_group_search(success=True)
        logger.record_group_search(success=False)
        logger.record_error("BoardError")

        metrics = logger.get_metrics()

        assert metrics["api_calls"] == 2
        assert metrics["postings_fetched"] == 237
        assert metrics["groups_searched"] == 2
        assert metrics["groups_failed"] == 1
        assert metrics["errors_by_type"]["BoardError"] == 1
        assert metrics["group_success_rate"] == 0.5

    def test_reset_metrics(self, tmp_path):
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)
        logger.record_api_call()
        logger.record_error("RetryError")

        logger.reset_metrics()

        assert logger.metrics["api_calls"] == 0
        assert logger.metrics["errors_by_type"] == {}

    def test_metrics_summary_logged(self, tmp_path):
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)
        logger.record_group_search(success=True)
        logger.record_group_search(success=True)
        logger.record_group_search(success=False)

        logger.log_metrics_summary()

        content = next(tmp_path.glob("*.log")).read_text(encoding="utf-8")
        assert "Search groups: 2/3 (66.7% success)" in content

    def test_log_file_creation(self, tmp_path):
        """Log file should be created in specified directory."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.info("Test message")

        log_files = list(tmp_path.glob("*.log"))
        assert len(log_files) == 1
        assert "Test message" in log_files[0].read_text()

    def test_file_keeps_debug_when_console_raised(self, tmp_path):
        logger = StructuredLogger(name="test", level="WARNING", log_dir=tmp_path, enable_console=False)

        logger.debug("fine-grained detail")

        assert "fine-grained detail" in next(tmp_path.glob("*.log")).read_text()


class TestGlobalLogger:
    """Test global logger singleton."""

    def test_get_logger_singleton(self, tmp_path):
        """get_logger should return same instance."""
        reset_logger()

        logger1 = get_logger(name="jobrank-test", log_dir=tmp_path, enable_console=False)
        logger2 = get_logger()

        assert logger1 is logger2

    def test_reset_logger(self, tmp_path):
        """reset_logger should create new instance."""
        reset_logger()

        logger1 = get_logger(name="jobrank-test", log_dir=tmp_path, enable_console=False)
        logger1.record_api_call()

        reset_logger()

        logger2 = get_logger(name="jobrank-test", log_dir=tmp_path, enable_console=False)

        assert logger2 is not logger1
        assert logger2.metrics["api_calls"] == 0
