"""
Tests for logger functionality.
"""

import pytest
from linkage.logger import StructuredLogger, get_logger, reset_logger


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
        assert logger.metrics["lines_read"] == 0

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
        """Context is serialized into the message."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.info("Message with context", line_number=12, path=tmp_path)

        log_content = next(tmp_path.glob("*.log")).read_text()
        assert '"line_number": 12' in log_content
        assert str(tmp_path) in log_content

    def test_metrics_tracking(self, tmp_path):
        """Metrics should be tracked correctly."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        logger.record_lines(10)
        logger.record_headers()
        logger.record_parsed(7)
        logger.record_failure("FormatError")
        logger.record_failure("FormatError")
        logger.record_shard()

        metrics = logger.get_metrics()

        assert metrics["lines_read"] == 10
        assert metrics["headers_skipped"] == 1
        assert metrics["records_parsed"] == 7
        assert metrics["records_failed"] == 2
        assert metrics["errors_by_type"]["FormatError"] == 2
        assert metrics["shards_processed"] == 1

    def test_success_rate_calculation(self, tmp_path):
        """Success rate should be calculated correctly."""
        logger = StructuredLogger(
            name="test",
            log_dir=tmp_path,
            enable_console=False,
        )

        assert logger.get_metrics()["success_rate"] == 0.0

        # 2 parsed, 1 failed = 66.7% success rate
        logger.record_parsed(2)
        logger.record_failure("MalformedRecordError")

        assert logger.get_metrics()["success_rate"] == pytest.approx(0.667, rel=0.01)

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

        log_content = log_files[0].read_text()
        assert "Test message" in log_content

    def test_no_file_without_log_dir(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        logger = StructuredLogger(name="test", enable_console=False)
        logger.info("Nowhere")
        assert logger.logger.handlers == []
        assert list(tmp_path.iterdir()) == []

    def test_metrics_summary(self, tmp_path):
        logger = StructuredLogger(name="test", log_dir=tmp_path, enable_console=False)
        logger.record_lines(3)
        logger.record_parsed(1)
        logger.record_failure("FormatError")
        logger.log_metrics_summary()

        log_content = next(tmp_path.glob("*.log")).read_text()
        assert "Records: 1/2 (50.0% parsed)" in log_content
        assert "FormatError: 1" in log_content


class TestGlobalLogger:
    """Test global logger singleton."""

    def test_get_logger_singleton(self, tmp_path):
        """get_logger should return same instance."""
        reset_logger()  # Start fresh

        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger2 = get_logger()

        assert logger1 is logger2

    def test_reset_logger(self, tmp_path):
        """reset_logger should create new instance."""
        reset_logger()

        logger1 = get_logger(log_dir=tmp_path, enable_console=False)
        logger1.record_lines()

        reset_logger()

        logger2 = get_logger(log_dir=tmp_path, enable_console=False)

        # Should be different instance with fresh metrics
        assert logger2.metrics["lines_read"] == 0
