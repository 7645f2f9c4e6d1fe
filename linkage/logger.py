"""
Structured logging system for linkage.

Provides centralized logging with console and file outputs, log levels,
and metrics tracking for monitoring parse quality across a run.
"""

import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime
import json


class StructuredLogger:
    """
    Centralized logger with support for console and file outputs.
    Tracks metrics for monitoring parser health.
    """

    def __init__(
        self,
        name: str = "linkage",
        level: str = "INFO",
        log_dir: Optional[Path] = None,
        enable_file: bool = True,
        enable_console: bool = True,
    ):
        """
        Initialize the structured logger.

        Args:
            name: Logger name
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_dir: Directory for log files (no file output when unset)
            enable_file: Write logs to file when log_dir is set
            enable_console: Output logs to console (stderr)
        """
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, level.upper()))
        self.logger.handlers.clear()  # Remove existing handlers

        self.metrics = {
            "lines_read": 0,
            "headers_skipped": 0,
            "records_parsed": 0,
            "records_failed": 0,
            "shards_processed": 0,
            "errors_by_type": {},
        }

        # Console handler
        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(getattr(logging, level.upper()))
            console_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        # File handler
        if enable_file and log_dir is not None:
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)

            log_file = log_dir / f"linkage_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)  # Always log everything to file
            file_formatter = logging.Formatter(
                fmt='%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def debug(self, message: str, **kwargs):
        """Log debug message with optional context."""
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs):
        """Log info message with optional context."""
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs):
        """Log warning message with optional context."""
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs):
        """Log error message with optional context."""
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs):
        """Log critical message with optional context."""
        self._log(logging.CRITICAL, message, kwargs)

    def _log(self, level: int, message: str, context: dict):
        """Internal logging method with context."""
        if context:
            message = f"{message} | Context: {json.dumps(context, default=str)}"
        self.logger.log(level, message)

    # Metric tracking methods

    def record_lines(self, count: int = 1):
        """Add to the number of raw lines read."""
        self.metrics["lines_read"] += count

    def record_headers(self, count: int = 1):
        self.metrics["headers_skipped"] += count

    def record_parsed(self, count: int = 1):
        self.metrics["records_parsed"] += count

    def record_failure(self, error_type: str):
        """Record a line that could not be parsed."""
        self.metrics["records_failed"] += 1

        if error_type not in self.metrics["errors_by_type"]:
            self.metrics["errors_by_type"][error_type] = 0
        self.metrics["errors_by_type"][error_type] += 1

    def record_shard(self):
        self.metrics["shards_processed"] += 1

    def get_metrics(self) -> dict:
        """Return current metrics with the derived parse success rate."""
        metrics = dict(self.metrics)
        metrics["errors_by_type"] = dict(self.metrics["errors_by_type"])
        attempted = metrics["records_parsed"] + metrics["records_failed"]
        metrics["success_rate"] = (
            round(metrics["records_parsed"] / attempted, 3) if attempted > 0 else 0.0
        )
        return metrics

    def log_metrics_summary(self):
        """Log a summary of current metrics."""
        metrics = self.get_metrics()

        parsed = metrics["records_parsed"]
        attempted = parsed + metrics["records_failed"]
        overall_rate = round(metrics["success_rate"] * 100, 1)

        self.info("=== Parse Session Metrics ===")
        self.info(f"Lines read: {metrics['lines_read']} (headers skipped: {metrics['headers_skipped']})")
        self.info(f"Shards: {metrics['shards_processed']}")
        self.info(f"Records: {parsed}/{attempted} ({overall_rate}% parsed)")

        if metrics["errors_by_type"]:
            self.info("Error Types:")
            for error_type, count in metrics["errors_by_type"].items():
                self.info(f"  {error_type}: {count}")


# Global logger instance
_global_logger: Optional[StructuredLogger] = None


def get_logger(
    name: str = "linkage",
    level: str = "INFO",
    **kwargs
) -> StructuredLogger:
    """
    Get or create the global logger instance.

    Args:
        name: Logger name
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        StructuredLogger instance
    """
    global _global_logger

    if _global_logger is None:
        _global_logger = StructuredLogger(name=name, level=level, **kwargs)

    return _global_logger


def reset_logger():
    """Reset the global logger (useful for testing)."""
    global _global_logger
    _global_logger = None
