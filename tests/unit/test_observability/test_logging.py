"""Tests for logging setup."""

import json
import logging

from feature_gate.observability.logging import (
    LogFormat,
    LogLevel,
    get_logger,
    setup_logging,
    setup_testing_logging,
)


class TestSetupLogging:
    """Test structured logging configuration."""

    def teardown_method(self):
        setup_testing_logging()

    def test_json_to_file(self, tmp_path):
        """Test JSON records are written to a log file."""
        log_file = tmp_path / "feature_gate.log"
        setup_logging(
            level=LogLevel.INFO, format_type=LogFormat.JSON, log_file=str(log_file)
        )

        get_logger("feature_gate.test").info("Killswitch state changed", source="fake")
        for handler in logging.getLogger().handlers:
            handler.flush()

        record = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert record["event"] == "Killswitch state changed"
        assert record["source"] == "fake"
        assert record["level"] == "info"
        assert "timestamp" in record

    def test_level_filtering(self):
        """Test the root level follows the configured level."""
        setup_logging(level=LogLevel.ERROR, format_type=LogFormat.CONSOLE)
        assert logging.getLogger().level == logging.ERROR

    def test_get_logger(self):
        """Test loggers are structlog loggers."""
        setup_testing_logging()
        logger = get_logger("feature_gate.test")
        assert hasattr(logger.bind(feature="foo"), "info")
