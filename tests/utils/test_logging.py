"""
Unit tests for logging setup module.

This module contains tests for environment-specific logging configuration,
JSON formatting of tracker events, and the performance decorator used on
replay runs.
"""

import json
import logging
import logging.handlers
import sys
import tempfile
from pathlib import Path

import pytest

from src.utils.logging_setup import (
    setup_logging,
    get_logger,
    log_performance,
    JSONFormatter
)


def make_record(msg="Address change detected", level=logging.INFO, exc_info=None):
    record = logging.LogRecord(
        name="modules.address_tracker.processor",
        level=level,
        pathname="/path/to/change_detection_coordinator.py",
        lineno=146,
        msg=msg,
        args=(),
        exc_info=exc_info
    )
    record.funcName = "handle_address"
    record.module = "change_detection_coordinator"
    return record


class TestJSONFormatter:
    """Test suite for JSONFormatter class."""

    def test_json_formatter_basic(self):
        """Test basic JSON formatting."""
        formatter = JSONFormatter(datefmt='%Y-%m-%d %H:%M:%S')

        parsed = json.loads(formatter.format(make_record()))

        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "modules.address_tracker.processor"
        assert parsed["message"] == "Address change detected"
        assert parsed["module"] == "change_detection_coordinator"
        assert parsed["function"] == "handle_address"
        assert parsed["line"] == 146
        assert "timestamp" in parsed

    def test_json_formatter_keeps_non_ascii(self):
        """Portuguese announcements are written as-is, not escaped."""
        formatter = JSONFormatter()

        result = formatter.format(make_record("Você entrou no bairro Consolação"))

        assert "Consolação" in result
        assert json.loads(result)["message"] == "Você entrou no bairro Consolação"

    def test_json_formatter_with_exception(self):
        """Test JSON formatting with exception information."""
        formatter = JSONFormatter()

        try:
            raise RuntimeError("subscriber failed")
        except RuntimeError:
            record = make_record("Subscriber failed", logging.ERROR, sys.exc_info())

        parsed = json.loads(formatter.format(record))

        assert parsed["level"] == "ERROR"
        assert "RuntimeError" in parsed["exception"]

    def test_json_formatter_with_extra_fields(self):
        """Test JSON formatting with extra fields."""
        formatter = JSONFormatter()
        record = make_record()
        record.field = "neighborhood"
        record.fix_timestamp = 1700000000000

        parsed = json.loads(formatter.format(record))

        assert parsed["field"] == "neighborhood"
        assert parsed["fix_timestamp"] == 1700000000000
        assert "msg" not in parsed
        assert "args" not in parsed

    def test_json_formatter_stringifies_unserializable_extras(self):
        formatter = JSONFormatter()
        record = make_record()
        record.path = Path("config")

        assert json.loads(formatter.format(record))["path"] == "config"


class TestSetupLogging:
    """Test suite for setup_logging function."""

    def setup_method(self):
        """Reset logging configuration before each test."""
        logger = logging.getLogger()
        self._saved_handlers = list(logger.handlers)
        self._saved_level = logger.level
        logger.handlers.clear()
        logger.setLevel(logging.WARNING)

    def teardown_method(self):
        logger = logging.getLogger()
        for handler in logger.handlers:
            handler.close()
        logger.handlers = self._saved_handlers
        logger.setLevel(self._saved_level)

    def test_setup_logging_development(self):
        """Test logging setup for development environment."""
        setup_logging(environment="development", log_level="DEBUG")

        logger = logging.getLogger()
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

        handler = logger.handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        assert handler.stream is sys.stdout
        assert not isinstance(handler.formatter, JSONFormatter)

    def test_setup_logging_production(self):
        """Test logging setup for production environment."""
        setup_logging(environment="production", log_level="INFO")

        logger = logging.getLogger()
        assert logger.level == logging.INFO
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_setup_logging_lowercase_level(self):
        setup_logging(environment="development", log_level="warning")
        assert logging.getLogger().level == logging.WARNING

    def test_setup_logging_with_log_dir(self):
        """Test logging setup with a rotating log file."""
        with tempfile.TemporaryDirectory() as temp_dir:
            log_dir = Path(temp_dir) / "logs"
            setup_logging(environment="development", log_level="INFO", log_dir=str(log_dir))

            logger = logging.getLogger()
            file_handlers = [
                h for h in logger.handlers if isinstance(h, logging.handlers.RotatingFileHandler)
            ]
            assert len(logger.handlers) == 2
            assert len(file_handlers) == 1
            assert (log_dir / "tracker_development.log").exists()

            for handler in file_handlers:
                handler.close()

    def test_setup_logging_removes_existing_handlers(self):
        """Reconfiguring does not duplicate output."""
        logger = logging.getLogger()
        dummy_handler = logging.StreamHandler()
        logger.addHandler(dummy_handler)

        setup_logging(environment="development")

        assert len(logger.handlers) == 1
        assert logger.handlers[0] is not dummy_handler

    def test_setup_logging_quiets_noisy_loggers(self):
        """Test that setup_logging raises the level of chatty library loggers."""
        setup_logging(environment="development", log_level="DEBUG")

        assert logging.getLogger("asyncio").level == logging.WARNING
        assert logging.getLogger("urllib3").level == logging.WARNING

    def test_setup_logging_invalid_level(self):
        """Test that setup_logging rejects unknown log levels."""
        with pytest.raises(AttributeError):
            setup_logging(environment="development", log_level="CHATTY")

    def test_json_logging_output_format(self):
        """Test that production file output is one JSON object per line."""
        with tempfile.TemporaryDirectory() as temp_dir:
            setup_logging(environment="production", log_level="INFO", log_dir=temp_dir)

            logger = get_logger("modules.address_tracker.notifications")
            logger.info("[BairroChanged] Você entrou no bairro Glicério", extra={"field": "neighborhood"})

            for handler in logging.getLogger().handlers:
                handler.flush()

            log_file = Path(temp_dir) / "tracker_production.log"
            lines = log_file.read_text(encoding="utf-8").strip().splitlines()
            parsed = json.loads(lines[-1])

            assert parsed["message"] == "[BairroChanged] Você entrou no bairro Glicério"
            assert parsed["field"] == "neighborhood"

            for handler in logging.getLogger().handlers:
                handler.close()


class TestGetLogger:
    """Test suite for get_logger function."""

    def test_get_logger_returns_named_logger(self):
        logger = get_logger("modules.address_tracker")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "modules.address_tracker"

    def test_get_logger_same_name_returns_same_logger(self):
        assert get_logger("src.config") is get_logger("src.config")

    def test_config_loader_uses_module_logger(self):
        from src.config import ConfigLoader

        assert ConfigLoader().logger.name == "src.config.config_loader"


class TestLogPerformance:
    """Test suite for log_performance decorator."""

    def test_log_performance_success(self, caplog):
        @log_performance
        def replay():
            return "done"

        with caplog.at_level(logging.INFO):
            result = replay()

        assert result == "done"
        assert "Starting replay" in caplog.text
        assert "Completed replay in" in caplog.text

    def test_log_performance_with_exception(self, caplog):
        """Failures are logged and re-raised."""
        @log_performance
        def replay():
            raise ValueError("replay file is empty")

        with caplog.at_level(logging.INFO):
            with pytest.raises(ValueError):
                replay()

        assert "Starting replay" in caplog.text
        assert "Failed replay after" in caplog.text
        assert "replay file is empty" in caplog.text

    def test_log_performance_passes_arguments(self):
        @log_performance
        def submit(position, dry_run=False):
            return (position, dry_run)

        assert submit("fix", dry_run=True) == ("fix", True)

    def test_log_performance_preserves_metadata(self):
        @log_performance
        def process():
            """Replay the journey."""

        assert process.__name__ == "process"
        assert process.__doc__ == "Replay the journey."
