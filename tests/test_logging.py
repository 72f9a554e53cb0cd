"""Tests for logging configuration."""

import logging

import pytest
from pydantic import ValidationError

from mcpchat.utils.logging import QUIET_LOGGERS, LogConfig, get_logger, setup_logging


class TestLogConfig:
    """Tests for the logging configuration model."""

    def test_level_normalized(self):
        """Test that level names are case-insensitive."""
        assert LogConfig(level="debug").level == "DEBUG"

    def test_level_from_environment(self, monkeypatch):
        """Test that LOG_LEVEL is the default level."""
        monkeypatch.setenv("LOG_LEVEL", "warning")
        assert LogConfig().level == "WARNING"

    def test_unknown_level_rejected(self):
        """Test that misspelled levels fail validation."""
        with pytest.raises(ValidationError):
            LogConfig(level="verbose")


class TestSetupLogging:
    """Tests for applying the configuration."""

    def test_quiet_loggers_held_at_warning(self):
        """Test that chatty libraries stay at WARNING while modules follow the root level."""
        root = logging.getLogger()
        previous_level, previous_handlers = root.level, root.handlers[:]
        try:
            setup_logging(LogConfig(level="DEBUG"))

            assert root.level == logging.DEBUG
            for name in QUIET_LOGGERS:
                assert logging.getLogger(name).level == logging.WARNING
            assert get_logger("mcpchat.services.tool_calls").getEffectiveLevel() == logging.DEBUG
        finally:
            root.handlers[:] = previous_handlers
            root.setLevel(previous_level)
