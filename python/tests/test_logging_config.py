"""Unit tests for logging_config module."""

import logging
import os
from unittest.mock import patch

import pytest

from station_supervisor.logging_config import get_logger, parse_level


@pytest.fixture
def fresh_logger():
    """Yield a get_logger() factory that cleans up the loggers it creates."""
    created = []

    def factory(name):
        test_logger = get_logger(name)
        created.append(test_logger)
        return test_logger

    yield factory

    for test_logger in created:
        test_logger.handlers.clear()


class TestGetLogger:
    """Test get_logger function."""

    def test_default_error_level(self, fresh_logger):
        """Test that logger defaults to ERROR level when no env var set."""
        with patch.dict(os.environ, {}, clear=True):
            test_logger = fresh_logger("test_default_logger")

        assert len(test_logger.handlers) > 0
        assert test_logger.level == logging.ERROR

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("DEBUG", logging.DEBUG),
            ("info", logging.INFO),
            ("Warning", logging.WARNING),
            ("CRITICAL", logging.CRITICAL),
            ("10", logging.DEBUG),
            ("0", logging.NOTSET),
            ("-10", -10),
            ("25", 25),
        ],
    )
    def test_station_supervisor_log_level(self, fresh_logger, value, expected):
        """Test that STATION_SUPERVISOR_LOG_LEVEL names and numbers are honored."""
        with patch.dict(os.environ, {"STATION_SUPERVISOR_LOG_LEVEL": value}):
            test_logger = fresh_logger(f"test_level_logger_{value}")

        assert test_logger.level == expected

    def test_log_level_fallback(self, fresh_logger):
        """Test that LOG_LEVEL is used when STATION_SUPERVISOR_LOG_LEVEL not set."""
        with patch.dict(os.environ, {"LOG_LEVEL": "DEBUG"}, clear=True):
            test_logger = fresh_logger("test_fallback_logger")

        assert test_logger.level == logging.DEBUG

    def test_package_variable_takes_priority_over_log_level(self, fresh_logger):
        """Test that STATION_SUPERVISOR_LOG_LEVEL takes priority over LOG_LEVEL."""
        with patch.dict(
            os.environ,
            {"STATION_SUPERVISOR_LOG_LEVEL": "INFO", "LOG_LEVEL": "DEBUG"},
        ):
            test_logger = fresh_logger("test_priority_logger")

        assert test_logger.level == logging.INFO

    @pytest.mark.parametrize("value", ["INVALID_LEVEL", "", "  ", "DEBUG!@#", "10.5"])
    def test_unknown_level_defaults_to_error(self, fresh_logger, value):
        """Test that a level logging does not know falls back to ERROR."""
        with patch.dict(os.environ, {"STATION_SUPERVISOR_LOG_LEVEL": value}):
            test_logger = fresh_logger(f"test_invalid_logger_{value.strip() or 'blank'}")

        assert len(test_logger.handlers) > 0
        assert test_logger.level == logging.ERROR

    def test_logger_not_reconfigured_if_already_configured(self, fresh_logger):
        """Test that logger is not reconfigured if it already has handlers."""
        with patch.dict(os.environ, {"STATION_SUPERVISOR_LOG_LEVEL": "INFO"}):
            test_logger = fresh_logger("test_reconfig_logger")
            initial_handler_count = len(test_logger.handlers)

        with patch.dict(os.environ, {"STATION_SUPERVISOR_LOG_LEVEL": "DEBUG"}):
            test_logger_again = get_logger("test_reconfig_logger")

        assert test_logger is test_logger_again
        assert len(test_logger_again.handlers) == initial_handler_count
        assert test_logger_again.level == logging.INFO

    def test_default_logger_name(self):
        """Test that the package logger is used when no name is given."""
        assert get_logger().name == "station_supervisor"

    def test_logger_has_handler_and_formatter(self, fresh_logger):
        """Test that logger has proper handler and formatter configured."""
        test_logger = fresh_logger("test_format_logger")

        assert len(test_logger.handlers) == 1
        handler = test_logger.handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        format_str = handler.formatter._fmt
        for field in ("%(levelname)s", "%(name)s", "%(filename)s", "%(lineno)d", "%(message)s"):
            assert field in format_str

    def test_logger_propagate_false(self, fresh_logger):
        """Test that logger propagate is set to False to avoid duplicate logs."""
        assert fresh_logger("test_propagate_logger").propagate is False

    def test_station_output_logger_is_verbose(self):
        """Test that forwarded station output is not filtered a second time."""
        from station_supervisor.supervisor.severity import station_output_logger

        assert station_output_logger.name == "station_supervisor.station"
        assert station_output_logger.level == logging.DEBUG


class TestParseLevel:
    """Test parse_level function."""

    @pytest.mark.parametrize(
        "value,expected",
        [("debug", "DEBUG"), ("CrItIcAl", "CRITICAL"), ("invalid", "INVALID"), ("10.5", "10.5")],
    )
    def test_names_are_uppercased(self, value, expected):
        """Test that non-numeric strings come back upper-cased."""
        result = parse_level(value)

        assert result == expected
        assert isinstance(result, str)

    @pytest.mark.parametrize("value,expected", [("10", 10), ("-10", -10), ("0", 0), (" 20 ", 20)])
    def test_integers_are_converted(self, value, expected):
        """Test that integer strings are converted to int."""
        result = parse_level(value)

        assert result == expected
        assert isinstance(result, int)

    def test_whitespace_is_left_alone(self):
        """Test that blank strings pass through for setLevel to reject."""
        assert parse_level("   ") == "   "
