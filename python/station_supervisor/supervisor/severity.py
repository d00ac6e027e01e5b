"""
Station log line classification.

Station output lines look like ``INFO [12:00:01 19-Oct-26 EDT][sys.startup] ...``.
The leading token is a java.util.logging level; the second bracket holds the
logging module. Anything else carries no severity.
"""

import logging
import re
from enum import IntEnum
from typing import NamedTuple, Optional, Union

from ..exceptions import ConfigurationError
from ..logging_config import get_logger


class Severity(IntEnum):
    """java.util.logging levels, from least to most verbose.

    ALL is a sentinel threshold that forwards every line, including lines
    without a recognizable severity.
    """

    NONE = 0
    SEVERE = 1
    WARNING = 2
    INFO = 3
    CONFIG = 4
    FINE = 5
    FINER = 6
    FINEST = 7
    ALL = 8

    @classmethod
    def parse(cls, value: Union[str, int, "Severity"]) -> "Severity":
        """Parse a severity from its name (case-insensitive) or rank."""
        if isinstance(value, Severity):
            return value
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError as e:
                raise ConfigurationError(f"Unknown log level rank {value}") from e
        try:
            return cls[str(value).strip().upper()]
        except KeyError as e:
            allowed = [s.name for s in cls]
            raise ConfigurationError(
                f"Log level must be one of {allowed}, got '{value}'"
            ) from e


LOG_LINE_REGEX = re.compile(
    r"^(" + "|".join(s.name for s in Severity) + r") \[[^\]]+\]\[([^\]]+)\]"
)
NEWLINE_REGEX = re.compile(r"\r?\n")


class LineInfo(NamedTuple):
    """Severity and module extracted from a station log line."""

    severity: Optional[Severity]
    module: Optional[str]


def classify_line(line: str) -> LineInfo:
    """Extract the severity and module from ``line``, if it has them."""
    match = LOG_LINE_REGEX.match(line)
    if not match:
        return LineInfo(None, None)
    return LineInfo(Severity[match.group(1)], match.group(2))


def should_forward(severity: Optional[Severity], threshold: Severity) -> bool:
    """Decide whether a line of ``severity`` passes ``threshold``."""
    if threshold is Severity.ALL:
        return True
    return severity is not None and severity <= threshold


_LOGGING_LEVELS = {
    Severity.SEVERE: logging.ERROR,
    Severity.WARNING: logging.WARNING,
    Severity.INFO: logging.INFO,
}

station_output_logger = get_logger("station_supervisor.station")
# Station output is already filtered against the station threshold
station_output_logger.setLevel(logging.DEBUG)


def log_station_output(
    station_name: str, line: str, severity: Optional[Severity], module: Optional[str]
) -> None:
    """Default log sink: route a station output line through `logging`."""
    level = _LOGGING_LEVELS.get(severity, logging.DEBUG)
    station_output_logger.log(level, f"station {station_name}: {line}")
