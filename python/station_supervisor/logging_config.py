"""Logging configuration for the station supervisor."""

import logging
import os
import sys
from typing import Union

DEFAULT_LEVEL = logging.ERROR


def parse_level(level: str) -> Union[int, str]:
    """Convert a level name or numeric string into something `setLevel` accepts.

    Integer strings (negative ones included) become ints; anything else is
    upper-cased and left for `setLevel` to look up.
    """
    try:
        return int(level)
    except ValueError:
        return level.upper()


def get_logger(name: str = "station_supervisor") -> logging.Logger:
    """Get a configured logger for the package.

    The logger uses STATION_SUPERVISOR_LOG_LEVEL (or LOG_LEVEL) to determine the log level.
    If not set, or not a level `logging` knows, defaults to ERROR level, which
    effectively disables most package logging.

    Returns:
        Configured logger instance for the package.
    """
    logger = logging.getLogger(name)

    # Only configure if not already configured
    if not logger.handlers:
        level = os.getenv(
            "STATION_SUPERVISOR_LOG_LEVEL", os.getenv("LOG_LEVEL", "ERROR")
        )

        # Set up handler with consistent format
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            "[%(levelname)s] %(name)s - %(filename)s:%(lineno)d: %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

        try:
            logger.setLevel(parse_level(level))
        except ValueError:
            logger.setLevel(DEFAULT_LEVEL)

        # Prevent propagation to avoid duplicate logs
        logger.propagate = False

    return logger


# Package logger instance
logger = get_logger()
