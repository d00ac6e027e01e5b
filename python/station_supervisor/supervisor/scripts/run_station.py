#!/usr/bin/env python3
"""
Run Station CLI Script

Copies a station into the stations directory if needed, applies port
overrides, starts it, and supervises it until it exits.

Usage:
    run-station --station-name node --source-station-folder ./stations/node --http-port 8080

SIGTERM and SIGINT shut the station down with ``kill``, hard-killing it if it
does not exit within --kill-timeout seconds.
"""

import argparse
import logging
import signal
import sys
from typing import Any, Dict, List, Optional

from station_supervisor.exceptions import (
    ConfigurationError,
    ImpoliteTerminationError,
    StationError,
)
from station_supervisor.logging_config import get_logger
from station_supervisor.supervisor.bootstrap import copy_and_run
from station_supervisor.supervisor.severity import Severity
from station_supervisor.supervisor.station import DEFAULT_KILL_TIMEOUT, Station

# CLI flag -> bog override key
PORT_OPTIONS = {
    "http_port": "httpPort",
    "https_port": "httpsPort",
    "fox_port": "foxPort",
    "foxs_port": "foxsPort",
}


class SignalHandler:
    """Turns SIGTERM/SIGINT into a station kill."""

    def __init__(self, station: Station, logger: logging.Logger, kill_timeout: float):
        self.station = station
        self.logger = logger
        self.kill_timeout = kill_timeout
        self._original_handlers: Dict[int, Any] = {}

    def setup(self) -> None:
        for signum in (signal.SIGTERM, signal.SIGINT):
            self._original_handlers[signum] = signal.signal(signum, self._handle)

    def restore(self) -> None:
        for signum, handler in self._original_handlers.items():
            signal.signal(signum, handler)
        self._original_handlers.clear()

    def _handle(self, signum: int, frame: Any) -> None:
        self.logger.info(f"Received signal {signum}, killing station...")
        try:
            self.station.kill(self.kill_timeout)
        except ImpoliteTerminationError as e:
            self.logger.error(str(e))


def parse_system_properties(values: Optional[List[str]]) -> Dict[str, str]:
    """Parse repeated ``key=value`` options.

    Raises:
        ConfigurationError: If a value has no ``=``
    """
    properties: Dict[str, str] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise ConfigurationError(f"System property must be key=value, got '{item}'")
        properties[key] = value
    return properties


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run and supervise a station")

    parser.add_argument("-n", "--station-name", help="Station to run")
    parser.add_argument("--stations-dir", help="Directory containing stations")
    parser.add_argument("--cwd", help="Directory containing the station executable")
    parser.add_argument("--command", help="Station executable name")
    parser.add_argument("--started-string", help="Output marking the station as ready")
    parser.add_argument(
        "-s", "--source-station-folder", help="Station folder to copy if missing"
    )
    parser.add_argument(
        "--force-copy",
        action="store_true",
        help="Always copy the source station folder",
    )
    parser.add_argument(
        "--log-level",
        choices=[s.name for s in Severity],
        type=str.upper,
        help="Most verbose station log level to print",
    )
    parser.add_argument(
        "-D",
        dest="system_properties",
        action="append",
        metavar="KEY=VALUE",
        help="Java system property (repeatable)",
    )
    parser.add_argument(
        "--jvm-arg",
        dest="jvm_args",
        action="append",
        metavar="ARG",
        help="Extra JVM argument (repeatable)",
    )
    for option, key in PORT_OPTIONS.items():
        parser.add_argument(
            f"--{option.replace('_', '-')}", dest=option, type=int, help=f"Override {key}"
        )
    parser.add_argument(
        "--kill-timeout",
        type=float,
        default=DEFAULT_KILL_TIMEOUT,
        help="Seconds to wait for the station to die before hard-killing it",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable supervisor debug logging"
    )
    return parser


def config_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    """Translate parsed arguments into StationConfig values."""
    bog_overrides = {
        key: getattr(args, option)
        for option, key in PORT_OPTIONS.items()
        if getattr(args, option) is not None
    }
    return {
        "station_name": args.station_name,
        "stations_dir": args.stations_dir,
        "cwd": args.cwd,
        "command": args.command,
        "started_string": args.started_string,
        "source_station_folder": args.source_station_folder,
        "force_copy": args.force_copy,
        "log_level": args.log_level,
        "system_properties": parse_system_properties(args.system_properties) or None,
        "jvm_args": args.jvm_args,
        "bog_overrides": bog_overrides or None,
    }


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for run-station.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    args = build_parser().parse_args(argv)

    logger = get_logger(__name__)
    logger.setLevel(logging.DEBUG if args.verbose else logging.INFO)

    try:
        station = copy_and_run(config_from_args(args))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {str(e)}")
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 1
    except StationError as e:
        logger.error(f"Station startup failed: {str(e)}")
        print(f"ERROR: Station startup failed: {e}", file=sys.stderr)
        return 1

    signal_handler = SignalHandler(station, logger, args.kill_timeout)
    signal_handler.setup()
    try:
        if station.wait_until_ready():
            logger.info(f"Station '{station.config.station_name}' started")
        returncode = station.wait()
    finally:
        signal_handler.restore()

    logger.info(f"Station exited with code {returncode}")
    return 0 if returncode == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
