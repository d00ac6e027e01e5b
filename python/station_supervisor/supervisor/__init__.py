"""
Station process supervision.

This module starts a station process, filters its log output, detects when it
is ready, sends it console commands, and shuts it down with graceful-then-forced
escalation.
"""

from .bootstrap import copy_and_run, ensure_station_folder
from .config import StationConfig, build_launch_command
from .overrides import DEFAULT_BOG_OVERRIDES, apply_bog_overrides
from .severity import Severity, classify_line, should_forward
from .station import Station, StationState

__all__ = [
    "DEFAULT_BOG_OVERRIDES",
    "Severity",
    "Station",
    "StationConfig",
    "StationState",
    "apply_bog_overrides",
    "build_launch_command",
    "classify_line",
    "copy_and_run",
    "ensure_station_folder",
    "should_forward",
]
