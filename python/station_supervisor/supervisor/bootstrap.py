"""Bootstrapping a station folder and starting the station in one step."""

import os
import shutil
from typing import Any, Callable, Mapping, Optional, Union

from ..exceptions import MissingSourceStationError, StationError
from ..logging_config import get_logger
from .config import StationConfig
from .station import Station

logger = get_logger(__name__)


def ensure_station_folder(config: StationConfig) -> None:
    """Make sure the station folder exists, copying it in if necessary.

    The source folder is copied when the station folder is missing, or
    always when ``force_copy`` is set (overwriting existing files).

    Raises:
        StationError: If the stations directory is missing or the copy fails
        MissingSourceStationError: If a copy is needed but no source folder is configured
    """
    stations_dir = config.stations_dir
    destination = config.home_folder
    source = config.source_station_folder

    if not os.path.isdir(stations_dir):
        error_msg = f"The stations directory {stations_dir} does not exist"
        logger.error(error_msg)
        raise StationError(error_msg)

    if not config.force_copy and destination.exists():
        logger.debug(f"Station folder '{destination}' already exists")
        return

    if not source:
        error_msg = (
            f"The station '{config.station_name}' does not exist, "
            "and no source station folder is specified to copy."
        )
        logger.error(error_msg)
        raise MissingSourceStationError(error_msg)

    logger.info(f"Copying station from '{source}' to '{destination}'")
    try:
        shutil.copytree(source, destination, dirs_exist_ok=True)
    except (OSError, shutil.Error) as e:
        error_msg = f"Failed to copy station from '{source}' to '{destination}': {e}"
        logger.error(error_msg)
        raise StationError(error_msg) from e


def copy_and_run(
    config: Union[StationConfig, Mapping[str, Any], None] = None,
    on_ready: Optional[Callable[[], None]] = None,
    **overrides: Any,
) -> Station:
    """Copy the station into the stations directory if needed, then start it.

    Returns:
        The started Station

    Raises:
        ConfigurationError: If the configuration is invalid
        StationError: If bootstrapping or startup fails
    """
    station_config = StationConfig.build(config, **overrides)
    ensure_station_folder(station_config)

    station = Station(station_config)
    station.start(on_ready)
    return station
