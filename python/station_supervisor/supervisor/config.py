"""
Configuration for a supervised station.

A StationConfig is built once, when a Station is constructed, by overlaying
the caller's values onto the defaults. NIAGARA_HOME and NIAGARA_USER_HOME
supply the default executable and stations directories.
"""

import os
import re
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from ..exceptions import ConfigurationError
from ..logging_config import get_logger
from .severity import Severity, log_station_output

logger = get_logger(__name__)

BOG_FILE_NAME = "config.bog"

LogSink = Callable[[str, Optional[Severity], Optional[str]], None]


class StationConfig(BaseModel):
    """Immutable configuration of one supervised station.

    Attributes:
        cwd: Directory containing the station executable
        stations_dir: Directory containing the station folders
        command: Name of the station executable inside ``cwd``
        station_name: Name of the station folder to run
        started_string: Output substring signalling the station is ready
        log_level: Most verbose station log severity to forward
        log_sink: Callable receiving forwarded lines as (line, severity, module)
        bog_overrides: Port overrides written into config.bog before startup
        jvm_args: Extra JVM arguments for the station process
        system_properties: Java system properties for the station process
        source_station_folder: Station folder to copy in when bootstrapping
        force_copy: Always copy the source folder, replacing the station
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    cwd: str = Field(description="Directory containing the station executable")
    stations_dir: str = Field(description="Directory containing station folders")
    command: str = "station"
    station_name: str = "node"
    started_string: str = "niagara>"
    log_level: Severity = Severity.WARNING
    log_sink: Optional[LogSink] = None
    bog_overrides: Optional[Dict[str, str]] = None
    jvm_args: Optional[List[str]] = None
    system_properties: Optional[Dict[str, str]] = None
    source_station_folder: Optional[str] = None
    force_copy: bool = False

    @model_validator(mode="before")
    @classmethod
    def load_defaults_from_env(cls, data: Any) -> Dict[str, Any]:
        """Overlay caller-supplied values onto the environment-derived defaults.

        Provided values take precedence; values given as None fall back to the default.
        """
        env_defaults = {
            "cwd": os.path.join(os.getenv("NIAGARA_HOME", ""), "bin"),
            "stations_dir": os.path.join(os.getenv("NIAGARA_USER_HOME", ""), "stations"),
        }
        if isinstance(data, Mapping):
            provided = {key: value for key, value in data.items() if value is not None}
            return {**env_defaults, **provided}
        return env_defaults

    @field_validator("log_level", mode="before")
    @classmethod
    def parse_log_level(cls, value: Any) -> Severity:
        return Severity.parse(value)

    @field_validator("bog_overrides", "system_properties", mode="before")
    @classmethod
    def stringify_mapping(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return {str(key): str(item) for key, item in value.items()}
        return value

    @property
    def home_folder(self) -> Path:
        """Folder the station executes from."""
        return Path(self.stations_dir) / self.station_name

    @property
    def bog_file_path(self) -> Path:
        return self.home_folder / BOG_FILE_NAME

    @property
    def executable(self) -> str:
        # The child resolves a relative argv[0] against cwd, after chdir
        return os.path.join(os.path.abspath(self.cwd), self.command)

    def resolve_log_sink(self) -> LogSink:
        """Return the configured log sink, or the default logging sink."""
        if self.log_sink is not None:
            return self.log_sink
        return partial(log_station_output, self.station_name)

    @classmethod
    def build(
        cls,
        config: Union["StationConfig", Mapping[str, Any], None] = None,
        **overrides: Any,
    ) -> "StationConfig":
        """Build a config from an existing config, a mapping, and/or keyword overrides.

        Raises:
            ConfigurationError: If any value fails validation
        """
        if isinstance(config, StationConfig):
            values = config.model_dump()
        else:
            values = dict(config or {})
        values.update(overrides)

        try:
            return cls(**values)
        except ValidationError as e:
            error_msg = f"Invalid station configuration: {e}"
            logger.error(error_msg)
            raise ConfigurationError(error_msg) from e


def to_system_properties(props: Optional[Mapping[str, str]]) -> str:
    """Render system properties as the station's ``-@Dkey=value`` argument."""
    return " ".join(f"-@D{key}={value}" for key, value in (props or {}).items())


def to_jvm_args(args: Optional[List[str]]) -> str:
    """Escape JVM arguments so the station launcher passes them through."""
    return " ".join(re.sub(r"^-", "-@", arg) for arg in (args or []))


def build_launch_command(config: StationConfig) -> List[str]:
    """Return the argv used to launch the station described by ``config``."""
    return [
        config.executable,
        config.station_name,
        to_system_properties(config.system_properties),
        to_jvm_args(config.jvm_args),
    ]
