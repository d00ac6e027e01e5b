"""Exceptions raised by the station supervisor and the bog document model."""

from typing import Optional


class StationError(Exception):
    """Base class for all station supervisor errors."""

    pass


class ConfigurationError(StationError):
    """Exception raised for configuration validation errors."""

    pass


class ProcessSpawnError(StationError):
    """The station executable could not be launched."""

    pass


class StationNotRunningError(StationError):
    """A command was issued to a station with no live process."""

    pass


class DocumentLoadError(StationError):
    """A bog file could not be loaded."""

    pass


class DocumentNotFoundError(DocumentLoadError):
    """The bog file does not exist or cannot be read."""

    pass


class InvalidArchiveError(DocumentLoadError):
    """The bog file is not a valid zip archive, or fails its CRC check."""

    pass


class MissingEntryError(DocumentLoadError):
    """The archive does not contain the ``file.xml`` entry."""

    pass


class MalformedDocumentError(DocumentLoadError):
    """The ``file.xml`` entry is not parsable XML."""

    pass


class DocumentSaveError(StationError):
    """A bog file could not be serialized or written."""

    pass


class OverrideError(StationError):
    """A bog override could not be applied to the document."""

    pass


class StartupAbortedError(StationError):
    """Applying bog overrides failed, so the station was never spawned."""

    pass


class ImpoliteTerminationError(StationError):
    """The station ignored ``kill`` and had to be force-terminated.

    The process did stop; ``returncode`` holds its exit status.
    """

    def __init__(self, message: str, returncode: Optional[int] = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class MissingSourceStationError(StationError):
    """The station folder does not exist and there is no source folder to copy."""

    pass
