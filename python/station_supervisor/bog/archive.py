"""
Reading and writing bog files.

A bog file is a zip archive with a single deflate-compressed entry,
``file.xml``, holding the XML serialization of the station.
"""

import io
import os
import tempfile
import zipfile
import zlib
from pathlib import Path
from typing import Union

from ..exceptions import (
    DocumentLoadError,
    DocumentNotFoundError,
    DocumentSaveError,
    InvalidArchiveError,
    MissingEntryError,
)
from ..logging_config import get_logger
from .document import ConfigDocument

logger = get_logger(__name__)

BOG_ENTRY_NAME = "file.xml"

PathLike = Union[str, os.PathLike]


def to_bytes(document: ConfigDocument) -> bytes:
    """Build the complete bog archive for ``document`` in memory."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(BOG_ENTRY_NAME, document.to_xml())
    return buffer.getvalue()


def from_bytes(data: bytes, source: str = "<bytes>") -> ConfigDocument:
    """Parse a bog archive held in memory.

    Raises:
        InvalidArchiveError: If ``data`` is not a zip archive or an entry fails its CRC check
        MissingEntryError: If the archive has no ``file.xml`` entry
        MalformedDocumentError: If ``file.xml`` is not parsable XML
    """
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            try:
                xml = archive.read(BOG_ENTRY_NAME)
            except KeyError as e:
                raise MissingEntryError(
                    f"{source} did not contain {BOG_ENTRY_NAME}"
                ) from e
    except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, EOFError) as e:
        raise InvalidArchiveError(f"{source} is not a valid bog archive: {e}") from e

    return ConfigDocument.from_xml(xml)


def load(path: PathLike) -> ConfigDocument:
    """Load the bog file at ``path``.

    Raises:
        DocumentNotFoundError: If the file cannot be read
        InvalidArchiveError, MissingEntryError, MalformedDocumentError: See from_bytes
    """
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        error_msg = f"Cannot read bog file '{path}': {e}"
        logger.error(error_msg)
        raise DocumentNotFoundError(error_msg) from e

    try:
        document = from_bytes(data, source=str(path))
    except DocumentLoadError as e:
        logger.error(str(e))
        raise

    logger.debug(f"Loaded bog file '{path}' ({len(data)} bytes)")
    return document


def save(document: ConfigDocument, path: PathLike) -> None:
    """Write ``document`` to ``path`` as a bog file.

    The archive is built fully in memory and written to a temporary file in
    the same directory, which then replaces ``path``. A failure at any point
    leaves ``path`` untouched.

    Raises:
        DocumentSaveError: If serialization or writing fails
    """
    try:
        data = to_bytes(document)
    except Exception as e:
        error_msg = f"Failed to serialize bog document: {e}"
        logger.error(error_msg)
        raise DocumentSaveError(error_msg) from e

    target = Path(path)
    tmp_path = None
    try:
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=target.parent
        )
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_path, target)
        tmp_path = None
    except OSError as e:
        error_msg = f"Failed to write bog file '{path}': {e}"
        logger.error(error_msg)
        raise DocumentSaveError(error_msg) from e
    finally:
        if tmp_path is not None:
            Path(tmp_path).unlink(missing_ok=True)

    logger.info(f"Saved bog file '{path}' ({len(data)} bytes)")
