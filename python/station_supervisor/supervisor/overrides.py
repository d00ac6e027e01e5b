"""Injection of network port overrides into a station's bog document."""

from typing import Dict, Mapping

from ..bog import ConfigDocument
from ..exceptions import OverrideError
from ..logging_config import get_logger

logger = get_logger(__name__)

SERVER_PORT_TYPE = "b:ServerPort"
PORT_VALUE_SLOT = "publicServerPort"

# Override key -> slot that owns the port component
DEFAULT_BOG_OVERRIDES: Dict[str, str] = {
    "httpPort": "/Services/WebService",
    "httpsPort": "/Services/WebService",
    "foxPort": "/Drivers/NiagaraNetwork/foxService",
    "foxsPort": "/Drivers/NiagaraNetwork/foxService",
}


def apply_bog_overrides(document: ConfigDocument, bog_overrides: Mapping[str, object]) -> None:
    """Write port overrides into ``document``.

    For each recognized key a ``b:ServerPort`` slot named after the key is
    ensured under its base path, and its ``publicServerPort`` value set.
    Applying the same overrides again leaves the document unchanged.

    Args:
        document: Bog document to modify in place
        bog_overrides: Mapping of override key to port

    Raises:
        OverrideError: If the base path for a key does not exist in the document
    """
    for key, value in bog_overrides.items():
        base_path = DEFAULT_BOG_OVERRIDES.get(key)
        if base_path is None:
            logger.warning(
                f"Ignoring unknown bog override '{key}'. "
                f"Supported overrides: {sorted(DEFAULT_BOG_OVERRIDES)}"
            )
            continue

        if document.add_node(base_path, key, SERVER_PORT_TYPE) is None:
            error_msg = f"Cannot apply override '{key}': slot '{base_path}' not found"
            logger.error(error_msg)
            raise OverrideError(error_msg)

        document.set_value(f"{base_path}/{key}/{PORT_VALUE_SLOT}", value)
        logger.debug(f"Applied bog override {key}={value}")
