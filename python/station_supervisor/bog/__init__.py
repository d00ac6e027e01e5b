"""Bog file document model: selector-addressed slots in a zipped XML tree."""

from .archive import BOG_ENTRY_NAME, from_bytes, load, save, to_bytes
from .document import ConfigDocument, Slot, split_selector

__all__ = [
    "BOG_ENTRY_NAME",
    "ConfigDocument",
    "Slot",
    "from_bytes",
    "load",
    "save",
    "split_selector",
    "to_bytes",
]
