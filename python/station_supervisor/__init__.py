"""Supervision of Niagara-style station processes and their bog configuration files.

- Process supervision: from .supervisor import Station, copy_and_run
- Bog documents: from .bog import ConfigDocument, load, save
"""

__version__ = "0.1.0"
