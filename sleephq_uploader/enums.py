"""Enumerations used by the uploader.

Describes what the archive step decided to package on a given run.
"""
from enum import Enum, auto


class ArchiveScope(Enum):
    """Which data ends up in the dated archive."""
    FULL = auto()
    INCREMENTAL = auto()
    NONE = auto()
