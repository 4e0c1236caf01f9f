"""Directory snapshot domain exports."""

from .directory_scanner import DirectoryScanError, delta, snapshot
from .snapshot_models import DirectoryDelta, DirectoryStats

__all__ = [
    "DirectoryStats",
    "DirectoryDelta",
    "DirectoryScanError",
    "snapshot",
    "delta",
]
