"""Directory snapshot entities."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DirectoryStats:
    """Point-in-time counts for one directory tree."""

    directory_count: int = 0
    file_count: int = 0
    total_bytes: int = 0


@dataclass(frozen=True)
class DirectoryDelta:
    """Field-wise difference between two snapshots of the same tree.

    Values are not clamped: a negative count means entries were removed
    while the service under test was running.
    """

    directories_created: int
    files_created: int
    bytes_increase: int

    @property
    def has_new_artifacts(self) -> bool:
        """Return True when the tree gained at least one directory or file."""
        return self.directories_created > 0 or self.files_created > 0
