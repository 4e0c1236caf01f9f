"""Best-effort recursive directory scanner."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .snapshot_models import DirectoryDelta, DirectoryStats

logger = logging.getLogger(__name__)


class DirectoryScanError(Exception):
    """Raised when the snapshot root exists but cannot be enumerated."""


def snapshot(path: Path | str) -> DirectoryStats:
    """Count sub-directories, files and file bytes below ``path``.

    A missing root yields all-zero stats. Entries that disappear or cannot be
    read while the tree is being mutated are skipped.
    """
    root = Path(path)
    if not root.exists():
        return DirectoryStats()
    if not root.is_dir():
        logger.debug("Snapshot root is not a directory: %s", root)
        return DirectoryStats()

    try:
        with os.scandir(root) as iterator:
            root_entries = list(iterator)
    except OSError as exc:
        raise DirectoryScanError(f"Cannot enumerate directory {root}: {exc}") from exc

    directory_count = 0
    file_count = 0
    total_bytes = 0
    pending: list[list[os.DirEntry[str]]] = [root_entries]
    while pending:
        for entry in pending.pop():
            try:
                if entry.is_dir(follow_symlinks=False):
                    directory_count += 1
                    pending.append(_list_entries(entry.path))
                    continue
                size = entry.stat(follow_symlinks=False).st_size
            except OSError as exc:
                logger.debug("Skipping unreadable entry %s: %s", entry.path, exc)
                continue
            file_count += 1
            total_bytes += size

    return DirectoryStats(
        directory_count=directory_count,
        file_count=file_count,
        total_bytes=total_bytes,
    )


def delta(before: DirectoryStats, after: DirectoryStats) -> DirectoryDelta:
    """Subtract ``before`` from ``after`` field by field."""
    return DirectoryDelta(
        directories_created=after.directory_count - before.directory_count,
        files_created=after.file_count - before.file_count,
        bytes_increase=after.total_bytes - before.total_bytes,
    )


def _list_entries(directory: str) -> list[os.DirEntry[str]]:
    try:
        with os.scandir(directory) as iterator:
            return list(iterator)
    except OSError as exc:
        logger.debug("Skipping unreadable directory %s: %s", directory, exc)
        return []
