"""Pre-run cleanup of the service log and output directories."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from deid_e2e_tester.configuration.runtime_settings import CleanupSettings

logger = logging.getLogger(__name__)


class WorkspaceCleanupError(Exception):
    """Raised when a cleanup target cannot be reset."""


def prepare_workspace(cleanup: CleanupSettings, log_path: Path) -> None:
    """Truncate the log and empty the listed directories as configured."""
    if cleanup.truncate_log and log_path.exists():
        try:
            log_path.write_bytes(b"")
        except OSError as exc:
            raise WorkspaceCleanupError(f"Cannot truncate log {log_path}: {exc}") from exc
        logger.info("Truncated log %s", log_path)
    for directory in cleanup.clear_directories:
        _empty_directory(directory)


def _empty_directory(directory: Path) -> None:
    if not directory.is_dir():
        return
    try:
        for entry in directory.iterdir():
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
    except OSError as exc:
        raise WorkspaceCleanupError(f"Cannot clear directory {directory}: {exc}") from exc
    logger.info("Cleared directory %s", directory)
