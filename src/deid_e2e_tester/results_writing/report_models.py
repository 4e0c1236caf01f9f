"""Results writing entities."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

REPORT_FILE_STEM = "deid-e2e-report"


@dataclass(frozen=True)
class RunMetadata:
    """Metadata rendered next to the summary in every report."""

    run_start: datetime
    config_path: Path
    log_path: Path
    service_name: str
    title: str
    dry_run: bool = False


def report_file_name(run_metadata: RunMetadata, extension: str) -> str:
    """Return ``<stem>-<timestamp>.<extension>`` for one run."""
    timestamp = run_metadata.run_start.strftime("%Y%m%d-%H%M%S")
    return f"{REPORT_FILE_STEM}-{timestamp}.{extension}"
