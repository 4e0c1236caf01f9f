"""Run execution entities."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from deid_e2e_tester.result_aggregation import ReportSummary


@dataclass(frozen=True)
class RunRequest:
    """Input contract for executing one run."""

    config_path: str
    output_dir: str | None = None
    dry_run: bool = False


@dataclass(frozen=True)
class RunOutcome:
    """Output contract for one completed run."""

    summary: ReportSummary
    report_paths: tuple[Path, ...]
    dry_run: bool

    @property
    def exit_code(self) -> int:
        return 0 if self.summary.all_succeeded else 1
