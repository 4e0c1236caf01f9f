"""Writes every configured report format for one run."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from deid_e2e_tester.result_aggregation import ReportSummary

from .html_report_writer import write_html_report
from .json_result_sink import write_results_json
from .report_models import RunMetadata, report_file_name
from .workbook_report_writer import write_results_workbook

_WRITERS = {
    "json": write_results_json,
    "html": write_html_report,
    "xlsx": write_results_workbook,
}


def write_reports(
    summary: ReportSummary,
    run_metadata: RunMetadata,
    output_dir: Path | str,
    formats: Sequence[str],
) -> tuple[Path, ...]:
    """Write one report file per format into ``output_dir`` and return their paths."""
    destination = Path(output_dir)
    written: list[Path] = []
    for report_format in formats:
        writer = _WRITERS.get(report_format)
        if writer is None:
            raise ValueError(f"Unsupported report format: {report_format}")
        path = destination / report_file_name(run_metadata, report_format)
        written.append(writer(summary, run_metadata, path).resolve())
    return tuple(written)
