"""Results workbook writer service."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from deid_e2e_tester.result_aggregation import ReportSummary
from deid_e2e_tester.verification import TestResult

from .report_models import RunMetadata

RESULTS_SHEET_NAME = "Results"
RUN_INFO_SHEET_NAME = "RunInfo"
RESULT_COLUMNS: tuple[str, ...] = (
    "Test",
    "Job type",
    "Outcome",
    "Details",
    "Matched line",
    "Files created",
    "Directories created",
    "Bytes increase",
    "Log lines seen",
    "Log path",
)
_COLUMN_WIDTHS = (24, 14, 12, 60, 60, 14, 20, 16, 16, 40)


def write_results_workbook(
    summary: ReportSummary, run_metadata: RunMetadata, output_path: Path | str
) -> Path:
    """Write one Results row per test plus a RunInfo sheet."""
    workbook = Workbook()
    sheet = workbook.active
    if sheet is None:
        raise RuntimeError("Workbook active sheet is not available.")
    assert isinstance(sheet, Worksheet)
    sheet.title = RESULTS_SHEET_NAME

    _write_header(sheet)
    _write_result_rows(sheet, summary.per_test)
    _write_run_info_sheet(workbook, summary, run_metadata)

    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(output)
    return output


def _write_header(sheet: Worksheet) -> None:
    for column_index, (name, width) in enumerate(zip(RESULT_COLUMNS, _COLUMN_WIDTHS), start=1):
        sheet.cell(row=1, column=column_index, value=name).style = "Headline 1"
        sheet.column_dimensions[get_column_letter(column_index)].width = width
    sheet.freeze_panes = "A2"


def _write_result_rows(sheet: Worksheet, results: Sequence[TestResult]) -> None:
    wrap = Alignment(wrap_text=True, vertical="top")
    for row, result in enumerate(results, start=2):
        delta = result.evidence.directory_delta
        values = (
            result.name,
            result.job_type,
            result.outcome.value,
            result.details,
            result.evidence.matched_line,
            delta.files_created if delta else None,
            delta.directories_created if delta else None,
            delta.bytes_increase if delta else None,
            result.evidence.total_lines_seen,
            result.evidence.log_path,
        )
        for column, value in enumerate(values, start=1):
            sheet.cell(row=row, column=column, value=_cell_value(value)).alignment = wrap


def _write_run_info_sheet(
    workbook: Workbook, summary: ReportSummary, run_metadata: RunMetadata
) -> None:
    sheet = workbook.create_sheet(RUN_INFO_SHEET_NAME)
    entries = (
        ("title", run_metadata.title),
        ("run_start", run_metadata.run_start.isoformat()),
        ("generated_at", summary.generated_at.isoformat()),
        ("config_path", str(run_metadata.config_path)),
        ("log_path", str(run_metadata.log_path)),
        ("service_name", run_metadata.service_name),
        ("service_health", summary.service_health.value),
        ("dry_run", run_metadata.dry_run),
        ("overall_outcome", summary.overall_outcome.value),
        ("success_rate_percent", summary.success_rate_percent),
        ("total", summary.counts.total),
        ("succeeded", summary.counts.succeeded),
        ("failed", summary.counts.failed),
        ("other", summary.counts.other),
    )
    for row, (key, value) in enumerate(entries, start=1):
        sheet.cell(row=row, column=1, value=key)
        sheet.cell(row=row, column=2, value=_cell_value(value))
    sheet.column_dimensions["A"].width = 24
    sheet.column_dimensions["B"].width = 60


def _cell_value(value: object) -> object:
    # Worksheet XML rejects control characters that service logs may carry.
    if isinstance(value, str):
        return ILLEGAL_CHARACTERS_RE.sub("", value)
    return value
