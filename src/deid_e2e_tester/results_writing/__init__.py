"""Results writing domain exports."""

from .html_report_writer import render_html_report, write_html_report
from .json_result_sink import ResultsFileError, read_results_json, write_results_json
from .report_models import RunMetadata, report_file_name
from .report_set_writer import write_reports
from .workbook_report_writer import write_results_workbook

__all__ = [
    "ResultsFileError",
    "RunMetadata",
    "read_results_json",
    "render_html_report",
    "report_file_name",
    "write_html_report",
    "write_results_json",
    "write_results_workbook",
    "write_reports",
]
