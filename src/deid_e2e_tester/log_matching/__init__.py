"""Log matching domain exports."""

from .log_matcher import (
    LogAccessError,
    compile_job_pattern,
    find_first,
    find_last,
    read_log_lines,
    scan_log,
)
from .match_outcomes import LogLines, LogMatchResult, LogScanStatus, ScanWindow, ScanWindowKind

__all__ = [
    "LogAccessError",
    "LogLines",
    "LogMatchResult",
    "LogScanStatus",
    "ScanWindow",
    "ScanWindowKind",
    "compile_job_pattern",
    "find_first",
    "find_last",
    "read_log_lines",
    "scan_log",
]
