"""Pattern scans over an append-only service log."""

from __future__ import annotations

import re
from collections.abc import Sequence
from pathlib import Path

from .match_outcomes import LogLines, LogMatchResult, LogScanStatus, ScanWindow, ScanWindowKind

JOB_ID_PLACEHOLDER = "{job_id}"
_ANY_JOB_ID = r"\d+"


class LogAccessError(Exception):
    """Raised when the log exists but cannot be read."""


def read_log_lines(log_path: Path | str, encoding: str = "utf-8") -> LogLines:
    """Read the whole log from scratch.

    A missing file is reported through ``LogLines.lines is None``. Bytes that do
    not decode are replaced so ANSI-encoded lines still reach the matcher.
    """
    path = Path(log_path)
    try:
        text = path.read_text(encoding=encoding, errors="replace")
    except FileNotFoundError:
        return LogLines(path=path, lines=None)
    except OSError as exc:
        raise LogAccessError(f"Cannot read log file {path}: {exc}") from exc
    return LogLines(path=path, lines=tuple(text.splitlines()))


def compile_job_pattern(template: str, job_id: str | None) -> re.Pattern[str]:
    """Compile a pattern template, substituting the job identifier placeholder."""
    replacement = re.escape(job_id) if job_id else _ANY_JOB_ID
    try:
        return re.compile(template.replace(JOB_ID_PLACEHOLDER, replacement))
    except re.error as exc:
        raise ValueError(f"Invalid log pattern '{template}': {exc}") from exc


def find_first(
    lines: Sequence[str],
    pattern: re.Pattern[str] | str,
    *,
    window: ScanWindow | None = None,
    minimum_lines: int = 1,
    start_line: int = 0,
) -> LogMatchResult:
    """Return the first line in file order that matches ``pattern``.

    Later duplicates are ignored, so a match found at line ``i`` stays at line
    ``i`` while the log only grows. Lines before ``start_line`` (a line count
    taken earlier) are skipped; a log shorter than that was reset and is
    searched from the top.
    """
    scan_window = window or ScanWindow.full_file()
    if _is_incomplete(len(lines), scan_window, minimum_lines):
        return LogMatchResult(
            status=LogScanStatus.INCOMPLETE,
            scan_window=scan_window,
            searched_line_count=0,
        )

    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    offset = max(_window_offset(len(lines), scan_window), _start_offset(len(lines), start_line))
    window_lines = lines[offset:]
    for index, line in enumerate(window_lines):
        if regex.search(line):
            return LogMatchResult(
                status=LogScanStatus.MATCHED,
                scan_window=scan_window,
                searched_line_count=index + 1,
                matched_line=line,
                line_number=offset + index + 1,
            )
    return LogMatchResult(
        status=LogScanStatus.NO_MATCH,
        scan_window=scan_window,
        searched_line_count=len(window_lines),
    )


def find_last(
    lines: Sequence[str],
    substring: str,
    *,
    tail_lines: int = 1,
) -> LogMatchResult:
    """Case-sensitive "contains" check over the final ``tail_lines`` lines.

    Only reliable when the target job is guaranteed to be the most recently
    logged one; interleaved jobs can push the completion line out of the tail.
    """
    scan_window = ScanWindow.tail(tail_lines)
    if _is_incomplete(len(lines), scan_window, minimum_lines=1):
        return LogMatchResult(
            status=LogScanStatus.INCOMPLETE,
            scan_window=scan_window,
            searched_line_count=0,
        )

    offset = _window_offset(len(lines), scan_window)
    for index in range(len(lines) - 1, offset - 1, -1):
        if substring in lines[index]:
            return LogMatchResult(
                status=LogScanStatus.MATCHED,
                scan_window=scan_window,
                searched_line_count=len(lines) - index,
                matched_line=lines[index],
                line_number=index + 1,
            )
    return LogMatchResult(
        status=LogScanStatus.NO_MATCH,
        scan_window=scan_window,
        searched_line_count=len(lines) - offset,
    )


def scan_log(
    log_lines: LogLines,
    pattern: re.Pattern[str] | str,
    *,
    window: ScanWindow | None = None,
    minimum_lines: int = 1,
    start_line: int = 0,
) -> LogMatchResult:
    """Run ``find_first`` over one log read, reporting a missing file separately."""
    scan_window = window or ScanWindow.full_file()
    if log_lines.lines is None:
        return LogMatchResult(
            status=LogScanStatus.LOG_MISSING,
            scan_window=scan_window,
            searched_line_count=0,
        )
    return find_first(
        log_lines.lines,
        pattern,
        window=scan_window,
        minimum_lines=minimum_lines,
        start_line=start_line,
    )


def _is_incomplete(line_count: int, window: ScanWindow, minimum_lines: int) -> bool:
    return line_count == 0 or line_count < max(minimum_lines, window.required_lines)


def _start_offset(line_count: int, start_line: int) -> int:
    if start_line <= 0 or start_line > line_count:
        return 0
    return start_line


def _window_offset(line_count: int, window: ScanWindow) -> int:
    if window.kind == ScanWindowKind.TAIL and window.line_count is not None:
        return max(0, line_count - window.line_count)
    return 0
