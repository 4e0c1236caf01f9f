"""Timeout-bounded polling of the service log."""

from __future__ import annotations

import logging
import re
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from deid_e2e_tester.log_matching import (
    LogLines,
    LogMatchResult,
    ScanWindow,
    read_log_lines,
    scan_log,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Sleeper = Callable[[float], None]


@dataclass(frozen=True)
class WaitObservation:
    """Evidence gathered by the last poll of one wait."""

    result: LogMatchResult
    failure_result: LogMatchResult | None
    total_lines_seen: int
    polls: int
    elapsed_seconds: float

    @property
    def found(self) -> bool:
        return self.result.found

    @property
    def failure_found(self) -> bool:
        return self.failure_result is not None and self.failure_result.found


class JobWaiter:
    """Polls a growing log until a job pattern appears or the deadline passes.

    Each poll re-reads the whole file; the log is append-only, so a later read
    is always a superset of an earlier one. There is no cancellation besides
    the timeout.
    """

    def __init__(
        self,
        *,
        clock: Clock | None = None,
        sleep: Sleeper | None = None,
        encoding: str = "utf-8",
    ) -> None:
        self._clock = clock or time.monotonic
        self._sleep = sleep or time.sleep
        self._encoding = encoding

    def log_line_count(self, log_path: Path | str) -> int:
        """Count the lines logged so far; a missing log counts as empty."""
        return read_log_lines(log_path, encoding=self._encoding).line_count

    def await_pattern(
        self,
        log_path: Path | str,
        pattern: re.Pattern[str] | str,
        timeout_seconds: float,
        poll_interval_seconds: float,
    ) -> bool:
        """Return True as soon as ``pattern`` is logged, False once the timeout elapses."""
        observation = self.wait_for_match(
            log_path,
            pattern,
            timeout_seconds=timeout_seconds,
            poll_interval_seconds=poll_interval_seconds,
        )
        return observation.found

    def wait_for_match(  # pylint: disable=too-many-arguments
        self,
        log_path: Path | str,
        pattern: re.Pattern[str] | str,
        *,
        timeout_seconds: float,
        poll_interval_seconds: float,
        window: ScanWindow | None = None,
        minimum_lines: int = 1,
        start_line: int = 0,
        stop_pattern: re.Pattern[str] | str | None = None,
        stop_start_line: int = 0,
    ) -> WaitObservation:
        """Poll until ``pattern`` (or ``stop_pattern``) matches or the deadline passes.

        ``start_line`` and ``stop_start_line`` are line counts taken before the job
        was triggered; earlier lines belong to other jobs and are not scanned.

        Raises:
          LogAccessError: If the log exists but cannot be read.
        """
        scan_window = window or ScanWindow.full_file()
        started = self._clock()
        deadline = started + timeout_seconds
        polls = 0
        while True:
            polls += 1
            log_lines = read_log_lines(log_path, encoding=self._encoding)
            result = scan_log(
                log_lines,
                pattern,
                window=scan_window,
                minimum_lines=minimum_lines,
                start_line=start_line,
            )
            failure_result = self._scan_stop_pattern(
                log_lines, stop_pattern, minimum_lines, stop_start_line, found=result.found
            )
            logger.debug(
                "Poll %d of %s: %s (%d lines)",
                polls,
                log_lines.path,
                result.status.value,
                log_lines.line_count,
            )
            now = self._clock()
            stop = result.found or (failure_result is not None and failure_result.found)
            if stop or now >= deadline:
                return WaitObservation(
                    result=result,
                    failure_result=failure_result,
                    total_lines_seen=log_lines.line_count,
                    polls=polls,
                    elapsed_seconds=now - started,
                )
            self._sleep(max(0.0, min(poll_interval_seconds, deadline - now)))

    @staticmethod
    def _scan_stop_pattern(
        log_lines: LogLines,
        stop_pattern: re.Pattern[str] | str | None,
        minimum_lines: int,
        start_line: int,
        *,
        found: bool,
    ) -> LogMatchResult | None:
        if stop_pattern is None or found:
            return None
        # Failure lines may sit anywhere after the start line, not just in the tail window.
        return scan_log(
            log_lines, stop_pattern, minimum_lines=minimum_lines, start_line=start_line
        )
