"""Log matching entities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ScanWindowKind(str, Enum):
    """Which part of the log a scan inspects."""

    FULL_FILE = "full_file"
    TAIL = "tail"


@dataclass(frozen=True)
class ScanWindow:
    """Line window applied to one log read."""

    kind: ScanWindowKind
    line_count: int | None = None

    @staticmethod
    def full_file() -> ScanWindow:
        return ScanWindow(kind=ScanWindowKind.FULL_FILE)

    @staticmethod
    def tail(line_count: int) -> ScanWindow:
        if line_count <= 0:
            raise ValueError("Tail window must contain at least one line.")
        return ScanWindow(kind=ScanWindowKind.TAIL, line_count=line_count)

    @property
    def required_lines(self) -> int:
        """Minimum log length for the window to be fully populated."""
        if self.kind == ScanWindowKind.TAIL and self.line_count is not None:
            return self.line_count
        return 1

    def describe(self) -> str:
        if self.kind == ScanWindowKind.TAIL:
            return f"last {self.line_count} line(s)"
        return "full file"


class LogScanStatus(str, Enum):
    """Result of one scan over the log."""

    MATCHED = "matched"
    NO_MATCH = "no_match"
    INCOMPLETE = "incomplete"
    LOG_MISSING = "log_missing"


@dataclass(frozen=True)
class LogLines:
    """Lines read from the log at one instant; ``lines`` is None when the file is missing."""

    path: Path
    lines: tuple[str, ...] | None

    @property
    def exists(self) -> bool:
        return self.lines is not None

    @property
    def line_count(self) -> int:
        return len(self.lines) if self.lines is not None else 0


@dataclass(frozen=True)
class LogMatchResult:
    """Read-only view of one pattern scan; produced fresh on every poll."""

    status: LogScanStatus
    scan_window: ScanWindow
    searched_line_count: int
    matched_line: str | None = None
    line_number: int | None = None

    @property
    def found(self) -> bool:
        return self.status == LogScanStatus.MATCHED
