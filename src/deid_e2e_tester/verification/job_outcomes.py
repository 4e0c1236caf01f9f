"""Verification domain entities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from deid_e2e_tester.directory_snapshot import DirectoryDelta
from deid_e2e_tester.log_matching import LogMatchResult


class JobOutcome(str, Enum):
    """Closed set of verification outcomes; exactly one per verification."""

    SUCCESS = "Success"
    FAILED = "Failed"
    WARNING = "Warning"
    IN_PROGRESS = "InProgress"
    NOT_FOUND = "NotFound"
    INCOMPLETE = "Incomplete"
    ERROR = "Error"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class LogEvidence:
    """Log-side evidence for one job."""

    success: LogMatchResult | None
    failure: LogMatchResult | None = None
    error: str | None = None

    @staticmethod
    def unreadable(message: str) -> LogEvidence:
        return LogEvidence(success=None, error=message)


@dataclass(frozen=True)
class Classification:
    """Outcome plus the human-readable reason for it."""

    outcome: JobOutcome
    details: str


@dataclass(frozen=True)
class TestEvidence:
    """Evidence kept with a test result for reports."""

    __test__ = False

    log_path: str
    matched_line: str | None = None
    directory_delta: DirectoryDelta | None = None
    total_lines_seen: int = 0


@dataclass(frozen=True)
class TestResult:
    """Verification result of one test; immutable once created."""

    __test__ = False

    name: str
    job_type: str
    outcome: JobOutcome
    details: str
    evidence: TestEvidence
