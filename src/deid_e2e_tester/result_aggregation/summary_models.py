"""Result aggregation entities."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from deid_e2e_tester.verification import JobOutcome, TestResult


class OverallOutcome(str, Enum):
    """Run-level verdict."""

    PASSED = "PASSED"
    FAILED = "FAILED"
    WARNING = "WARNING"


@dataclass(frozen=True)
class OutcomeCounts:
    """Counters over the service health outcome and every test outcome."""

    total: int
    succeeded: int
    failed: int
    other: int


@dataclass(frozen=True)
class ReportSummary:
    """Final report payload; read-only once built."""

    service_health: JobOutcome
    service_details: str
    per_test: tuple[TestResult, ...]
    overall_outcome: OverallOutcome
    success_rate_percent: int
    counts: OutcomeCounts
    generated_at: datetime

    @property
    def all_succeeded(self) -> bool:
        """Return True when the run should exit with code 0."""
        return self.overall_outcome == OverallOutcome.PASSED
