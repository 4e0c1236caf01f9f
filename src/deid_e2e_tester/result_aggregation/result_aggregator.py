"""Fold per-test outcomes into one report summary."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from deid_e2e_tester.verification import JobOutcome, TestResult

from .summary_models import OutcomeCounts, OverallOutcome, ReportSummary


def aggregate(
    service_health: JobOutcome,
    test_results: Sequence[TestResult],
    *,
    generated_at: datetime,
    service_details: str = "",
) -> ReportSummary:
    """Build the report summary for the service health check plus every test.

    The service health outcome counts as one more input next to the tests.
    The fold is pure: identical inputs produce an identical summary.
    """
    outcomes = [service_health, *(result.outcome for result in test_results)]
    succeeded = sum(1 for outcome in outcomes if outcome == JobOutcome.SUCCESS)
    failed = sum(1 for outcome in outcomes if outcome == JobOutcome.FAILED)
    counts = OutcomeCounts(
        total=len(outcomes),
        succeeded=succeeded,
        failed=failed,
        other=len(outcomes) - succeeded - failed,
    )
    return ReportSummary(
        service_health=service_health,
        service_details=service_details,
        per_test=tuple(test_results),
        overall_outcome=_overall_outcome(counts),
        success_rate_percent=success_rate_percent(succeeded, counts.total),
        counts=counts,
        generated_at=generated_at,
    )


def success_rate_percent(succeeded: int, total: int) -> int:
    """Percentage of successful outcomes, rounded half up (82.5 -> 83)."""
    if total <= 0:
        return 0
    ratio = Decimal(100 * succeeded) / Decimal(total)
    return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _overall_outcome(counts: OutcomeCounts) -> OverallOutcome:
    if counts.succeeded == counts.total:
        return OverallOutcome.PASSED
    if counts.failed > 0:
        return OverallOutcome.FAILED
    return OverallOutcome.WARNING
