"""Outcome classification from log and output-directory evidence."""

from __future__ import annotations

import logging
from pathlib import Path

from deid_e2e_tester.directory_snapshot import (
    DirectoryDelta,
    DirectoryStats,
    delta,
    snapshot,
)
from deid_e2e_tester.job_waiting import JobWaiter
from deid_e2e_tester.log_matching import LogAccessError, LogScanStatus, compile_job_pattern

from .job_outcomes import Classification, JobOutcome, LogEvidence, TestEvidence, TestResult
from .job_types import JobTypeDefinition

logger = logging.getLogger(__name__)


def classify(
    evidence: LogEvidence,
    directory_delta: DirectoryDelta | None,
    job_type: JobTypeDefinition,
    *,
    log_path: Path | str = "<log>",
    output_directory: Path | str | None = None,
) -> Classification:
    """Map observed evidence to exactly one outcome; the first matching rule wins."""
    if evidence.error is not None or evidence.success is None:
        return Classification(
            JobOutcome.ERROR,
            f"Log {log_path} could not be read: {evidence.error or 'no scan result'}",
        )

    success = evidence.success
    if success.status == LogScanStatus.LOG_MISSING:
        return Classification(JobOutcome.NOT_FOUND, f"Log file not found: {log_path}")
    if success.status == LogScanStatus.INCOMPLETE:
        required = max(job_type.minimum_lines, success.scan_window.required_lines)
        return Classification(
            JobOutcome.INCOMPLETE,
            f"Log {log_path} has fewer than {required} line(s); "
            f"nothing to scan in {success.scan_window.describe()} yet",
        )

    artifacts_present = directory_delta is not None and directory_delta.has_new_artifacts
    artifacts_text = _describe_artifacts(directory_delta, output_directory)
    if success.found:
        matched = f"Matched '{job_type.success_pattern}' at line {success.line_number}"
        if not job_type.requires_directory_evidence or artifacts_present:
            return Classification(JobOutcome.SUCCESS, f"{matched}; {artifacts_text}")
        return Classification(
            JobOutcome.WARNING,
            f"Success logged but artifacts missing: {matched}; {artifacts_text}",
        )

    unmatched = (
        f"'{job_type.success_pattern}' not found in {success.scan_window.describe()} "
        f"of {log_path} ({success.searched_line_count} line(s) searched)"
    )
    if artifacts_present:
        return Classification(
            JobOutcome.WARNING,
            f"Artifacts present but log unconfirmed: {artifacts_text}; {unmatched}",
        )
    if evidence.failure is not None and evidence.failure.found:
        return Classification(
            JobOutcome.FAILED,
            f"Failure logged at line {evidence.failure.line_number}: "
            f"{evidence.failure.matched_line}",
        )
    return Classification(JobOutcome.IN_PROGRESS, f"No completion evidence: {unmatched}")


def verify_job(  # pylint: disable=too-many-arguments
    *,
    name: str,
    job_type: JobTypeDefinition,
    job_id: str | None,
    log_path: Path | str,
    waiter: JobWaiter,
    timeout_seconds: float,
    poll_interval_seconds: float,
    output_directory: Path | str | None = None,
    before: DirectoryStats | None = None,
    start_line: int = 0,
) -> TestResult:
    """Wait for one dispatched job and classify what the service left behind.

    ``before`` is the output-directory snapshot and ``start_line`` the log line
    count taken before the stimulus was dispatched. Failure lines are only
    searched after ``start_line``; success lines too when ``job_id`` is unknown,
    since the wildcard id would also match lines of earlier jobs.

    Raises:
      DirectoryScanError: If the output directory cannot be enumerated.
    """
    success_regex = compile_job_pattern(job_type.success_pattern, job_id)
    failure_regex = compile_job_pattern(job_type.failure_pattern, job_id)
    try:
        observation = waiter.wait_for_match(
            log_path,
            success_regex,
            timeout_seconds=timeout_seconds,
            poll_interval_seconds=poll_interval_seconds,
            window=job_type.scan_window,
            minimum_lines=job_type.minimum_lines,
            start_line=0 if job_id else start_line,
            stop_pattern=failure_regex,
            stop_start_line=start_line,
        )
    except LogAccessError as exc:
        logger.warning("Log unreadable while verifying %s: %s", name, exc)
        return TestResult(
            name=name,
            job_type=job_type.name,
            outcome=JobOutcome.ERROR,
            details=f"Log {log_path} could not be read: {exc}",
            evidence=TestEvidence(log_path=str(log_path)),
        )

    directory_delta = None
    if output_directory is not None:
        directory_delta = delta(before or DirectoryStats(), snapshot(output_directory))

    evidence = LogEvidence(success=observation.result, failure=observation.failure_result)
    classification = classify(
        evidence,
        directory_delta,
        job_type,
        log_path=log_path,
        output_directory=output_directory,
    )
    logger.debug(
        "%s classified as %s after %d poll(s)",
        name,
        classification.outcome.value,
        observation.polls,
    )
    matched_line = observation.result.matched_line
    if matched_line is None and observation.failure_result is not None:
        matched_line = observation.failure_result.matched_line
    return TestResult(
        name=name,
        job_type=job_type.name,
        outcome=classification.outcome,
        details=classification.details,
        evidence=TestEvidence(
            log_path=str(log_path),
            matched_line=matched_line,
            directory_delta=directory_delta,
            total_lines_seen=observation.total_lines_seen,
        ),
    )


def _describe_artifacts(
    directory_delta: DirectoryDelta | None, output_directory: Path | str | None
) -> str:
    if directory_delta is None:
        return "no output directory checked"
    return (
        f"{output_directory or 'output directory'}: "
        f"{directory_delta.files_created:+d} file(s), "
        f"{directory_delta.directories_created:+d} dir(s), "
        f"{directory_delta.bytes_increase:+d} byte(s)"
    )
