"""Scenario-style integration tests for core verification behaviors."""

from __future__ import annotations

import time
from datetime import UTC, datetime
from pathlib import Path

from deid_e2e_tester.directory_snapshot import DirectoryStats, delta, snapshot
from deid_e2e_tester.job_waiting import JobWaiter
from deid_e2e_tester.log_matching import compile_job_pattern, read_log_lines, scan_log
from deid_e2e_tester.result_aggregation import OverallOutcome, aggregate
from deid_e2e_tester.verification import (
    BUILTIN_JOB_TYPES,
    JobOutcome,
    LogEvidence,
    TestEvidence,
    TestResult,
    classify,
)

_WATCH_FOLDER = BUILTIN_JOB_TYPES["watch_folder"]


def _evidence_for(log_path: Path, job_id: str) -> LogEvidence:
    log_lines = read_log_lines(log_path)
    return LogEvidence(
        success=scan_log(log_lines, compile_job_pattern(_WATCH_FOLDER.success_pattern, job_id)),
        failure=scan_log(log_lines, compile_job_pattern(_WATCH_FOLDER.failure_pattern, job_id)),
    )


def _result(name: str, outcome: JobOutcome) -> TestResult:
    return TestResult(
        name=name,
        job_type="rest_sync",
        outcome=outcome,
        details="",
        evidence=TestEvidence(log_path="service.log"),
    )


def test_scenario_success_line_with_directory_evidence_is_success(tmp_path: Path) -> None:
    log_path = tmp_path / "service.log"
    log_path.write_text(
        "Job ID: 100, Status callback: , successful 1, failed 0, completionPercentage: 100%\n",
        encoding="utf-8",
    )
    output_dir = tmp_path / "out"
    output_dir.mkdir()
    before = snapshot(output_dir)
    (output_dir / "a.dcm").write_bytes(b"1234")

    classification = classify(
        _evidence_for(log_path, "100"), delta(before, snapshot(output_dir)), _WATCH_FOLDER
    )

    assert classification.outcome == JobOutcome.SUCCESS


def test_scenario_failure_line_without_success_is_failed(tmp_path: Path) -> None:
    log_path = tmp_path / "service.log"
    log_path.write_text(
        "Job ID: 100, Status callback: , successful 0, failed 1, completionPercentage: 100%\n",
        encoding="utf-8",
    )

    classification = classify(
        _evidence_for(log_path, "100"), delta(DirectoryStats(), DirectoryStats()), _WATCH_FOLDER
    )

    assert classification.outcome == JobOutcome.FAILED


def test_scenario_missing_log_is_not_found_and_wait_times_out(tmp_path: Path) -> None:
    log_path = tmp_path / "missing.log"

    classification = classify(_evidence_for(log_path, "100"), None, _WATCH_FOLDER)
    found = JobWaiter().await_pattern(log_path, r"Job ID: 100,", 0.2, 0.05)

    assert classification.outcome == JobOutcome.NOT_FOUND
    assert found is False


def test_scenario_snapshot_counts_files_bytes_and_subdirectories(tmp_path: Path) -> None:
    root = tmp_path / "out"
    (root / "sub").mkdir(parents=True)
    (root / "ten.bin").write_bytes(b"x" * 10)
    (root / "twenty.bin").write_bytes(b"x" * 20)
    (root / "sub" / "thirty.bin").write_bytes(b"x" * 30)

    assert snapshot(root) == DirectoryStats(directory_count=1, file_count=3, total_bytes=60)


def test_scenario_five_successes_and_one_warning_round_to_83_percent() -> None:
    results = [_result(f"test {index}", JobOutcome.SUCCESS) for index in range(4)]
    results.append(_result("test warning", JobOutcome.WARNING))

    summary = aggregate(JobOutcome.SUCCESS, results, generated_at=datetime.now(UTC))

    assert summary.overall_outcome == OverallOutcome.WARNING
    assert summary.success_rate_percent == 83


def test_wait_for_absent_pattern_returns_within_timeout_in_real_time(tmp_path: Path) -> None:
    log_path = tmp_path / "service.log"
    log_path.write_text("noise\n", encoding="utf-8")

    started = time.monotonic()
    found = JobWaiter().await_pattern(log_path, r"never logged", 2, 1)
    elapsed = time.monotonic() - started

    assert found is False
    assert 1.5 <= elapsed < 3.5
