"""JSON persistence of run summaries."""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

from deid_e2e_tester.directory_snapshot import DirectoryDelta
from deid_e2e_tester.result_aggregation import OutcomeCounts, OverallOutcome, ReportSummary
from deid_e2e_tester.verification import JobOutcome, TestEvidence, TestResult

from .report_models import RunMetadata

RESULTS_FORMAT_VERSION = 1


class ResultsFileError(Exception):
    """Raised when a saved results file cannot be read back."""


def write_results_json(
    summary: ReportSummary, run_metadata: RunMetadata, output_path: Path | str
) -> Path:
    """Write the summary and run metadata as UTF-8 JSON and return the path."""
    destination = Path(output_path)
    destination.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "format_version": RESULTS_FORMAT_VERSION,
        "run": _metadata_to_dict(run_metadata),
        "summary": summary_to_dict(summary),
    }
    destination.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8"
    )
    return destination


def read_results_json(input_path: Path | str) -> tuple[ReportSummary, RunMetadata]:
    """Load a results file written by ``write_results_json``."""
    path = Path(input_path)
    if not path.exists():
        raise ResultsFileError(f"Results file not found: {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
        if payload.get("format_version") != RESULTS_FORMAT_VERSION:
            raise ResultsFileError(
                f"Unsupported results format version: {payload.get('format_version')!r}"
            )
        return summary_from_dict(payload["summary"]), _metadata_from_dict(payload["run"])
    except (ValueError, KeyError, TypeError, AttributeError) as exc:
        raise ResultsFileError(f"Invalid results file {path}: {exc}") from exc


def summary_to_dict(summary: ReportSummary) -> dict[str, Any]:
    return {
        "service_health": summary.service_health.value,
        "service_details": summary.service_details,
        "overall_outcome": summary.overall_outcome.value,
        "success_rate_percent": summary.success_rate_percent,
        "generated_at": summary.generated_at.isoformat(),
        "counts": {
            "total": summary.counts.total,
            "succeeded": summary.counts.succeeded,
            "failed": summary.counts.failed,
            "other": summary.counts.other,
        },
        "tests": [_test_result_to_dict(result) for result in summary.per_test],
    }


def summary_from_dict(data: Mapping[str, Any]) -> ReportSummary:
    counts = data["counts"]
    return ReportSummary(
        service_health=JobOutcome(data["service_health"]),
        service_details=str(data.get("service_details", "")),
        per_test=tuple(_test_result_from_dict(item) for item in data["tests"]),
        overall_outcome=OverallOutcome(data["overall_outcome"]),
        success_rate_percent=int(data["success_rate_percent"]),
        counts=OutcomeCounts(
            total=int(counts["total"]),
            succeeded=int(counts["succeeded"]),
            failed=int(counts["failed"]),
            other=int(counts["other"]),
        ),
        generated_at=datetime.fromisoformat(data["generated_at"]),
    )


def _test_result_to_dict(result: TestResult) -> dict[str, Any]:
    directory_delta = result.evidence.directory_delta
    return {
        "name": result.name,
        "job_type": result.job_type,
        "outcome": result.outcome.value,
        "details": result.details,
        "evidence": {
            "log_path": result.evidence.log_path,
            "matched_line": result.evidence.matched_line,
            "total_lines_seen": result.evidence.total_lines_seen,
            "directory_delta": (
                None
                if directory_delta is None
                else {
                    "directories_created": directory_delta.directories_created,
                    "files_created": directory_delta.files_created,
                    "bytes_increase": directory_delta.bytes_increase,
                }
            ),
        },
    }


def _test_result_from_dict(data: Mapping[str, Any]) -> TestResult:
    evidence = data["evidence"]
    raw_delta = evidence.get("directory_delta")
    return TestResult(
        name=str(data["name"]),
        job_type=str(data["job_type"]),
        outcome=JobOutcome(data["outcome"]),
        details=str(data["details"]),
        evidence=TestEvidence(
            log_path=str(evidence["log_path"]),
            matched_line=evidence.get("matched_line"),
            total_lines_seen=int(evidence.get("total_lines_seen", 0)),
            directory_delta=(
                None
                if raw_delta is None
                else DirectoryDelta(
                    directories_created=int(raw_delta["directories_created"]),
                    files_created=int(raw_delta["files_created"]),
                    bytes_increase=int(raw_delta["bytes_increase"]),
                )
            ),
        ),
    )


def _metadata_to_dict(run_metadata: RunMetadata) -> dict[str, Any]:
    return {
        "run_start": run_metadata.run_start.isoformat(),
        "config_path": str(run_metadata.config_path),
        "log_path": str(run_metadata.log_path),
        "service_name": run_metadata.service_name,
        "title": run_metadata.title,
        "dry_run": run_metadata.dry_run,
    }


def _metadata_from_dict(data: Mapping[str, Any]) -> RunMetadata:
    return RunMetadata(
        run_start=datetime.fromisoformat(data["run_start"]),
        config_path=Path(data["config_path"]),
        log_path=Path(data["log_path"]),
        service_name=str(data["service_name"]),
        title=str(data["title"]),
        dry_run=bool(data.get("dry_run", False)),
    )
