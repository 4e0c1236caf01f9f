"""Run execution use-case service."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from pathlib import Path

from deid_e2e_tester.configuration import (
    ConfigurationError,
    HarnessConfiguration,
    TestDefinition,
    load_configuration,
)
from deid_e2e_tester.directory_snapshot import DirectoryScanError, DirectoryStats, snapshot
from deid_e2e_tester.job_waiting import JobWaiter
from deid_e2e_tester.log_matching import LogAccessError
from deid_e2e_tester.result_aggregation import ReportSummary, aggregate
from deid_e2e_tester.results_writing import (
    ResultsFileError,
    RunMetadata,
    read_results_json,
    write_reports,
)
from deid_e2e_tester.service_control import (
    ServiceController,
    ServiceHealth,
    ServiceStatus,
    WindowsServiceController,
    check_service_health,
)
from deid_e2e_tester.stimulus import StimulusDispatcher, StimulusError
from deid_e2e_tester.verification import JobOutcome, TestEvidence, TestResult, verify_job

from .run_contracts import RunOutcome, RunRequest
from .workspace_cleanup import WorkspaceCleanupError, prepare_workspace

logger = logging.getLogger(__name__)

ServiceControllerFactory = Callable[[str], ServiceController]
Clock = Callable[[], datetime]


class RunExecutionError(Exception):
    """Raised when a run use case cannot be completed."""


def execute_verification_run(
    request: RunRequest,
    *,
    service_controller_factory: ServiceControllerFactory | None = None,
    stimulus_dispatcher: StimulusDispatcher | None = None,
    job_waiter: JobWaiter | None = None,
    now: Clock | None = None,
) -> RunOutcome:
    """Execute every enabled test sequentially, aggregate, and write the reports."""
    resolved_now = now or _utc_now
    configuration = _load_run_configuration(request.config_path)
    run_start = resolved_now()

    if request.dry_run:
        health = ServiceHealth(
            outcome=JobOutcome.UNKNOWN,
            status=ServiceStatus.UNKNOWN,
            details="dry run: service not queried",
        )
        results = _dry_run_results(configuration)
    else:
        resolved_factory = service_controller_factory or WindowsServiceController
        health, results = _execute_live_run(
            configuration=configuration,
            controller=resolved_factory(configuration.service.name),
            dispatcher=stimulus_dispatcher or StimulusDispatcher(),
            waiter=job_waiter or JobWaiter(encoding=configuration.log.encoding),
        )

    summary = aggregate(
        health.outcome,
        results,
        generated_at=resolved_now(),
        service_details=health.details,
    )
    run_metadata = RunMetadata(
        run_start=run_start,
        config_path=configuration.path.resolve(),
        log_path=configuration.log.path,
        service_name=configuration.service.name,
        title=configuration.report.title,
        dry_run=request.dry_run,
    )
    report_paths = _write_run_reports(summary, run_metadata, configuration, request.output_dir)
    return RunOutcome(summary=summary, report_paths=report_paths, dry_run=request.dry_run)


def _utc_now() -> datetime:
    return datetime.now(UTC)


def _load_run_configuration(config_path: str) -> HarnessConfiguration:
    try:
        return load_configuration(config_path)
    except (ConfigurationError, OSError) as exc:
        raise RunExecutionError(str(exc)) from exc


def _enabled_tests(configuration: HarnessConfiguration) -> list[TestDefinition]:
    enabled = [test for test in configuration.tests if test.enabled]
    for test in configuration.tests:
        if not test.enabled:
            logger.info("Skipping disabled test %s", test.name)
    return enabled


def _dry_run_results(configuration: HarnessConfiguration) -> list[TestResult]:
    return [
        TestResult(
            name=test.name,
            job_type=test.job_type.name,
            outcome=JobOutcome.UNKNOWN,
            details="dry run: not executed",
            evidence=TestEvidence(log_path=str(configuration.log.path)),
        )
        for test in _enabled_tests(configuration)
    ]


def _execute_live_run(
    *,
    configuration: HarnessConfiguration,
    controller: ServiceController,
    dispatcher: StimulusDispatcher,
    waiter: JobWaiter,
) -> tuple[ServiceHealth, list[TestResult]]:
    try:
        prepare_workspace(configuration.cleanup, configuration.log.path)
    except WorkspaceCleanupError as exc:
        raise RunExecutionError(str(exc)) from exc

    health = check_service_health(controller, configuration.service)
    logger.info("Service health: %s (%s)", health.outcome.value, health.details)

    results: list[TestResult] = []
    for test in _enabled_tests(configuration):
        try:
            result = _run_single_test(
                test=test,
                log_path=configuration.log.path,
                dispatcher=dispatcher,
                waiter=waiter,
            )
        except DirectoryScanError as exc:
            raise RunExecutionError(f"Test {test.name}: {exc}") from exc
        logger.info("%s: %s", test.name, result.outcome.value)
        results.append(result)
    return health, results


def _run_single_test(
    *,
    test: TestDefinition,
    log_path: Path,
    dispatcher: StimulusDispatcher,
    waiter: JobWaiter,
) -> TestResult:
    before: DirectoryStats | None = None
    if test.output_directory is not None:
        before = snapshot(test.output_directory)

    try:
        start_line = waiter.log_line_count(log_path)
    except LogAccessError as exc:
        logger.warning("Log unreadable before dispatching %s: %s", test.name, exc)
        return TestResult(
            name=test.name,
            job_type=test.job_type.name,
            outcome=JobOutcome.ERROR,
            details=f"Log {log_path} could not be read: {exc}",
            evidence=TestEvidence(log_path=str(log_path)),
        )

    try:
        receipt = dispatcher.dispatch(test.stimulus)
    except StimulusError as exc:
        logger.warning("Stimulus for %s failed: %s", test.name, exc)
        return TestResult(
            name=test.name,
            job_type=test.job_type.name,
            outcome=JobOutcome.ERROR,
            details=f"Stimulus failed: {exc}",
            evidence=TestEvidence(log_path=str(log_path)),
        )
    logger.debug("%s dispatched at %s: %s", test.name, receipt.dispatched_at, receipt.description)

    return verify_job(
        name=test.name,
        job_type=test.job_type,
        job_id=test.job_id or receipt.job_id,
        log_path=log_path,
        waiter=waiter,
        timeout_seconds=test.timeout_seconds,
        poll_interval_seconds=test.poll_interval_seconds,
        output_directory=test.output_directory,
        before=before,
        start_line=start_line,
    )


def _write_run_reports(
    summary: ReportSummary,
    run_metadata: RunMetadata,
    configuration: HarnessConfiguration,
    output_dir: str | None,
) -> tuple[Path, ...]:
    destination = Path(output_dir) if output_dir else configuration.report.output_dir
    try:
        return write_reports(summary, run_metadata, destination, configuration.report.formats)
    except OSError as exc:
        raise RunExecutionError(f"Failed to write reports to {destination}: {exc}") from exc


def regenerate_reports(
    results_path: Path | str,
    output_dir: Path | str | None,
    formats: Sequence[str],
) -> tuple[Path, ...]:
    """Re-aggregate a saved JSON result and write reports without re-running any test.

    Aggregation is a pure fold, so the regenerated summary equals the saved one.
    """
    try:
        saved, run_metadata = read_results_json(results_path)
    except ResultsFileError as exc:
        raise RunExecutionError(str(exc)) from exc
    summary = aggregate(
        saved.service_health,
        saved.per_test,
        generated_at=saved.generated_at,
        service_details=saved.service_details,
    )
    destination = Path(output_dir) if output_dir else Path(results_path).resolve().parent
    try:
        return write_reports(summary, run_metadata, destination, formats)
    except OSError as exc:
        raise RunExecutionError(f"Failed to write reports to {destination}: {exc}") from exc
