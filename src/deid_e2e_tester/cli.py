"""Command line interface entry point."""

from __future__ import annotations

import logging
import sys

import click

from deid_e2e_tester.configuration import (
    DEFAULT_CONFIG_FILENAME,
    REPORT_FORMATS,
    ConfigurationError,
    load_configuration,
    write_placeholder_configuration,
)
from deid_e2e_tester.result_aggregation import OverallOutcome, ReportSummary
from deid_e2e_tester.run_execution import (
    RunExecutionError,
    RunRequest,
    execute_verification_run,
    regenerate_reports,
)
from deid_e2e_tester.service_control import WindowsServiceController, check_service_health
from deid_e2e_tester.stimulus import StimulusDispatcher
from deid_e2e_tester.verification import JobOutcome

_VERDICT_COLORS = {
    OverallOutcome.PASSED: "green",
    OverallOutcome.WARNING: "yellow",
    OverallOutcome.FAILED: "red",
}


class CliError(Exception):
    """Custom CLI error."""


class VerificationFailedError(CliError):
    """Raised when a run completed but not every outcome is Success."""


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="deid-e2e-tester")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """DeIdentification service E2E tester."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command(name="generate-config")
@click.option(
    "--output",
    "output_path",
    required=False,
    default=DEFAULT_CONFIG_FILENAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Path to the YAML test configuration template to write",
)
def generate_config(output_path: str) -> None:
    """Generate a placeholder YAML test configuration with guidance comments."""
    try:
        resolved_output = write_placeholder_configuration(output_path)
    except (FileExistsError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(str(resolved_output))


@cli.command(name="run")
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to YAML/JSON test configuration file",
)
@click.option(
    "--output-dir",
    "output_dir",
    required=False,
    type=click.Path(path_type=str),
    help="Optional directory for report files (overrides report.output_dir)",
)
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Skip service control, cleanup and stimuli; record every test as Unknown.",
)
def run_tests(config_path: str, output_dir: str | None, dry_run: bool) -> None:
    """Execute the configured tests and write the reports."""
    try:
        outcome = execute_verification_run(
            RunRequest(config_path=config_path, output_dir=output_dir, dry_run=dry_run),
            service_controller_factory=WindowsServiceController,
            stimulus_dispatcher=StimulusDispatcher(),
        )
    except RunExecutionError as exc:
        raise CliError(str(exc)) from exc
    _echo_summary(outcome.summary)
    for path in outcome.report_paths:
        click.echo(str(path))
    if outcome.exit_code != 0:
        raise VerificationFailedError(
            f"Verification {outcome.summary.overall_outcome.value}: "
            f"{outcome.summary.counts.succeeded}/{outcome.summary.counts.total} outcomes succeeded."
        )


@cli.command(name="report")
@click.option(
    "--results",
    "results_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to a JSON results file written by a previous run",
)
@click.option(
    "--output-dir",
    "output_dir",
    required=False,
    type=click.Path(path_type=str),
    help="Directory for regenerated reports (defaults to the results file directory)",
)
@click.option(
    "--format",
    "formats",
    multiple=True,
    type=click.Choice(REPORT_FORMATS),
    default=("html",),
    show_default=True,
    help="Report format to regenerate; repeat for several formats",
)
def report(results_path: str, output_dir: str | None, formats: tuple[str, ...]) -> None:
    """Regenerate reports from saved results without re-running any test."""
    try:
        paths = regenerate_reports(results_path, output_dir, formats)
    except RunExecutionError as exc:
        raise CliError(str(exc)) from exc
    for path in paths:
        click.echo(str(path))


@cli.command(name="service-status")
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to YAML/JSON test configuration file",
)
def service_status(config_path: str) -> None:
    """Query the configured Windows service and print its health outcome."""
    try:
        configuration = load_configuration(config_path)
    except ConfigurationError as exc:
        raise CliError(str(exc)) from exc
    health = check_service_health(
        WindowsServiceController(configuration.service.name), configuration.service
    )
    click.echo(f"{health.outcome.value}: {health.details}")
    if health.outcome != JobOutcome.SUCCESS:
        raise VerificationFailedError(health.details)


def _echo_summary(summary: ReportSummary) -> None:
    for result in summary.per_test:
        click.echo(f"{result.outcome.value:<11} {result.name}: {result.details}")
    click.secho(
        f"{summary.overall_outcome.value} ({summary.success_rate_percent}% success)",
        fg=_VERDICT_COLORS[summary.overall_outcome],
        bold=True,
    )


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=list(argv), standalone_mode=False)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
