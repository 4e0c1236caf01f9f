"""Configuration domain entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from deid_e2e_tester.verification import JobTypeDefinition

REPORT_FORMATS: tuple[str, ...] = ("html", "json", "xlsx")


@dataclass(frozen=True)
class ServiceSettings:
    """Windows service under test."""

    name: str
    status_timeout_seconds: int
    poll_interval_seconds: int
    start_if_stopped: bool


@dataclass(frozen=True)
class LogSettings:
    """Shared service log observed by every test."""

    path: Path
    encoding: str


@dataclass(frozen=True)
class ReportSettings:
    """Report destinations."""

    output_dir: Path
    formats: tuple[str, ...]
    title: str


@dataclass(frozen=True)
class CleanupSettings:
    """Workspace preparation performed before a live run."""

    truncate_log: bool = False
    clear_directories: tuple[Path, ...] = ()


@dataclass(frozen=True)
class StimulusSettings:  # pylint: disable=too-many-instance-attributes
    """How one test triggers the service."""

    kind: str
    source: Path | None = None
    target_directory: Path | None = None
    method: str = "POST"
    url: str | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    body: str | None = None
    json_body: object | None = None
    job_id_field: str | None = None
    repeat: int = 1
    timeout_seconds: int = 30


@dataclass(frozen=True)
class TestDefinition:
    """One configured verification test."""

    __test__ = False

    name: str
    job_type: JobTypeDefinition
    job_id: str | None
    stimulus: StimulusSettings
    output_directory: Path | None
    timeout_seconds: int
    poll_interval_seconds: int
    enabled: bool = True


@dataclass(frozen=True)
class HarnessConfiguration:
    """Top-level configuration aggregate."""

    path: Path
    service: ServiceSettings
    log: LogSettings
    report: ReportSettings
    cleanup: CleanupSettings
    job_types: Mapping[str, JobTypeDefinition]
    tests: tuple[TestDefinition, ...]
