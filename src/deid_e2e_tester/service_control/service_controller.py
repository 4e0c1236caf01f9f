"""Windows service lifecycle control through ``sc.exe``."""

from __future__ import annotations

import logging
import re
import shlex
import subprocess
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from deid_e2e_tester.configuration.runtime_settings import ServiceSettings
from deid_e2e_tester.verification import JobOutcome

logger = logging.getLogger(__name__)

_STATE_PATTERN = re.compile(r"^\s*STATE\s*:\s*\d+\s+(\w+)", re.MULTILINE)
_SERVICE_DOES_NOT_EXIST = 1060
_ALREADY_RUNNING = 1056
_NOT_STARTED = 1062


class ServiceControlError(Exception):
    """Raised when the service control command cannot be executed."""


class ServiceStatus(str, Enum):
    """Service state as reported by the service control manager."""

    RUNNING = "RUNNING"
    STOPPED = "STOPPED"
    START_PENDING = "START_PENDING"
    STOP_PENDING = "STOP_PENDING"
    NOT_INSTALLED = "NOT_INSTALLED"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class CommandResult:
    """Exit code and captured output of one service control command."""

    returncode: int
    stdout: str


CommandRunner = Callable[[tuple[str, ...]], CommandResult]


class ServiceController(Protocol):
    """Opaque start/stop/status capability consumed by the run."""

    def start(self) -> None: ...

    def stop(self) -> None: ...

    def status(self) -> ServiceStatus: ...

    def wait_for_status(
        self, target: ServiceStatus, timeout_seconds: float, poll_interval_seconds: float
    ) -> ServiceStatus: ...


@dataclass(frozen=True)
class ServiceHealth:
    """Service health folded into the run summary."""

    outcome: JobOutcome
    status: ServiceStatus
    details: str


class WindowsServiceController:
    """Controls one Windows service with ``sc.exe``."""

    def __init__(
        self,
        service_name: str,
        *,
        run_command: CommandRunner | None = None,
        clock: Callable[[], float] | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self._service_name = service_name
        self._run_command = run_command or _run_sc_command
        self._clock = clock or time.monotonic
        self._sleep = sleep or time.sleep

    def status(self) -> ServiceStatus:
        result = self._run_command(("sc.exe", "query", self._service_name))
        if result.returncode == _SERVICE_DOES_NOT_EXIST:
            return ServiceStatus.NOT_INSTALLED
        if result.returncode != 0:
            raise ServiceControlError(
                f"sc.exe query {self._service_name} failed with exit code {result.returncode}"
            )
        match = _STATE_PATTERN.search(result.stdout)
        if match is None:
            return ServiceStatus.UNKNOWN
        try:
            return ServiceStatus(match.group(1).upper())
        except ValueError:
            return ServiceStatus.UNKNOWN

    def start(self) -> None:
        self._control("start", tolerated=_ALREADY_RUNNING)

    def stop(self) -> None:
        self._control("stop", tolerated=_NOT_STARTED)

    def wait_for_status(
        self, target: ServiceStatus, timeout_seconds: float, poll_interval_seconds: float
    ) -> ServiceStatus:
        """Poll until the service reaches ``target`` or the timeout elapses.

        Returns the last observed status.
        """
        deadline = self._clock() + timeout_seconds
        while True:
            current = self.status()
            now = self._clock()
            if current == target or now >= deadline:
                return current
            self._sleep(max(0.0, min(poll_interval_seconds, deadline - now)))

    def _control(self, verb: str, *, tolerated: int) -> None:
        result = self._run_command(("sc.exe", verb, self._service_name))
        if result.returncode in (0, tolerated):
            return
        if result.returncode == _SERVICE_DOES_NOT_EXIST:
            raise ServiceControlError(f"Service {self._service_name} is not installed.")
        raise ServiceControlError(
            f"sc.exe {verb} {self._service_name} failed with exit code {result.returncode}"
        )


def check_service_health(
    controller: ServiceController, settings: ServiceSettings
) -> ServiceHealth:
    """Classify the service state, starting a stopped service first when configured."""
    try:
        status = controller.status()
        if status == ServiceStatus.STOPPED and settings.start_if_stopped:
            logger.info("Starting stopped service %s", settings.name)
            controller.start()
            status = controller.wait_for_status(
                ServiceStatus.RUNNING,
                settings.status_timeout_seconds,
                settings.poll_interval_seconds,
            )
        elif status in (ServiceStatus.START_PENDING, ServiceStatus.STOP_PENDING):
            status = controller.wait_for_status(
                ServiceStatus.RUNNING,
                settings.status_timeout_seconds,
                settings.poll_interval_seconds,
            )
    except ServiceControlError as exc:
        return ServiceHealth(
            outcome=JobOutcome.ERROR,
            status=ServiceStatus.UNKNOWN,
            details=f"Service {settings.name} could not be queried: {exc}",
        )
    return ServiceHealth(
        outcome=_status_outcome(status),
        status=status,
        details=f"Service {settings.name} is {status.value}",
    )


def _status_outcome(status: ServiceStatus) -> JobOutcome:
    if status == ServiceStatus.RUNNING:
        return JobOutcome.SUCCESS
    if status in (ServiceStatus.START_PENDING, ServiceStatus.STOP_PENDING):
        return JobOutcome.WARNING
    if status in (ServiceStatus.STOPPED, ServiceStatus.NOT_INSTALLED):
        return JobOutcome.FAILED
    return JobOutcome.UNKNOWN


def _run_sc_command(command: tuple[str, ...]) -> CommandResult:
    """Run one service control command and wrap launch errors with domain-friendly messages."""
    try:
        completed = subprocess.run(
            list(command), capture_output=True, text=True, check=False
        )
    except (FileNotFoundError, PermissionError) as exc:
        command_text = shlex.join(command)
        raise ServiceControlError(f"Service control command not found: {command_text}") from exc
    return CommandResult(returncode=completed.returncode, stdout=completed.stdout or "")
