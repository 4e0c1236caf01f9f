"""Run execution domain exports."""

from .run_contracts import RunOutcome, RunRequest
from .verification_run_use_case import (
    RunExecutionError,
    execute_verification_run,
    regenerate_reports,
)

__all__ = [
    "RunRequest",
    "RunOutcome",
    "RunExecutionError",
    "execute_verification_run",
    "regenerate_reports",
]
