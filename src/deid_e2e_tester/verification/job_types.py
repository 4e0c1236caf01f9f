"""Per-job-type log pattern table."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from deid_e2e_tester.log_matching import ScanWindow

_SYNC_SUCCESS = r"Job ID: {job_id},.*successful 1, failed 0, completionPercentage: 100%"
_BULK_SUCCESS = r"Job ID: {job_id},.*completionPercentage: 100%"
_BLOCK_LIST_SUCCESS = r"for jobID {job_id} took"
_FAILURE_COUNT = r"\bfailed [1-9]\d*"
_JOB_FAILURE_COUNT = r"Job ID: {job_id},.*\bfailed [1-9]\d*"


@dataclass(frozen=True)
class JobTypeDefinition:
    """Patterns and evidence requirements for one kind of service job.

    Patterns are regular expressions; ``{job_id}`` is replaced by the escaped
    job identifier, or by a numeric wildcard when the id is not known.
    """

    name: str
    success_pattern: str
    failure_pattern: str
    requires_directory_evidence: bool = False
    scan_window: ScanWindow = field(default_factory=ScanWindow.full_file)
    minimum_lines: int = 1


BUILTIN_JOB_TYPES: Mapping[str, JobTypeDefinition] = {
    definition.name: definition
    for definition in (
        JobTypeDefinition(
            name="rest_sync",
            success_pattern=_SYNC_SUCCESS,
            failure_pattern=_JOB_FAILURE_COUNT,
        ),
        JobTypeDefinition(
            name="watch_folder",
            success_pattern=_SYNC_SUCCESS,
            failure_pattern=_JOB_FAILURE_COUNT,
            requires_directory_evidence=True,
        ),
        JobTypeDefinition(
            name="block_list",
            success_pattern=_BLOCK_LIST_SUCCESS,
            failure_pattern=_FAILURE_COUNT,
        ),
        JobTypeDefinition(
            name="part10",
            success_pattern=_BULK_SUCCESS,
            failure_pattern=_JOB_FAILURE_COUNT,
            requires_directory_evidence=True,
        ),
    )
}
