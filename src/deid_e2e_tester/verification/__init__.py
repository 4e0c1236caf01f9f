"""Verification domain exports."""

from .job_outcomes import (
    Classification,
    JobOutcome,
    LogEvidence,
    TestEvidence,
    TestResult,
)
from .job_types import BUILTIN_JOB_TYPES, JobTypeDefinition
from .verification_engine import classify, verify_job

__all__ = [
    "BUILTIN_JOB_TYPES",
    "Classification",
    "JobOutcome",
    "JobTypeDefinition",
    "LogEvidence",
    "TestEvidence",
    "TestResult",
    "classify",
    "verify_job",
]
