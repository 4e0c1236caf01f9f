"""Job waiting domain exports."""

from .job_waiter import JobWaiter, WaitObservation

__all__ = ["JobWaiter", "WaitObservation"]
