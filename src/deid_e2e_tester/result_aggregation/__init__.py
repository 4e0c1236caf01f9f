"""Result aggregation domain exports."""

from .result_aggregator import aggregate, success_rate_percent
from .summary_models import OutcomeCounts, OverallOutcome, ReportSummary

__all__ = [
    "OutcomeCounts",
    "OverallOutcome",
    "ReportSummary",
    "aggregate",
    "success_rate_percent",
]
