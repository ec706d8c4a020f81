"""Analysis utilities for runs."""

from autoflow.analysis.run_summary import (
    RunSummary,
    StepSummary,
    format_summary,
    run_summary,
)

__all__ = [
    "RunSummary",
    "StepSummary",
    "format_summary",
    "run_summary",
]
