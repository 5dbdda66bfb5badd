"""Run Salesforce Code Analyzer in GitHub Actions and publish size-bounded reports."""

from .adapters import MalformedInputError, ResultsLoadError, ResultsNotFoundError, load_results
from .models import Results, Violation, ViolationLocation
from .reporting import MAX_SUMMARY_BYTES, SummaryRenderer, render_summary

__all__ = [
    "MAX_SUMMARY_BYTES",
    "MalformedInputError",
    "Results",
    "ResultsLoadError",
    "ResultsNotFoundError",
    "SummaryRenderer",
    "Violation",
    "ViolationLocation",
    "load_results",
    "render_summary",
]
