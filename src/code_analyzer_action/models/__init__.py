"""Data models for analyzer violations and run results."""

from .results import SEVERITIES, Results
from .violation import SEVERITY_LABELS, Violation, ViolationLocation

__all__ = [
    "Results",
    "SEVERITIES",
    "SEVERITY_LABELS",
    "Violation",
    "ViolationLocation",
]
