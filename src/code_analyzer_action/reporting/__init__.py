"""Report rendering for analyzer results."""

from .summary import (
    MAX_SUMMARY_BYTES,
    TRUNCATION_RESERVE_BYTES,
    SummaryRenderer,
    render_summary,
)

__all__ = [
    "MAX_SUMMARY_BYTES",
    "TRUNCATION_RESERVE_BYTES",
    "SummaryRenderer",
    "render_summary",
]
