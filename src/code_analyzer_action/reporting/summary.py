"""Markdown job summary rendering within the GitHub step summary size limit."""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple
from urllib.parse import quote

from ..models import SEVERITIES, SEVERITY_LABELS, Results, Violation

# GitHub rejects step summaries larger than 1 MiB.
MAX_SUMMARY_BYTES = 1024 * 1024

# Space kept free in every table for its truncation notice.
TRUNCATION_RESERVE_BYTES = 512

DEFAULT_TITLE = "Salesforce Code Analyzer Results"
ALL_VIOLATIONS_CAPTION = "Violations"
CHANGED_FILES_CAPTION = "Violations in files changed by this pull request"
OTHER_VIOLATIONS_CAPTION = "Other violations"

TABLE_COLUMNS = ("Severity", "Engine", "Rule", "Location", "Message")

_LARGEST_COUNT = 10**15

# Characters that may stay unencoded in a link target inside a table cell.
_URL_SAFE = ":/?#[]@!$&'*+,;=%~"


def _byte_len(text: str) -> int:
    return len(text.encode("utf-8"))


def _escape_cell(text: str) -> str:
    normalized = text.replace("\r\n", "\n").replace("\r", "\n").strip()
    return normalized.replace("|", "\\|").replace("\n", "<br>")


class SummaryRenderer:
    """Render :class:`Results` as a size-bounded markdown summary.

    The summary starts with the aggregate counts and is followed by at most
    two tables. When changed files are supplied and violations exist both in
    and outside of them, violations in changed files get their own table
    ahead of the rest. Otherwise a single table lists every violation.

    Every byte emitted comes out of one pool of ``max_bytes``. Rows are added
    in severity order until the next row would leave less than
    ``TRUNCATION_RESERVE_BYTES`` free, at which point the table is closed
    with a notice stating how many of its violations were left out and no
    further table is rendered. A table whose heading no longer fits is
    replaced by a notice naming it and counting its violations.
    """

    def __init__(self, max_bytes: int = MAX_SUMMARY_BYTES, *, title: str = DEFAULT_TITLE) -> None:
        self.max_bytes = max_bytes
        self.title = title

        worst_case = (
            _byte_len(self._render_header(_LARGEST_COUNT, {s: _LARGEST_COUNT for s in SEVERITIES}))
            + _byte_len(self._table_prefix(CHANGED_FILES_CAPTION))
            + TRUNCATION_RESERVE_BYTES
        )
        if max_bytes < worst_case:
            raise ValueError(
                f"Summary budget of {max_bytes} bytes is too small; at least {worst_case} "
                "bytes are needed for the header and one table"
            )
        longest_notice = max(
            _byte_len(self._truncation_notice(_LARGEST_COUNT)),
            _byte_len(self._omitted_table_notice(OTHER_VIOLATIONS_CAPTION, _LARGEST_COUNT)),
        )
        if longest_notice > TRUNCATION_RESERVE_BYTES:
            raise ValueError("Truncation notice does not fit in the reserved space")

    # ------------------------------------------------------------------
    def render(self, results: Results, changed_files: Iterable[str] = ()) -> str:
        """Return the markdown summary for ``results``."""

        header = self._render_header(results.total_count, results.counts_by_severity())
        parts: List[str] = [header]
        used = _byte_len(header)

        for caption, violations in self._plan_tables(results, changed_files):
            prefix = self._table_prefix(caption)
            prefix_bytes = _byte_len(prefix)
            if used + prefix_bytes + TRUNCATION_RESERVE_BYTES > self.max_bytes:
                # The previous table ended untruncated, so its reserve is still free.
                parts.append(self._omitted_table_notice(caption, len(violations)))
                break

            parts.append(prefix)
            used += prefix_bytes

            shown = 0
            for violation in violations:
                row = self._render_row(violation)
                row_bytes = _byte_len(row)
                if used + row_bytes + TRUNCATION_RESERVE_BYTES > self.max_bytes:
                    break
                parts.append(row)
                used += row_bytes
                shown += 1

            omitted = len(violations) - shown
            if omitted:
                notice = self._truncation_notice(omitted)
                parts.append(notice)
                used += _byte_len(notice)
                break

        return "".join(parts)

    # ------------------------------------------------------------------
    def _plan_tables(
        self, results: Results, changed_files: Iterable[str]
    ) -> List[Tuple[str, Sequence[Violation]]]:
        changed = set(changed_files)
        if not changed:
            tables: List[Tuple[str, Sequence[Violation]]] = [
                (ALL_VIOLATIONS_CAPTION, results.violations_by_severity())
            ]
        else:
            in_changed, others = results.partition(changed)
            if in_changed and others:
                tables = [
                    (CHANGED_FILES_CAPTION, in_changed),
                    (OTHER_VIOLATIONS_CAPTION, others),
                ]
            else:
                tables = [(ALL_VIOLATIONS_CAPTION, in_changed or others)]

        return [(caption, violations) for caption, violations in tables if violations]

    def _render_header(self, total: int, counts: dict[int, int]) -> str:
        lines = [
            f"## {self.title}",
            "",
            f"**Total violations:** {total}",
            "",
            "| Severity | Violations |",
            "| --- | ---: |",
        ]
        for severity in SEVERITIES:
            lines.append(f"| {severity} ({SEVERITY_LABELS[severity]}) | {counts.get(severity, 0)} |")
        lines.append("")
        return "\n".join(lines)

    def _table_prefix(self, caption: str) -> str:
        lines = [
            "",
            f"### {caption}",
            "",
            "| " + " | ".join(TABLE_COLUMNS) + " |",
            "|" + " --- |" * len(TABLE_COLUMNS),
            "",
        ]
        return "\n".join(lines)

    def _render_row(self, violation: Violation) -> str:
        rule = _escape_cell(violation.rule)
        if violation.resources:
            rule = f"[{rule}]({quote(violation.resources[0].strip(), safe=_URL_SAFE)})"

        cells = (
            violation.severity_label,
            _escape_cell(violation.engine),
            rule,
            self._location_cell(violation),
            _escape_cell(violation.message),
        )
        return "| " + " | ".join(cells) + " |\n"

    def _location_cell(self, violation: Violation) -> str:
        primary = violation.primary_location
        ordered = [primary] + [
            location
            for position, location in enumerate(violation.locations)
            if position != violation.primary_location_index
        ]
        labels = [_escape_cell(location.label) for location in ordered if location.label]
        if not labels:
            return "-"
        return "<br>".join(f"`{label}`" for label in labels)

    def _truncation_notice(self, omitted: int) -> str:
        return (
            f"\n> **Note:** {omitted} more violation(s) were left out of this table to keep "
            f"the summary under {self.max_bytes} bytes. Download the results artifact to "
            "see every violation.\n"
        )

    def _omitted_table_notice(self, caption: str, omitted: int) -> str:
        return (
            f"\n> **Note:** {omitted} more violation(s) from the \"{caption}\" table were left "
            f"out to keep the summary under {self.max_bytes} bytes. Download the results "
            "artifact to see every violation.\n"
        )


def render_summary(
    results: Results,
    changed_files: Iterable[str] = (),
    *,
    max_bytes: int = MAX_SUMMARY_BYTES,
    title: str = DEFAULT_TITLE,
) -> str:
    """Render a summary with a one-off :class:`SummaryRenderer`."""

    return SummaryRenderer(max_bytes, title=title).render(results, changed_files)
