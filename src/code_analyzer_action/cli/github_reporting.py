"""Helpers for publishing analyzer violations to GitHub Actions surfaces."""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Iterable, List, Sequence

from ..adapters import ResultsLoadError, format_command, load_results
from ..models import Results, Violation
from ..reporting import MAX_SUMMARY_BYTES, SummaryRenderer

ANNOTATION_LEVELS = {
    1: "error",
    2: "error",
    3: "warning",
    4: "notice",
    5: "notice",
}


def format_annotation(violation: Violation) -> str:
    """Render a workflow command annotation for ``violation``."""

    level = ANNOTATION_LEVELS.get(violation.severity, "notice")
    location = violation.primary_location

    properties: dict[str, object] = {}
    if location.file:
        properties["file"] = location.file
        if location.start_line is not None:
            properties["line"] = location.start_line
        if location.end_line is not None and location.end_line != location.start_line:
            properties["endLine"] = location.end_line
        if location.start_column is not None:
            properties["col"] = location.start_column
        if location.end_column is not None and location.end_column != location.start_column:
            properties["endColumn"] = location.end_column
    properties["title"] = f"Sev{violation.severity} {violation.engine}:{violation.rule}"

    message = violation.message.strip() or "Violation reported without message."
    return format_command(level, message, properties)


def iter_annotations(results: Results, *, limit: int | None = None) -> Iterable[str]:
    """Generate annotations, most severe violations first."""

    violations = results.violations_by_severity()
    if limit is not None:
        violations = violations[:limit]
    for violation in violations:
        yield format_annotation(violation)


def read_changed_files(path: Path | None) -> List[str]:
    """Read one changed file path per line, ignoring blanks and ``#`` comments."""

    if path is None:
        return []
    changed: List[str] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            changed.append(stripped)
    return changed


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be zero or greater: {value}")
    return number


def _write_summary(content: str, destination: Path | None) -> None:
    if destination is None:
        return

    destination.parent.mkdir(parents=True, exist_ok=True)
    with destination.open("a", encoding="utf-8") as handle:
        handle.write(content)


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="code-analyzer-report",
        description="Publish Code Analyzer violations as GitHub job summary and annotations.",
    )
    parser.add_argument("results", type=Path, help="Path to the Code Analyzer JSON results file.")
    parser.add_argument(
        "--summary-path",
        type=Path,
        default=None,
        help="Optional explicit path for the GitHub job summary output.",
    )
    parser.add_argument(
        "--changed-files",
        type=Path,
        default=None,
        help="File listing the paths changed by the pull request, one per line.",
    )
    parser.add_argument(
        "--max-annotations",
        type=_non_negative_int,
        default=None,
        help="Emit at most this many annotations (most severe first).",
    )

    args = parser.parse_args(argv)

    summary_path = args.summary_path
    if summary_path is None:
        summary_env = os.getenv("GITHUB_STEP_SUMMARY")
        if summary_env:
            summary_path = Path(summary_env)

    try:
        results = load_results(args.results)
        changed_files = read_changed_files(args.changed_files)
    except (ResultsLoadError, OSError) as exc:
        print(f"Error: {exc}")
        return 1

    _write_summary(SummaryRenderer(MAX_SUMMARY_BYTES).render(results, changed_files), summary_path)

    for command in iter_annotations(results, limit=args.max_annotations):
        print(command)

    return 0


def run() -> None:  # pragma: no cover - wrapper for console entry point
    raise SystemExit(main())


if __name__ == "__main__":  # pragma: no cover - module execution guard
    run()
