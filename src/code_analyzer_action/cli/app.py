"""Command-line interface implementation for the Code Analyzer action."""

from __future__ import annotations

import argparse
import json
import os
from pathlib import Path
from typing import Any, Mapping, Sequence

from ..adapters import ActionsRuntime, ResultsLoadError, ResultsLoader
from ..config import (
    ActionInputs,
    ActionSettings,
    GitHubContext,
    SettingsError,
    load_settings,
)
from ..models import SEVERITIES, Results, Violation
from ..reporting import SummaryRenderer
from ..service import ActionRunner
from .github_reporting import read_changed_files


def results_to_dict(results: Results) -> dict[str, Any]:
    """Machine readable view of the results, counts included."""

    counts = {f"sev{severity}": results.count_for(severity) for severity in SEVERITIES}
    return {
        "summary": {
            "total_violations": results.total_count,
            "counts": counts,
        },
        "violations": [_serialize_violation(v) for v in results.violations_by_severity()],
    }


def _serialize_violation(violation: Violation) -> dict[str, Any]:
    return {
        "severity": violation.severity,
        "engine": violation.engine,
        "rule": violation.rule,
        "message": violation.message,
        "tags": list(violation.tags),
        "primary_location_index": violation.primary_location_index,
        "locations": [
            {
                "file": location.file,
                "start_line": location.start_line,
                "start_column": location.start_column,
                "end_line": location.end_line,
                "end_column": location.end_column,
            }
            for location in violation.locations
        ],
    }


def build_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser."""

    parser = argparse.ArgumentParser(
        prog="code-analyzer-action",
        description="Run Salesforce Code Analyzer and publish its results to GitHub",
    )
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser(
        "run", help="Run Code Analyzer inside a GitHub Actions job and publish the results."
    )
    run_parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Optional YAML settings file overriding summary and artifact defaults.",
    )
    run_parser.add_argument(
        "--working-dir",
        type=Path,
        default=None,
        help="Directory the analyzer runs in and result paths are resolved against.",
    )

    summarize_parser = subparsers.add_parser(
        "summarize", help="Render the markdown summary for an existing results file."
    )
    summarize_parser.add_argument(
        "results", type=Path, help="Path to the Code Analyzer JSON results file."
    )
    summarize_parser.add_argument(
        "--changed-file",
        dest="changed_files",
        action="append",
        default=None,
        help="Path changed by the pull request. May be repeated.",
    )
    summarize_parser.add_argument(
        "--changed-files-from",
        type=Path,
        default=None,
        help="File listing changed paths, one per line.",
    )
    summarize_parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Optional YAML settings file overriding the summary size limit and title.",
    )
    summarize_parser.add_argument(
        "--format",
        choices=["markdown", "json"],
        default="markdown",
        help="Output format for the summary.",
    )
    summarize_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the summary to this file instead of standard output.",
    )

    return parser


def create_runner(
    *,
    environ: Mapping[str, str],
    settings: ActionSettings,
    working_dir: Path | None = None,
) -> ActionRunner:
    """Create an action runner wired to the real runner environment."""

    context = GitHubContext.from_env(environ)
    runtime = ActionsRuntime(output_path=context.output_path, summary_path=context.summary_path)
    return ActionRunner(
        inputs=ActionInputs.from_env(environ),
        context=context,
        runtime=runtime,
        settings=settings,
        working_dir=working_dir,
    )


def _handle_run(args: argparse.Namespace) -> int:
    try:
        settings = load_settings(args.settings)
        runner = create_runner(
            environ=os.environ,
            settings=settings,
            working_dir=args.working_dir.resolve() if args.working_dir else None,
        )
    except (SettingsError, ValueError) as exc:
        print(f"Error: {exc}")
        return 2

    return runner.run()


def _handle_summarize(args: argparse.Namespace) -> int:
    try:
        settings = load_settings(args.settings)
        results = ResultsLoader().load(args.results)
        changed_files = list(args.changed_files or [])
        changed_files.extend(read_changed_files(args.changed_files_from))
        renderer = SummaryRenderer(settings.max_summary_bytes, title=settings.report_title)
    except (SettingsError, ResultsLoadError, OSError, ValueError) as exc:
        print(f"Error: {exc}")
        return 2

    if args.format == "json":
        output = json.dumps(results_to_dict(results), indent=2)
    else:
        output = renderer.render(results, changed_files)

    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(output, encoding="utf-8")
    else:
        print(output)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point used by tests and the ``python -m`` invocation."""

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "run":
        return _handle_run(args)
    if args.command == "summarize":
        return _handle_summarize(args)

    parser.print_help()
    return 0


def run() -> None:  # pragma: no cover - thin wrapper for module execution
    """Execute the CLI and exit with the produced status code."""

    raise SystemExit(main())


if __name__ == "__main__":  # pragma: no cover - module execution guard
    run()
