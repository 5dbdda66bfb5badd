"""Load Code Analyzer JSON results files into :class:`Results`."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, List, Mapping, Optional, Tuple

from ..models import Results, Violation, ViolationLocation
from ..models.violation import MAX_SEVERITY, MIN_SEVERITY


class ResultsLoadError(RuntimeError):
    """Base class for failures while loading analyzer results."""


class ResultsNotFoundError(ResultsLoadError):
    """Raised when the results file does not exist."""


class MalformedInputError(ResultsLoadError):
    """Raised when the results file does not match the expected schema."""


class ResultsLoader:
    """Parse the ``violations`` section of a Code Analyzer v5 JSON results file."""

    def load(self, path: str | os.PathLike[str]) -> Results:
        """Read ``path`` and return the parsed results."""

        results_path = Path(path)
        if not results_path.exists():
            raise ResultsNotFoundError(f"Results file not found: {results_path}")

        try:
            raw = results_path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as exc:
            raise MalformedInputError(f"Failed to read results file {results_path}: {exc}") from exc

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MalformedInputError(
                f"Invalid JSON in results file {results_path}: {exc.msg}"
            ) from exc

        try:
            return self.parse(data)
        except MalformedInputError as exc:
            raise MalformedInputError(f"{results_path}: {exc}") from exc

    # ------------------------------------------------------------------
    def parse(self, data: Any) -> Results:
        """Build results from an already decoded JSON document."""

        if not isinstance(data, Mapping):
            raise MalformedInputError("Results JSON must be an object")

        entries = data.get("violations")
        if entries is None:
            raise MalformedInputError("Results JSON is missing the 'violations' list")
        if not isinstance(entries, list):
            raise MalformedInputError("'violations' must be a list")

        violations = [self._parse_violation(index, entry) for index, entry in enumerate(entries)]
        return Results(violations)

    # ------------------------------------------------------------------
    def _parse_violation(self, index: int, entry: Any) -> Violation:
        if not isinstance(entry, Mapping):
            raise MalformedInputError(f"violations[{index}] must be an object")

        severity = entry.get("severity")
        if not _is_int(severity):
            raise MalformedInputError(f"violations[{index}].severity must be an integer")
        if not MIN_SEVERITY <= severity <= MAX_SEVERITY:
            raise MalformedInputError(
                f"violations[{index}].severity must be between {MIN_SEVERITY} and "
                f"{MAX_SEVERITY}, got {severity}"
            )

        engine = _require_str(entry, "engine", index)
        rule = _require_str(entry, "rule", index)
        message = _require_str(entry, "message", index)

        raw_locations = entry.get("locations")
        if not isinstance(raw_locations, list) or not raw_locations:
            raise MalformedInputError(f"violations[{index}].locations must be a non-empty list")
        locations = tuple(
            self._parse_location(index, position, location)
            for position, location in enumerate(raw_locations)
        )

        primary = entry.get("primaryLocationIndex", 0)
        if not _is_int(primary) or not 0 <= primary < len(locations):
            raise MalformedInputError(
                f"violations[{index}].primaryLocationIndex must index into its locations"
            )

        return Violation(
            severity=severity,
            engine=engine,
            rule=rule,
            message=message,
            locations=locations,
            primary_location_index=primary,
            tags=_string_tuple(entry.get("tags"), f"violations[{index}].tags"),
            resources=_string_tuple(entry.get("resources"), f"violations[{index}].resources"),
        )

    def _parse_location(self, index: int, position: int, entry: Any) -> ViolationLocation:
        where = f"violations[{index}].locations[{position}]"
        if not isinstance(entry, Mapping):
            raise MalformedInputError(f"{where} must be an object")

        file_path = entry.get("file")
        if file_path is not None and not isinstance(file_path, str):
            raise MalformedInputError(f"{where}.file must be a string")

        comment = entry.get("comment")
        if comment is not None and not isinstance(comment, str):
            raise MalformedInputError(f"{where}.comment must be a string")

        start_line, start_column, end_line, end_column = (
            _optional_int(entry, key, where)
            for key in ("startLine", "startColumn", "endLine", "endColumn")
        )

        return ViolationLocation(
            file=file_path or None,
            start_line=start_line,
            start_column=start_column,
            end_line=end_line,
            end_column=end_column,
            comment=comment,
        )


def load_results(path: str | os.PathLike[str]) -> Results:
    """Convenience wrapper around :meth:`ResultsLoader.load`."""

    return ResultsLoader().load(path)


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _require_str(entry: Mapping[str, Any], key: str, index: int) -> str:
    value = entry.get(key)
    if not isinstance(value, str):
        raise MalformedInputError(f"violations[{index}].{key} must be a string")
    return value


def _optional_int(entry: Mapping[str, Any], key: str, where: str) -> Optional[int]:
    value = entry.get(key)
    if value is None:
        return None
    if not _is_int(value):
        raise MalformedInputError(f"{where}.{key} must be an integer")
    return value


def _string_tuple(value: Any, where: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise MalformedInputError(f"{where} must be a list of strings")
    items: List[str] = list(value)
    return tuple(items)
