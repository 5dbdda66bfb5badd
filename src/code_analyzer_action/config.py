"""Action inputs, GitHub job context and optional YAML settings."""

from __future__ import annotations

import json
import shlex
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .constants import DEFAULT_ARTIFACT_NAME, DEFAULT_RESULTS_FILE, MIN_CODE_ANALYZER_VERSION_REQUIRED
from .reporting.summary import DEFAULT_TITLE, MAX_SUMMARY_BYTES


class SettingsError(RuntimeError):
    """Raised when the settings file cannot be loaded or has invalid values."""


def _input(environ: Mapping[str, str], name: str, default: str = "") -> str:
    # The runner exposes `with:` inputs as INPUT_<NAME> keeping hyphens.
    for key in (f"INPUT_{name.upper()}", f"INPUT_{name.upper().replace('-', '_')}"):
        value = environ.get(key)
        if value is not None and value.strip():
            return value.strip()
    return default


@dataclass(slots=True)
class ActionInputs:
    """Inputs declared by the action."""

    run_arguments: str = ""
    results_artifact_name: str = DEFAULT_ARTIFACT_NAME
    github_token: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "ActionInputs":
        return cls(
            run_arguments=_input(environ, "run-arguments"),
            results_artifact_name=_input(environ, "results-artifact-name", DEFAULT_ARTIFACT_NAME),
            github_token=_input(environ, "github-token") or None,
        )


@dataclass(slots=True)
class GitHubContext:
    """Job identity and file locations provided by the Actions runner."""

    repository: str = ""
    server_url: str = "https://github.com"
    run_id: str = ""
    run_attempt: str = "1"
    job: str = ""
    pull_request_number: Optional[int] = None
    matrix: Optional[Dict[str, Any]] = None
    output_path: Optional[Path] = None
    summary_path: Optional[Path] = None

    @property
    def is_pull_request(self) -> bool:
        return self.pull_request_number is not None

    @property
    def job_name(self) -> str:
        """Display name of the job, including matrix values when present."""

        if not self.matrix:
            return self.job
        values = ", ".join(str(value) for value in self.matrix.values())
        return f"{self.job} ({values})"

    @classmethod
    def from_env(cls, environ: Mapping[str, str]) -> "GitHubContext":
        output = environ.get("GITHUB_OUTPUT")
        summary = environ.get("GITHUB_STEP_SUMMARY")
        return cls(
            repository=environ.get("GITHUB_REPOSITORY", ""),
            server_url=environ.get("GITHUB_SERVER_URL") or "https://github.com",
            run_id=environ.get("GITHUB_RUN_ID", ""),
            run_attempt=environ.get("GITHUB_RUN_ATTEMPT") or "1",
            job=environ.get("GITHUB_JOB", ""),
            pull_request_number=_pull_request_number(environ.get("GITHUB_EVENT_PATH")),
            matrix=_parse_matrix(environ.get("matrix")),
            output_path=Path(output) if output else None,
            summary_path=Path(summary) if summary else None,
        )


def _pull_request_number(event_path: Optional[str]) -> Optional[int]:
    if not event_path:
        return None
    path = Path(event_path)
    if not path.exists():
        return None

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise SettingsError(f"Failed to read GitHub event payload {path}") from exc

    if not isinstance(payload, Mapping):
        return None
    pull_request = payload.get("pull_request")
    if not isinstance(pull_request, Mapping):
        return None
    number = pull_request.get("number")
    if isinstance(number, int) and not isinstance(number, bool):
        return number
    return None


def _parse_matrix(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    if not raw or not raw.strip():
        return None
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SettingsError("The 'matrix' environment variable must contain JSON") from exc
    if not isinstance(data, Mapping):
        return None
    return dict(data)


class RunArguments:
    """Inspect the ``run-arguments`` input passed through to ``sf code-analyzer run``."""

    def __init__(self, text: str) -> None:
        self.text = text
        try:
            self.tokens: List[str] = shlex.split(text)
        except ValueError as exc:
            raise SettingsError(f"Unable to parse run arguments: {exc}") from exc

    def values_for(self, *flags: str) -> List[str]:
        """Return every value given to any of ``flags``, splitting comma lists."""

        raw_values: List[str] = []
        for index, token in enumerate(self.tokens):
            if token in flags:
                if index + 1 < len(self.tokens) and not self.tokens[index + 1].startswith("-"):
                    raw_values.append(self.tokens[index + 1])
                continue
            for flag in flags:
                if token.startswith(f"{flag}="):
                    raw_values.append(token[len(flag) + 1 :])

        values: List[str] = []
        for raw in raw_values:
            values.extend(part.strip() for part in raw.split(",") if part.strip())
        return values

    def contains_flag(self, *flags: str) -> bool:
        return any(
            token in flags or any(token.startswith(f"{flag}=") for flag in flags)
            for token in self.tokens
        )


@dataclass(slots=True)
class ActionSettings:
    """Tunables read from an optional settings file."""

    max_summary_bytes: int = MAX_SUMMARY_BYTES
    results_file: str = DEFAULT_RESULTS_FILE
    artifact_dir: str = ".code-analyzer-artifacts"
    minimum_plugin_version: str = MIN_CODE_ANALYZER_VERSION_REQUIRED
    report_title: str = DEFAULT_TITLE
    extra: Dict[str, Any] = field(default_factory=dict)


def load_settings(path: Path | str | None) -> ActionSettings:
    """Load :class:`ActionSettings` from a YAML (or JSON) file."""

    if path is None:
        return ActionSettings()

    settings_path = Path(path)
    if not settings_path.exists():
        raise SettingsError(f"Settings file not found: {settings_path}")

    try:
        content = settings_path.read_text(encoding="utf-8")
    except OSError as exc:  # pragma: no cover - filesystem errors surfaced to caller
        raise SettingsError(f"Failed to read settings file {settings_path}") from exc

    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as exc:
        raise SettingsError(f"Invalid YAML in settings file {settings_path}") from exc

    if not isinstance(data, Mapping):
        raise SettingsError(f"Settings file must be a mapping: {settings_path}")

    settings = ActionSettings()
    known = {item.name: item for item in fields(ActionSettings) if item.name != "extra"}
    for raw_key, value in data.items():
        key = str(raw_key).strip().replace("-", "_")
        if key not in known:
            settings.extra[str(raw_key)] = value
            continue

        expected = int if key == "max_summary_bytes" else str
        if isinstance(value, bool) or not isinstance(value, expected):
            raise SettingsError(
                f"Setting '{raw_key}' must be of type {expected.__name__} in {settings_path}"
            )
        if expected is str:
            value = value.strip()
            if not value:
                raise SettingsError(f"Setting '{raw_key}' must not be empty in {settings_path}")
        setattr(settings, key, value)

    if settings.max_summary_bytes > MAX_SUMMARY_BYTES:
        raise SettingsError(
            f"max_summary_bytes cannot exceed the GitHub limit of {MAX_SUMMARY_BYTES} bytes"
        )

    return settings
