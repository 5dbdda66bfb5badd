"""Run the Salesforce CLI and its code-analyzer plugin."""

from __future__ import annotations

import json
import os
import re
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Tuple

COMMAND_NOT_FOUND_EXIT_CODE = 127

_VERSION_PATTERN = re.compile(r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:[-.]?([0-9A-Za-z.-]+))?$")


class CommandError(RuntimeError):
    """Raised when the output of a CLI command cannot be interpreted."""


@dataclass(frozen=True, slots=True)
class CommandOutput:
    """Exit code and captured streams of a finished command."""

    exit_code: int
    stdout: str = ""
    stderr: str = ""


def parse_version(version: str) -> Tuple[Tuple[int, int, int], Tuple[Any, ...]]:
    """Return a sortable key for a semantic version string.

    Release versions sort after any of their pre-releases, so
    ``5.0.0-beta.0 < 5.0.0-beta.1 < 5.0.0``.
    """

    match = _VERSION_PATTERN.match(version.strip())
    if not match:
        raise CommandError(f"Unrecognized version string: {version!r}")

    major, minor, patch, prerelease = match.groups()
    release = (int(major), int(minor or 0), int(patch or 0))
    if not prerelease:
        return release, (1,)

    identifiers: List[Tuple[int, Any]] = []
    for part in prerelease.replace("-", ".").split("."):
        if part.isdigit():
            identifiers.append((0, int(part)))
        elif part:
            identifiers.append((1, part))
    return release, (0, tuple(identifiers))


class CodeAnalyzerExecutor:
    """Execute ``sf`` commands used to prepare and run Code Analyzer.

    Commands run in ``cwd`` when given, so relative output files land there.
    """

    def __init__(
        self,
        *,
        sf_bin: str = "sf",
        npm_bin: str = "npm",
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[str | os.PathLike[str]] = None,
    ) -> None:
        self.sf_bin = sf_bin
        self.npm_bin = npm_bin
        self.env = dict(env or {})
        self.cwd = Path(cwd) if cwd is not None else None

    # ------------------------------------------------------------------
    def is_salesforce_cli_installed(self) -> bool:
        return self._run_command([self.sf_bin, "--version"], silent=True).exit_code == 0

    def install_salesforce_cli(self) -> bool:
        result = self._run_command([self.npm_bin, "install", "-g", "@salesforce/cli@latest"])
        return result.exit_code == 0

    def is_minimum_plugin_installed(self, minimum_version: str) -> bool:
        """Return ``True`` when the installed code-analyzer plugin is recent enough."""

        result = self._run_command(
            [self.sf_bin, "plugins", "inspect", "code-analyzer", "--json"], silent=True
        )
        if result.exit_code != 0:
            return False

        installed = self._installed_version(result.stdout)
        if installed is None:
            return False
        try:
            return parse_version(installed) >= parse_version(minimum_version)
        except CommandError:
            return False

    def install_code_analyzer_plugin(self) -> bool:
        result = self._run_command([self.sf_bin, "plugins", "install", "code-analyzer@latest"])
        return result.exit_code == 0

    def run_code_analyzer(self, arguments: str) -> CommandOutput:
        """Run ``sf code-analyzer run`` with the user supplied arguments."""

        return self._run_command([self.sf_bin, "code-analyzer", "run", *shlex.split(arguments)])

    # ------------------------------------------------------------------
    def _installed_version(self, stdout: str) -> Optional[str]:
        try:
            data = json.loads(stdout or "null")
        except json.JSONDecodeError:
            return None

        # `--json` wraps the plugin list in a "result" envelope on newer CLIs.
        if isinstance(data, Mapping) and "result" in data:
            data = data["result"]
        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, Mapping):
            return None

        version = data.get("version")
        return str(version) if version else None

    # Command runner -------------------------------------------------------------
    def _run_command(self, args: Sequence[str], *, silent: bool = False) -> CommandOutput:
        env = os.environ.copy()
        env.update(self.env)
        try:
            completed = subprocess.run(  # noqa: S603 - deliberate invocation of external command
                list(args),
                cwd=self.cwd,
                env=env,
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            return CommandOutput(
                exit_code=COMMAND_NOT_FOUND_EXIT_CODE,
                stdout="",
                stderr=str(exc),
            )

        if not silent:
            if completed.stdout:
                print(completed.stdout, end="" if completed.stdout.endswith("\n") else "\n")
            if completed.stderr:
                print(completed.stderr, end="" if completed.stderr.endswith("\n") else "\n")

        return CommandOutput(
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
