"""GitHub REST API access through the ``gh`` CLI."""

from __future__ import annotations

import json
import os
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

from ..constants import failed_to_read_jobs

PER_PAGE = 100


class GitHubApiError(RuntimeError):
    """Raised when a GitHub API request fails or returns unexpected data."""


class GitHubClient:
    """Minimal client for the pull request and workflow run endpoints."""

    def __init__(
        self,
        token: str,
        repository: str,
        *,
        server_url: str = "https://github.com",
        gh_bin: str = "gh",
        warn: Optional[Callable[[str], None]] = None,
    ) -> None:
        if "/" not in repository:
            raise GitHubApiError(f"Repository must be in owner/name form: {repository!r}")
        self.token = token
        self.repository = repository
        self.server_url = server_url.rstrip("/")
        self.gh_bin = gh_bin
        self._warn = warn

    # ------------------------------------------------------------------
    def list_changed_files(self, pr_number: int) -> List[str]:
        """Return the paths of every file touched by the pull request."""

        pages = self._api(
            [
                "--paginate",
                "--slurp",
                f"repos/{self.repository}/pulls/{pr_number}/files?per_page={PER_PAGE}",
            ]
        )
        if not isinstance(pages, list):
            raise GitHubApiError("Unexpected response while listing pull request files")

        changed: List[str] = []
        for page in pages:
            entries = page if isinstance(page, list) else [page]
            for entry in entries:
                if isinstance(entry, dict) and isinstance(entry.get("filename"), str):
                    changed.append(entry["filename"])
        return changed

    def create_review(self, pr_number: int, body: str) -> int:
        """Post a ``COMMENT`` review on the pull request and return its id."""

        payload = {"event": "COMMENT", "body": body}
        with tempfile.NamedTemporaryFile("w", encoding="utf-8", suffix=".json", delete=False) as handle:
            json.dump(payload, handle)
            payload_path = handle.name

        try:
            data = self._api(
                [
                    "-X",
                    "POST",
                    f"repos/{self.repository}/pulls/{pr_number}/reviews",
                    "--input",
                    payload_path,
                ]
            )
        finally:
            Path(payload_path).unlink(missing_ok=True)

        review_id = data.get("id") if isinstance(data, dict) else None
        if not isinstance(review_id, int):
            raise GitHubApiError("Review creation response did not include an id")
        return review_id

    def summary_link(self, run_id: str, run_attempt: str, job_name: str) -> str:
        """Link to the job summary, anchored on the job when it can be found.

        The API only exposes a job's display name, so jobs with a custom name
        cannot be matched and the link falls back to the run attempt page.
        """

        base = (
            f"{self.server_url}/{self.repository}/actions/runs/{run_id}/attempts/{run_attempt}"
        )
        try:
            data = self._api([f"repos/{self.repository}/actions/runs/{run_id}/jobs"])
        except GitHubApiError as exc:
            if self._warn is not None:
                self._warn(failed_to_read_jobs(str(exc)))
            return base

        jobs = data.get("jobs", []) if isinstance(data, dict) else []
        for job in jobs:
            if isinstance(job, dict) and job.get("name") == job_name and job.get("id") is not None:
                return f"{base}#summary-{job['id']}"
        return base

    # Command runner -------------------------------------------------------------
    def _api(self, args: Sequence[str]) -> Any:
        completed = self._run_command([self.gh_bin, "api", *args])
        try:
            return json.loads(completed.stdout or "null")
        except json.JSONDecodeError as exc:
            raise GitHubApiError("GitHub API response was not valid JSON") from exc

    def _run_command(self, args: List[str]) -> subprocess.CompletedProcess[str]:
        env = os.environ.copy()
        env["GH_TOKEN"] = self.token
        try:
            completed = subprocess.run(  # noqa: S603 - deliberate invocation of external command
                args,
                env=env,
                check=True,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as exc:
            raise GitHubApiError(f"Executable not found: {args[0]}") from exc
        except subprocess.CalledProcessError as exc:
            details = (exc.stderr or "").strip()
            message = f"Command '{' '.join(args[:3])}' failed with exit code {exc.returncode}"
            if details:
                message += f": {details}"
            raise GitHubApiError(message) from exc

        return completed
