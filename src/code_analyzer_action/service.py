"""Orchestration of a complete Code Analyzer action run."""

from __future__ import annotations

import shlex
import traceback
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, List

from . import constants
from .adapters import (
    ActionsRuntime,
    ArtifactStager,
    CodeAnalyzerExecutor,
    CommandOutput,
    GitHubApiError,
    GitHubClient,
    ResultsLoader,
)
from .config import ActionInputs, ActionSettings, GitHubContext, RunArguments
from .models import SEVERITIES, Results
from .reporting import SummaryRenderer

GitHubClientFactory = Callable[[str], GitHubClient]


class ActionError(RuntimeError):
    """Raised when a required step of the action cannot be completed."""


class ActionRunner:
    """Run Code Analyzer and publish its results to the current GitHub job."""

    def __init__(
        self,
        *,
        inputs: ActionInputs,
        context: GitHubContext,
        runtime: ActionsRuntime,
        executor: CodeAnalyzerExecutor | None = None,
        settings: ActionSettings | None = None,
        results_loader: ResultsLoader | None = None,
        renderer: SummaryRenderer | None = None,
        github_client_factory: GitHubClientFactory | None = None,
        artifact_stager: ArtifactStager | None = None,
        working_dir: Path | None = None,
    ) -> None:
        self.inputs = inputs
        self.context = context
        self.runtime = runtime
        self.settings = settings or ActionSettings()
        self.working_dir = working_dir or Path.cwd()
        self._executor = executor or CodeAnalyzerExecutor(cwd=self.working_dir)
        self._results_loader = results_loader or ResultsLoader()
        self._renderer = renderer or SummaryRenderer(
            self.settings.max_summary_bytes, title=self.settings.report_title
        )
        self._github_client_factory = github_client_factory or self._default_github_client
        self._artifact_stager = artifact_stager or ArtifactStager(
            self.working_dir / self.settings.artifact_dir, working_dir=self.working_dir
        )

    # ------------------------------------------------------------------
    def run(self) -> int:
        """Execute every step and return the process exit code."""

        try:
            with self._step(constants.STEP_PREPARING_ENVIRONMENT):
                self._install_salesforce_cli_if_needed()
                self._install_plugin_if_needed()

            with self._step(constants.STEP_RUNNING_CODE_ANALYZER):
                user_output_files, json_output_file = self._run_code_analyzer()

            with self._step(constants.STEP_UPLOADING_ARTIFACT):
                for file_name in [*user_output_files, json_output_file]:
                    self._assert_file_exists(file_name)
                artifact_path = self._artifact_stager.stage(
                    self.inputs.results_artifact_name,
                    user_output_files or [json_output_file],
                )
                self.runtime.set_output("artifact-path", str(artifact_path))

            with self._step(constants.STEP_ANALYZING_RESULTS):
                self._assert_file_exists(json_output_file)
                results = self._results_loader.load(self._resolve(json_output_file))
                self._publish_counts(results)

            with self._step(constants.STEP_CREATING_SUMMARY):
                self._create_summary(results)
        except Exception:  # noqa: BLE001 - every failure is reported through the runner
            self.runtime.set_failed(f"{constants.UNEXPECTED_ERROR}\n\n{traceback.format_exc()}")

        return 1 if self.runtime.failed else 0

    # Preparation --------------------------------------------------------------
    def _install_salesforce_cli_if_needed(self) -> None:
        if self._executor.is_salesforce_cli_installed():
            return
        self.runtime.warning(constants.SF_CLI_NOT_INSTALLED)
        if not self._executor.install_salesforce_cli():
            raise ActionError(constants.SF_CLI_INSTALL_FAILED)

    def _install_plugin_if_needed(self) -> None:
        if self._executor.is_minimum_plugin_installed(self.settings.minimum_plugin_version):
            return
        self.runtime.warning(constants.MINIMUM_PLUGIN_NOT_INSTALLED)
        if not self._executor.install_code_analyzer_plugin():
            raise ActionError(constants.PLUGIN_INSTALL_FAILED)

    # Analysis -----------------------------------------------------------------
    def _run_code_analyzer(self) -> tuple[List[str], str]:
        run_arguments = RunArguments(self.inputs.run_arguments)
        user_output_files = run_arguments.values_for("--output-file", "-f")
        json_output_file = next(
            (name for name in user_output_files if name.lower().endswith(".json")), None
        )

        arguments = self.inputs.run_arguments
        if json_output_file is None:
            json_output_file = self.settings.results_file
            arguments += f" --output-file {shlex.quote(json_output_file)}"
            # Keep the default console view when only our JSON file is requested.
            if not user_output_files and not run_arguments.contains_flag("--view", "-v"):
                arguments += " --view table"

        output: CommandOutput = self._executor.run_code_analyzer(arguments.strip())
        self.runtime.set_output("exit-code", str(output.exit_code))
        if output.exit_code != 0 and constants.STDERR_ERROR_MARKER in output.stderr:
            error_text = output.stderr[output.stderr.index(constants.STDERR_ERROR_MARKER) :]
            self.runtime.error(f"{constants.CODE_ANALYZER_FAILED} \n{error_text}")

        return user_output_files, json_output_file

    def _publish_counts(self, results: Results) -> None:
        outputs = {"num-violations": results.total_count}
        for severity in SEVERITIES:
            outputs[f"num-sev{severity}-violations"] = results.count_for(severity)

        for name, value in outputs.items():
            self.runtime.set_output(name, str(value))

        lines = ["outputs:"] + [f"  {name}: {value}" for name, value in outputs.items()]
        self.runtime.info("\n".join(lines))

    # Summary --------------------------------------------------------------------
    def _create_summary(self, results: Results) -> None:
        token = self.inputs.github_token
        if not self.context.is_pull_request or not token:
            self.runtime.info(
                constants.PR_FOUND_WITHOUT_GH_TOKEN if self.context.is_pull_request else constants.NOT_PR
            )
            self.runtime.write_summary(self._renderer.render(results))
            return

        pr_number = self.context.pull_request_number
        client = self._github_client_factory(token)
        changed_files: List[str] = []
        could_read_changed_files = True
        try:
            self.runtime.info(constants.CALCULATING_CHANGED_FILES)
            changed_files = client.list_changed_files(pr_number)
            self.runtime.info(constants.CALCULATED_CHANGED_FILES)
        except GitHubApiError as exc:
            could_read_changed_files = False
            self.runtime.warning(constants.failed_to_get_changed_files(str(exc)))

        summary_markdown = self._renderer.render(results, changed_files)

        if could_read_changed_files:
            summary_link = client.summary_link(
                self.context.run_id, self.context.run_attempt, self.context.job_name
            )
            in_changed_files, _ = results.partition(changed_files)
            body = constants.review_body(results.total_count, len(in_changed_files), summary_link)
            try:
                self.runtime.info(constants.ATTEMPTING_TO_CREATE_PR_REVIEW)
                review_id = client.create_review(pr_number, body)
                self.runtime.set_output("review-id", str(review_id))
                self.runtime.notice(constants.created_pr_review(review_id))
            except GitHubApiError as exc:
                self.runtime.warning(constants.failed_to_create_review(str(exc)))

        self.runtime.write_summary(summary_markdown)

    # Helpers ------------------------------------------------------------------
    @contextmanager
    def _step(self, label: str) -> Iterator[None]:
        self.runtime.start_group(label)
        try:
            yield
        finally:
            self.runtime.end_group()

    def _resolve(self, file_name: str) -> Path:
        path = Path(file_name)
        return path if path.is_absolute() else self.working_dir / path

    def _assert_file_exists(self, file_name: str) -> None:
        if not self._resolve(file_name).exists():
            raise ActionError(constants.file_not_found(file_name))

    def _default_github_client(self, token: str) -> GitHubClient:
        return GitHubClient(
            token,
            self.context.repository,
            server_url=self.context.server_url,
            warn=self.runtime.warning,
        )


__all__ = ["ActionError", "ActionRunner", "GitHubClientFactory"]
