import json
from pathlib import Path

import pytest

from code_analyzer_action.config import (
    ActionInputs,
    ActionSettings,
    GitHubContext,
    RunArguments,
    SettingsError,
    load_settings,
)
from code_analyzer_action.constants import DEFAULT_ARTIFACT_NAME
from code_analyzer_action.reporting import MAX_SUMMARY_BYTES


def test_action_inputs_from_env():
    inputs = ActionInputs.from_env(
        {
            "INPUT_RUN-ARGUMENTS": " --workspace force-app ",
            "INPUT_GITHUB_TOKEN": "secret",
        }
    )

    assert inputs.run_arguments == "--workspace force-app"
    assert inputs.results_artifact_name == DEFAULT_ARTIFACT_NAME
    assert inputs.github_token == "secret"


def test_action_inputs_empty_token_is_none():
    assert ActionInputs.from_env({"INPUT_GITHUB-TOKEN": "  "}).github_token is None


def test_github_context_reads_pull_request_and_matrix(tmp_path: Path):
    event_path = tmp_path / "event.json"
    event_path.write_text(json.dumps({"pull_request": {"number": 17}}), encoding="utf-8")

    context = GitHubContext.from_env(
        {
            "GITHUB_REPOSITORY": "octo/repo",
            "GITHUB_RUN_ID": "100",
            "GITHUB_RUN_ATTEMPT": "3",
            "GITHUB_JOB": "scan",
            "GITHUB_EVENT_PATH": str(event_path),
            "GITHUB_OUTPUT": str(tmp_path / "out"),
            "matrix": json.dumps({"os": "ubuntu", "node": 20}),
        }
    )

    assert context.is_pull_request
    assert context.pull_request_number == 17
    assert context.run_attempt == "3"
    assert context.job_name == "scan (ubuntu, 20)"
    assert context.output_path == tmp_path / "out"
    assert context.summary_path is None
    assert context.server_url == "https://github.com"


def test_github_context_without_pull_request(tmp_path: Path):
    event_path = tmp_path / "event.json"
    event_path.write_text(json.dumps({"ref": "refs/heads/main"}), encoding="utf-8")

    context = GitHubContext.from_env({"GITHUB_EVENT_PATH": str(event_path), "GITHUB_JOB": "scan"})

    assert not context.is_pull_request
    assert context.job_name == "scan"


def test_github_context_invalid_matrix():
    with pytest.raises(SettingsError):
        GitHubContext.from_env({"matrix": "{oops"})


@pytest.mark.parametrize(
    "text, expected",
    [
        ("--output-file a.json", ["a.json"]),
        ("-f a.html,b.json --view detail", ["a.html", "b.json"]),
        ("--output-file=a.csv -f b.json", ["a.csv", "b.json"]),
        ("--output-file 'with space.json'", ["with space.json"]),
        ("--output-file --view table", []),
        ("--workspace .", []),
    ],
)
def test_run_arguments_values_for(text, expected):
    assert RunArguments(text).values_for("--output-file", "-f") == expected


def test_run_arguments_contains_flag():
    args = RunArguments("--workspace . --view=table")

    assert args.contains_flag("--view", "-v")
    assert not args.contains_flag("--output-file", "-f")


def test_run_arguments_unbalanced_quotes():
    with pytest.raises(SettingsError):
        RunArguments("--workspace 'force-app")


def test_load_settings_defaults_when_no_path():
    assert load_settings(None) == ActionSettings()


def test_load_settings_from_yaml(tmp_path: Path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "max-summary-bytes: 200000\n"
        "report_title: Nightly scan\n"
        "results_file: out/results.json\n"
        "unknown: 1\n",
        encoding="utf-8",
    )

    settings = load_settings(path)

    assert settings.max_summary_bytes == 200000
    assert settings.report_title == "Nightly scan"
    assert settings.results_file == "out/results.json"
    assert settings.extra == {"unknown": 1}


@pytest.mark.parametrize(
    "content",
    [
        "max_summary_bytes: big\n",
        f"max_summary_bytes: {MAX_SUMMARY_BYTES + 1}\n",
        "report_title: ''\n",
        "- a\n- b\n",
        "key: [unclosed\n",
    ],
)
def test_load_settings_rejects_invalid_content(tmp_path: Path, content):
    path = tmp_path / "settings.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(SettingsError):
        load_settings(path)


def test_load_settings_missing_file(tmp_path: Path):
    with pytest.raises(SettingsError):
        load_settings(tmp_path / "missing.yaml")
