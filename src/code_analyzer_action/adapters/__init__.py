"""Adapter layer for the analyzer CLI, GitHub and result files."""

from .artifacts import ArtifactError, ArtifactStager
from .code_analyzer import CodeAnalyzerExecutor, CommandError, CommandOutput
from .github_actions import ActionsRuntime, format_command
from .github_api import GitHubApiError, GitHubClient
from .results_loader import (
    MalformedInputError,
    ResultsLoadError,
    ResultsLoader,
    ResultsNotFoundError,
    load_results,
)

__all__ = [
    "ActionsRuntime",
    "ArtifactError",
    "ArtifactStager",
    "CodeAnalyzerExecutor",
    "CommandError",
    "CommandOutput",
    "GitHubApiError",
    "GitHubClient",
    "MalformedInputError",
    "ResultsLoadError",
    "ResultsLoader",
    "ResultsNotFoundError",
    "format_command",
    "load_results",
]
