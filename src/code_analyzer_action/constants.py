"""Step labels and user-facing messages emitted by the action."""

from __future__ import annotations

MIN_CODE_ANALYZER_VERSION_REQUIRED = "5.0.0-beta.0"
DEFAULT_RESULTS_FILE = "sfca_results.json"
DEFAULT_ARTIFACT_NAME = "salesforce-code-analyzer-results"
STDERR_ERROR_MARKER = "Error"

STEP_PREPARING_ENVIRONMENT = "Preparing Environment"
STEP_RUNNING_CODE_ANALYZER = "Running Salesforce Code Analyzer"
STEP_UPLOADING_ARTIFACT = "Uploading Results Artifact"
STEP_ANALYZING_RESULTS = "Analyzing Results"
STEP_CREATING_SUMMARY = "Creating Summary"

CALCULATING_CHANGED_FILES = "Attempting to calculate the list of changed files."
CALCULATED_CHANGED_FILES = "Successfully calculated the files that changed in this pull request."
ATTEMPTING_TO_CREATE_PR_REVIEW = "Attempting to create pull request review..."
PR_FOUND_WITHOUT_GH_TOKEN = (
    "Pull request identified but no GitHub token provided. "
    "Creating job summary without a pull request review."
)
NOT_PR = "Not running on a pull request. Creating job summary without a pull request review."
SF_CLI_NOT_INSTALLED = (
    "Salesforce CLI (sf) wasn't found.\n"
    "Salesforce CLI must be installed in the environment to run Salesforce Code Analyzer.\n"
    "We recommend that you include a separate step in your GitHub workflow to install it. "
    "For example:\n"
    "  - name: Install Salesforce CLI\n"
    "    run: npm install -g @salesforce/cli@latest\n"
    "We will attempt to install the latest version of Salesforce CLI on your behalf."
)
SF_CLI_INSTALL_FAILED = "Failed to install the latest version of Salesforce CLI on your behalf."
MINIMUM_PLUGIN_NOT_INSTALLED = (
    f"Version {MIN_CODE_ANALYZER_VERSION_REQUIRED} or greater of the code-analyzer plugin "
    "wasn't found.\n"
    "We recommend that you include a separate step in your GitHub workflow to install it. "
    "For example:\n"
    "  - name: Install Salesforce Code Analyzer Plugin\n"
    "    run: sf plugins install code-analyzer@latest\n"
    "We will attempt to install the latest code-analyzer plugin on your behalf."
)
PLUGIN_INSTALL_FAILED = "Failed to install the latest code-analyzer plugin on your behalf."
CODE_ANALYZER_FAILED = "Salesforce Code Analyzer failed."
UNEXPECTED_ERROR = (
    "An unexpected error was thrown (see below). First check to make sure you're providing "
    "valid inputs. If you can't resolve the error, then create an issue at "
    "https://github.com/forcedotcom/run-code-analyzer/issues."
)


def file_not_found(file_name: str) -> str:
    return f"The file {file_name} wasn't found. Check the logs for an error."


def failed_to_get_changed_files(details: str) -> str:
    return (
        "Couldn't get changed files associated with the pull request. This error can occur "
        "if the supplied GitHub token is invalid or lacks the 'pull-requests: write' "
        f"permission. Error: {details}"
    )


def failed_to_read_jobs(details: str) -> str:
    return (
        "Couldn't read the jobs associated with this workflow. This error can occur if the "
        "supplied GitHub token is invalid or lacks the 'actions: read' permission. "
        f"Error: {details}"
    )


def failed_to_create_review(details: str) -> str:
    return (
        "Couldn't create the pull request review. This error can occur if the supplied "
        "GitHub token is invalid or lacks the 'pull-requests: write' permission. "
        f"Error: {details}"
    )


def review_body(results_count: int, in_changed_files_count: int, summary_link: str) -> str:
    prefix = ":warning: " if in_changed_files_count > 0 else ""
    return (
        f"{prefix}Salesforce Code Analyzer found {results_count} violations, including "
        f"{in_changed_files_count} in files changed by this pull request. "
        f"See [job summary page]({summary_link})."
    )


def created_pr_review(review_id: int) -> str:
    return f"Created pull request review with ID {review_id}"
