"""Reconcile tracker authentication and sync configuration before any tracker is contacted."""

from collections import Counter
from pathlib import Path

import jinja2
import structlog
from pydantic import ValidationError

from tracker_sync_manager.configuration.exceptions import (
    GitHubAuthenticationConfigurationUndefinedError,
    JiraAuthenticationConfigurationUndefinedError,
    SyncConfigurationError,
)
from tracker_sync_manager.configuration.models import GitHubAuthenticationType, JiraConnectionConfig
from tracker_sync_manager.schemas.issues import SourceIssue
from tracker_sync_manager.schemas.sync_config import SyncConfig
from tracker_sync_manager.synchronize.transforms import render_target_body
from tracker_sync_manager.utils.yaml import load_yaml_file

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def _describe_missing_settings(missing_settings: list[dict[str, str]]) -> str:
    return ", ".join(
        f"{setting['name']} (command line option {setting['cli_name']}, environment variable {setting['env_name']})" for setting in missing_settings
    )


async def validate_github_authentication_configuration(
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
) -> GitHubAuthenticationType:
    """Validates the GitHub authentication configuration.

    Args:
        github_pat_token (str | None): The GitHub PAT token.
        github_app_id (int | None): The GitHub App ID.
        github_app_private_key_path (Path | None): The path to the GitHub App private key.
        github_app_installation_id (int | None): The GitHub App installation ID.

    Raises:
        GitHubAuthenticationConfigurationUndefinedError: If the configuration is missing, incomplete, or mixes PAT and App settings.

    Returns:
        GitHubAuthenticationType: The type of GitHub authentication used.
    """
    if github_pat_token and (github_app_id or github_app_private_key_path or github_app_installation_id):
        raise GitHubAuthenticationConfigurationUndefinedError("Both PAT and GitHub App configurations are defined. Please use one or the other.")

    if github_pat_token:
        return GitHubAuthenticationType.PAT

    if github_app_id and github_app_private_key_path and github_app_installation_id:
        return GitHubAuthenticationType.APP
    elif github_app_id or github_app_private_key_path or github_app_installation_id:
        missing_settings: list[dict[str, str]] = []
        if not github_app_id:
            missing_settings.append({"name": "GitHub App ID", "cli_name": "github_app_id", "env_name": "GITHUB_APP_ID"})
        if not github_app_private_key_path:
            missing_settings.append(
                {"name": "GitHub App private key path", "cli_name": "github_app_private_key_path", "env_name": "GITHUB_APP_PRIVATE_KEY_PATH"}
            )
        if not github_app_installation_id:
            missing_settings.append(
                {"name": "GitHub App installation ID", "cli_name": "github_app_installation_id", "env_name": "GITHUB_APP_INSTALLATION_ID"}
            )
        raise GitHubAuthenticationConfigurationUndefinedError(
            "Incomplete GitHub App configuration - missing settings include " + _describe_missing_settings(missing_settings)
        )
    else:
        raise GitHubAuthenticationConfigurationUndefinedError(
            "No GitHub authentication configuration provided. Please provide either a PAT or a GitHub App configuration."
        )


async def validate_jira_authentication_configuration(
    jira_base_url: str | None,
    jira_email: str | None,
    jira_api_token: str | None,
) -> JiraConnectionConfig:
    """Validates the Jira authentication configuration.

    Raises:
        JiraAuthenticationConfigurationUndefinedError: If any of the base URL, email, or API token is missing.

    Returns:
        JiraConnectionConfig: The validated Jira connection settings.
    """
    if jira_base_url and jira_email and jira_api_token:
        return JiraConnectionConfig(base_url=jira_base_url.rstrip("/"), email=jira_email, api_token=jira_api_token)

    missing_settings: list[dict[str, str]] = []
    if not jira_base_url:
        missing_settings.append({"name": "Jira base URL", "cli_name": "jira_base_url", "env_name": "JIRA_BASE_URL"})
    if not jira_email:
        missing_settings.append({"name": "Jira account email", "cli_name": "jira_email", "env_name": "JIRA_EMAIL"})
    if not jira_api_token:
        missing_settings.append({"name": "Jira API token", "cli_name": "jira_api_token", "env_name": "JIRA_API_TOKEN"})
    raise JiraAuthenticationConfigurationUndefinedError(
        "Incomplete Jira configuration - missing settings include " + _describe_missing_settings(missing_settings)
    )


def _normalize_name(name: str) -> str:
    return " ".join(name.split()).casefold()


def _duplicated_names(names: list[str]) -> list[str]:
    counts = Counter(_normalize_name(name) for name in names)
    return sorted(name for name, count in counts.items() if count > 1)


def validate_sync_configuration(sync_config: SyncConfig) -> None:
    """Validates that a sync configuration is complete and not self-contradictory.

    Every problem found is collected so that an operator can fix them all at
    once.

    Raises:
        SyncConfigurationError: If any problem is found.
    """
    problems: list[str] = []

    if not sync_config.statuses:
        problems.append("the status mapping table is empty")
    elif not any(mapping.sync_eligible for mapping in sync_config.statuses.values()):
        problems.append("no status in the status mapping table is sync-eligible")

    status_names = list(sync_config.statuses)
    if any(not name.strip() for name in status_names):
        problems.append("the status mapping table contains a blank status name")
    for duplicate in _duplicated_names(status_names):
        problems.append(f"status '{duplicate}' is mapped more than once (names differ only in case or whitespace)")

    if any(not category.strip() for category in sync_config.categories):
        problems.append("the category list contains a blank category")
    for duplicate in _duplicated_names(sync_config.categories):
        problems.append(f"category '{duplicate}' is listed more than once")

    category_labels = {category.strip().lower() for category in sync_config.categories}
    for priority, label in sync_config.priorities.items():
        if not label.strip():
            problems.append(f"priority '{priority}' maps to a blank label")
        elif label.lower() in category_labels:
            problems.append(f"priority '{priority}' maps to label '{label}', which is also a category label")

    creation = sync_config.target_to_source_creation
    if creation.enabled:
        if not creation.project_key:
            problems.append("target_to_source_creation is enabled but no project_key is set")
        if creation.default_status and creation.default_status not in sync_config.statuses:
            logger.warning("Default status for created Source issues is not in the status mapping table", default_status=creation.default_status)
        for label, category in creation.label_to_category.items():
            if category not in sync_config.categories:
                logger.warning("Label maps to a category that is not configured", label=label, category=category)

    if problems:
        for problem in problems:
            logger.error("Invalid sync configuration", problem=problem)
        raise SyncConfigurationError(problems)


def validate_issue_template(template: jinja2.Template) -> None:
    """Renders the Target issue body template against a sample Source issue to catch template errors early.

    Raises:
        SyncConfigurationError: If the template references unknown variables or fails to render.
    """
    sample_issue = SourceIssue(
        key="SAMPLE-1",
        title="Sample issue",
        rich_body="Sample description",
        status="Sample",
        category="Task",
        priority="Medium",
        parent_key="SAMPLE-0",
    )
    try:
        render_target_body(sample_issue, template, source_base_url="https://example.atlassian.net")
    except jinja2.TemplateError as exc:
        raise SyncConfigurationError([f"the issue template failed to render: {exc}"]) from exc


def load_sync_configuration(path: Path) -> SyncConfig:
    """Loads and parses the sync configuration YAML file.

    Raises:
        SyncConfigurationError: If the file is empty or does not match the configuration schema.
    """
    logger.info("Loading sync configuration", config_path=str(path))
    data = load_yaml_file(path)
    if not data:
        raise SyncConfigurationError([f"the sync configuration file {path} is empty"])
    try:
        return SyncConfig.model_validate(data)
    except ValidationError as exc:
        problems = [f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()]
        raise SyncConfigurationError(problems) from exc
