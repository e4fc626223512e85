"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
import json
import logging
import sys
from pathlib import Path

import structlog
import typer
from dotenv import load_dotenv
from typer import Argument, Option
from typing_extensions import Annotated

from tracker_sync_manager.configuration.exceptions import (
    GitHubAuthenticationConfigurationUndefinedError,
    JiraAuthenticationConfigurationUndefinedError,
    SyncConfigurationError,
)
from tracker_sync_manager.configuration.health import run_health_check
from tracker_sync_manager.configuration.models import GitHubConnectionConfig, JiraConnectionConfig
from tracker_sync_manager.configuration.reconcile import (
    validate_github_authentication_configuration,
    validate_jira_authentication_configuration,
)
from tracker_sync_manager.synchronize.driver import (
    install_cancellation_handlers,
    load_and_validate_sync_configuration,
    run_setup_labels_workflow,
    run_sync_workflow,
)
from tracker_sync_manager.synchronize.results import PassReport

load_dotenv()

typer_app = typer.Typer(pretty_exceptions_show_locals=False)


def configure_logging(debug: bool, log_to_stderr: bool = False) -> None:
    """Configure structlog to emit DEBUG events in debug mode and INFO events otherwise.

    Events go to stderr when stdout is reserved for machine-readable output.
    """
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG if debug else logging.INFO),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr if log_to_stderr else sys.stdout),
    )


def resolve_github_connection_config(
    repo: str,
    github_api_url: str,
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
) -> GitHubConnectionConfig:
    """Validate the GitHub authentication options and bundle them into connection settings.

    Raises:
        GitHubAuthenticationConfigurationUndefinedError: If the authentication options are missing or inconsistent.
    """
    github_auth_type = asyncio.run(
        validate_github_authentication_configuration(
            github_pat_token=github_pat_token,
            github_app_id=github_app_id,
            github_app_private_key_path=github_app_private_key_path,
            github_app_installation_id=github_app_installation_id,
        )
    )
    return GitHubConnectionConfig(
        repo=repo,
        github_api_url=github_api_url,
        github_authentication_type=github_auth_type,
        github_pat_token=github_pat_token,
        github_app_id=github_app_id,
        github_app_private_key_path=github_app_private_key_path,
        github_app_installation_id=github_app_installation_id,
    )


def echo_pass_summary(report: PassReport) -> None:
    """Print a human-readable summary of a reconciliation pass."""
    typer.echo("")
    typer.echo("=" * 70)
    typer.echo("SYNC SUMMARY" + (" (DRY RUN)" if report.dry_run else ""))
    typer.echo("=" * 70)
    typer.echo(f"  Created: {report.created}")
    typer.echo(f"  Updated: {report.updated}")
    typer.echo(f"  Skipped: {report.skipped}")
    typer.echo(f"  Skipped (ambiguous status mapping): {report.ambiguous_skipped}")
    typer.echo(f"  Errors: {report.errored}")
    if report.duration is not None:
        typer.echo(f"  Duration: {report.duration:.2f}s")
    typer.echo("")

    if report.warnings:
        typer.echo(f"Warnings: {len(report.warnings)}")
        for outcome in report.warnings:
            subject = outcome.source_key or f"#{outcome.target_number}"
            typer.echo(f"  - {subject} ({outcome.kind.value}): {outcome.message}")
        typer.echo("")

    failures = [outcome for outcome in report.outcomes if outcome.kind.counter == "errored"]
    if failures:
        typer.echo(f"Errors: {len(failures)}", err=True)
        for outcome in failures:
            typer.echo(f"  - {outcome.message}", err=True)
        typer.echo("")

    typer.echo("=" * 70)
    if report.cancelled:
        typer.echo("Sync pass was cancelled before all issues were processed.")


@typer_app.command(name="sync")
def sync_cli(
    repo: Annotated[str, Argument(envvar="REPO", help="Target repository name (owner/repo).")],
    config_path: Annotated[Path, Option("--config", envvar="SYNC_CONFIG", help="Path to the sync configuration YAML file.")] = Path("sync-config.yaml"),
    github_api_url: Annotated[str, Option(envvar="GITHUB_API_URL", help="GitHub API URL.")] = "https://api.github.com",
    github_pat_token: Annotated[str | None, Option(envvar="GITHUB_PAT_TOKEN", help="GitHub Personal Access Token.")] = None,
    github_app_id: Annotated[int | None, Option(envvar="GITHUB_APP_ID", help="GitHub App ID.")] = None,
    github_app_private_key_path: Annotated[Path | None, Option(envvar="GITHUB_APP_PRIVATE_KEY_PATH", help="Path to GitHub App private key.")] = None,
    github_app_installation_id: Annotated[int | None, Option(envvar="GITHUB_APP_INSTALLATION_ID", help="GitHub App Installation ID.")] = None,
    jira_base_url: Annotated[str | None, Option(envvar="JIRA_BASE_URL", help="Jira site URL, such as https://example.atlassian.net.")] = None,
    jira_email: Annotated[str | None, Option(envvar="JIRA_EMAIL", help="Jira account email.")] = None,
    jira_api_token: Annotated[str | None, Option(envvar="JIRA_API_TOKEN", help="Jira API token.")] = None,
    dry_run: Annotated[bool, Option(envvar="DRY_RUN", help="Report intended changes without writing to either tracker.")] = False,
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug mode.")] = False,
) -> None:
    """Run one reconciliation pass between Jira issues and the issues of a GitHub repository."""
    configure_logging(debug)
    if not config_path.exists():
        typer.echo(f"Sync configuration file not found: {config_path.absolute()}", err=True)
        raise typer.Exit(1)

    try:
        github_config = resolve_github_connection_config(
            repo, github_api_url, github_pat_token, github_app_id, github_app_private_key_path, github_app_installation_id
        )
        jira_config: JiraConnectionConfig = asyncio.run(validate_jira_authentication_configuration(jira_base_url, jira_email, jira_api_token))
    except (GitHubAuthenticationConfigurationUndefinedError, JiraAuthenticationConfigurationUndefinedError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc

    if dry_run:
        typer.echo("Dry run is enabled - no changes will be written to either tracker")

    async def run_sync() -> PassReport:
        cancel_event = asyncio.Event()
        install_cancellation_handlers(cancel_event)
        return await run_sync_workflow(github_config, jira_config, config_path, dry_run=dry_run, cancel_event=cancel_event)

    try:
        report = asyncio.run(run_sync())
    except SyncConfigurationError as exc:
        typer.echo("Error(s) found in sync configuration:", err=True)
        for problem in exc.problems:
            typer.echo(f"  - {problem}", err=True)
        raise typer.Exit(1) from exc

    echo_pass_summary(report)
    if report.has_errors:
        sys.exit(1)


@typer_app.command(name="validate-config")
def validate_config_cli(
    config_path: Annotated[Path, Argument(envvar="SYNC_CONFIG", help="Path to the sync configuration YAML file.")],
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug mode.")] = False,
) -> None:
    """Validate a sync configuration file without contacting either tracker."""
    configure_logging(debug)
    if not config_path.exists():
        typer.echo(f"Sync configuration file not found: {config_path.absolute()}", err=True)
        raise typer.Exit(1)
    try:
        sync_config, _ = load_and_validate_sync_configuration(config_path)
    except SyncConfigurationError as exc:
        typer.echo("Error(s) found in sync configuration:", err=True)
        for problem in exc.problems:
            typer.echo(f"  - {problem}", err=True)
        raise typer.Exit(1) from exc

    typer.echo(f"Sync configuration {config_path} is valid")
    typer.echo(f"  Direction: {sync_config.sync.direction.value}")
    typer.echo(f"  JQL: {sync_config.sync.jql}")
    for status, mapping in sync_config.statuses.items():
        eligibility = "" if mapping.sync_eligible else " (not sync-eligible)"
        typer.echo(f"  {status} -> {mapping.target_state.value}{eligibility}")


@typer_app.command(name="health")
def health_cli(
    repo: Annotated[str, Argument(envvar="REPO", help="Target repository name (owner/repo).")],
    config_path: Annotated[Path, Option("--config", envvar="SYNC_CONFIG", help="Path to the sync configuration YAML file.")] = Path("sync-config.yaml"),
    github_api_url: Annotated[str, Option(envvar="GITHUB_API_URL", help="GitHub API URL.")] = "https://api.github.com",
    github_pat_token: Annotated[str | None, Option(envvar="GITHUB_PAT_TOKEN", help="GitHub Personal Access Token.")] = None,
    github_app_id: Annotated[int | None, Option(envvar="GITHUB_APP_ID", help="GitHub App ID.")] = None,
    github_app_private_key_path: Annotated[Path | None, Option(envvar="GITHUB_APP_PRIVATE_KEY_PATH", help="Path to GitHub App private key.")] = None,
    github_app_installation_id: Annotated[int | None, Option(envvar="GITHUB_APP_INSTALLATION_ID", help="GitHub App Installation ID.")] = None,
    jira_base_url: Annotated[str | None, Option(envvar="JIRA_BASE_URL", help="Jira site URL, such as https://example.atlassian.net.")] = None,
    jira_email: Annotated[str | None, Option(envvar="JIRA_EMAIL", help="Jira account email.")] = None,
    jira_api_token: Annotated[str | None, Option(envvar="JIRA_API_TOKEN", help="Jira API token.")] = None,
    json_output: Annotated[bool, Option("--json", help="Print the report as JSON for monitoring.")] = False,
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug mode.")] = False,
) -> None:
    """Check the sync configuration and the connection to both trackers."""
    configure_logging(debug, log_to_stderr=json_output)
    problems: list[str] = []
    github_config: GitHubConnectionConfig | None = None
    jira_config: JiraConnectionConfig | None = None
    try:
        github_config = resolve_github_connection_config(
            repo, github_api_url, github_pat_token, github_app_id, github_app_private_key_path, github_app_installation_id
        )
    except GitHubAuthenticationConfigurationUndefinedError as exc:
        problems.append(str(exc))
    try:
        jira_config = asyncio.run(validate_jira_authentication_configuration(jira_base_url, jira_email, jira_api_token))
    except JiraAuthenticationConfigurationUndefinedError as exc:
        problems.append(str(exc))

    report = asyncio.run(run_health_check(config_path, github_config, jira_config, problems))

    if json_output:
        typer.echo(json.dumps(report.as_dict(), indent=2))
    else:
        typer.echo(f"Health: {'healthy' if report.healthy else 'unhealthy'}")
        for check in report.checks:
            typer.echo(f"  [{check.status.value}] {check.name}: {check.message}")
    if not report.healthy:
        raise typer.Exit(1)


@typer_app.command(name="setup-labels")
def setup_labels_cli(
    repo: Annotated[str, Argument(envvar="REPO", help="Target repository name (owner/repo).")],
    config_path: Annotated[Path, Option("--config", envvar="SYNC_CONFIG", help="Path to the sync configuration YAML file.")] = Path("sync-config.yaml"),
    github_api_url: Annotated[str, Option(envvar="GITHUB_API_URL", help="GitHub API URL.")] = "https://api.github.com",
    github_pat_token: Annotated[str | None, Option(envvar="GITHUB_PAT_TOKEN", help="GitHub Personal Access Token.")] = None,
    github_app_id: Annotated[int | None, Option(envvar="GITHUB_APP_ID", help="GitHub App ID.")] = None,
    github_app_private_key_path: Annotated[Path | None, Option(envvar="GITHUB_APP_PRIVATE_KEY_PATH", help="Path to GitHub App private key.")] = None,
    github_app_installation_id: Annotated[int | None, Option(envvar="GITHUB_APP_INSTALLATION_ID", help="GitHub App Installation ID.")] = None,
    dry_run: Annotated[bool, Option("--dry-run", "--preview", envvar="DRY_RUN", help="List the labels that would be created without creating them.")] = False,
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug mode.")] = False,
) -> None:
    """Create the category and priority labels managed by the sync in a GitHub repository."""
    configure_logging(debug)
    if not config_path.exists():
        typer.echo(f"Sync configuration file not found: {config_path.absolute()}", err=True)
        raise typer.Exit(1)
    try:
        github_config = resolve_github_connection_config(
            repo, github_api_url, github_pat_token, github_app_id, github_app_private_key_path, github_app_installation_id
        )
    except GitHubAuthenticationConfigurationUndefinedError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(1) from exc

    try:
        result = asyncio.run(run_setup_labels_workflow(github_config, config_path, dry_run=dry_run))
    except SyncConfigurationError as exc:
        typer.echo("Error(s) found in sync configuration:", err=True)
        for problem in exc.problems:
            typer.echo(f"  - {problem}", err=True)
        raise typer.Exit(1) from exc

    prefix = "Would create" if result.dry_run else "Created"
    typer.echo(f"{prefix} {len(result.created)} label(s): {', '.join(result.created) or 'none'}")
    prefix = "Would rename" if result.dry_run else "Renamed"
    typer.echo(f"{prefix} {len(result.renamed)} label(s): {', '.join(result.renamed) or 'none'}")
    typer.echo(f"Already present: {len(result.unchanged)} label(s)")


if __name__ == "__main__":
    typer_app()
