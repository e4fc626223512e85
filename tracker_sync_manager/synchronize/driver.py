"""Orchestrates a reconciliation pass between the Source (Jira) and Target (GitHub) trackers."""

import asyncio
import signal
import time
from pathlib import Path

import jinja2
import structlog

from tracker_sync_manager.configuration.models import GitHubConnectionConfig, JiraConnectionConfig
from tracker_sync_manager.configuration.reconcile import load_sync_configuration, validate_issue_template, validate_sync_configuration
from tracker_sync_manager.github.adapter import GitHubKitAdapter
from tracker_sync_manager.jira.adapter import JiraAdapter
from tracker_sync_manager.schemas.sync_config import SyncConfig
from tracker_sync_manager.synchronize.issues import run_reconciliation_pass
from tracker_sync_manager.synchronize.labels import LabelSetupResult, setup_managed_labels
from tracker_sync_manager.synchronize.results import PassReport
from tracker_sync_manager.utils.github import web_url_from_api_url
from tracker_sync_manager.utils.templates import load_issue_body_template

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def resolve_issue_template_path(sync_config: SyncConfig, config_path: Path) -> Path | None:
    """Resolve the configured issue template path relative to the directory of the config file."""
    if sync_config.issue_template is None:
        return None
    template_path = Path(sync_config.issue_template)
    if not template_path.is_absolute():
        template_path = config_path.parent / template_path
    return template_path


def load_and_validate_sync_configuration(config_path: Path) -> tuple[SyncConfig, jinja2.Template]:
    """Load the sync configuration and issue template, raising on any problem before a tracker is contacted."""
    sync_config = load_sync_configuration(config_path)
    validate_sync_configuration(sync_config)
    template = load_issue_body_template(resolve_issue_template_path(sync_config, config_path))
    validate_issue_template(template)
    logger.info(
        "Loaded sync configuration",
        config_path=str(config_path),
        direction=sync_config.sync.direction.value,
        status_count=len(sync_config.statuses),
    )
    return sync_config, template


def install_cancellation_handlers(cancel_event: asyncio.Event) -> None:
    """Set the cancel event on SIGINT or SIGTERM so the pass stops after the pair in progress."""
    loop = asyncio.get_running_loop()
    for signal_number in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signal_number, cancel_event.set)
        except NotImplementedError:
            logger.debug("Signal handlers are not supported on this platform", signal=signal_number.name)


async def create_github_adapter(github_config: GitHubConnectionConfig) -> GitHubKitAdapter:
    """Create the Target adapter from validated GitHub connection settings."""
    return await GitHubKitAdapter.create(
        repo=github_config.repo,
        github_auth_type=github_config.github_authentication_type,
        github_pat_token=github_config.github_pat_token,
        github_app_id=github_config.github_app_id,
        github_app_private_key_path=github_config.github_app_private_key_path,
        github_app_installation_id=github_config.github_app_installation_id,
        github_api_url=github_config.github_api_url,
    )


async def create_jira_adapter(jira_config: JiraConnectionConfig, sync_config: SyncConfig | None = None) -> JiraAdapter:
    """Create the Source adapter from validated Jira connection settings."""
    return await JiraAdapter.create(
        base_url=jira_config.base_url,
        email=jira_config.email,
        api_token=jira_config.api_token,
        field_mapping=sync_config.fields if sync_config is not None else None,
        eligible_categories=sync_config.eligible_categories if sync_config is not None else None,
    )


async def run_sync_workflow(
    github_config: GitHubConnectionConfig,
    jira_config: JiraConnectionConfig,
    config_path: Path,
    dry_run: bool = False,
    cancel_event: asyncio.Event | None = None,
) -> PassReport:
    """Run the sync workflow: load and validate the configuration, connect to both trackers, and run one pass."""
    sync_config, template = load_and_validate_sync_configuration(config_path)

    # Set up Target and Source adapters.
    github_adapter = await create_github_adapter(github_config)
    jira_adapter = await create_jira_adapter(jira_config, sync_config)

    start_time = time.time()
    logger.info("Running reconciliation pass", repo=github_config.repo, jira_base_url=jira_config.base_url, dry_run=dry_run)
    try:
        report = await run_reconciliation_pass(
            source_adapter=jira_adapter,
            target_adapter=github_adapter,
            sync_config=sync_config,
            template=template,
            source_base_url=jira_config.base_url,
            target_web_url=web_url_from_api_url(github_config.github_api_url),
            dry_run=dry_run,
            cancel_event=cancel_event,
        )
    finally:
        await jira_adapter.aclose()
    end_time = time.time()
    logger.info("Ran reconciliation pass", start_time=start_time, end_time=end_time, duration=round(end_time - start_time, 2))
    return report


async def run_setup_labels_workflow(github_config: GitHubConnectionConfig, config_path: Path, dry_run: bool = False) -> LabelSetupResult:
    """Run the label setup workflow: load the configuration and create the labels it manages in the Target repository."""
    sync_config, _ = load_and_validate_sync_configuration(config_path)
    github_adapter = await create_github_adapter(github_config)

    start_time = time.time()
    logger.info("Setting up managed labels", repo=github_config.repo, dry_run=dry_run)
    result = await setup_managed_labels(github_adapter, sync_config, dry_run=dry_run)
    end_time = time.time()
    logger.info(
        "Set up managed labels",
        duration=round(end_time - start_time, 2),
        created=len(result.created),
        renamed=len(result.renamed),
        unchanged=len(result.unchanged),
    )
    return result
