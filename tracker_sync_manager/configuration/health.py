"""Checks that the sync configuration is valid and that both trackers are reachable with the configured credentials."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import httpx
import structlog
from githubkit.exception import GitHubException

from tracker_sync_manager.configuration.exceptions import SyncConfigurationError
from tracker_sync_manager.configuration.models import GitHubConnectionConfig, JiraConnectionConfig
from tracker_sync_manager.github.adapter import GitHubKitAdapter
from tracker_sync_manager.jira.adapter import JiraAdapter
from tracker_sync_manager.synchronize.driver import create_github_adapter, create_jira_adapter, load_and_validate_sync_configuration
from tracker_sync_manager.synchronize.exceptions import TransientNetworkError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class CheckStatus(str, Enum):
    """Outcome of a single health check."""

    PASS = "pass"
    FAIL = "fail"


@dataclass(frozen=True)
class CheckResult:
    """Result of a single health check."""

    name: str
    status: CheckStatus
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Serialize the result for machine-readable output."""
        return {"name": self.name, "status": self.status.value, "message": self.message, "details": self.details}


@dataclass
class HealthReport:
    """Results of every health check."""

    checks: list[CheckResult] = field(default_factory=list)

    @property
    def healthy(self) -> bool:
        """Whether every check passed."""
        return all(check.status == CheckStatus.PASS for check in self.checks)

    def as_dict(self) -> dict[str, Any]:
        """Serialize the report for machine-readable output."""
        return {"status": "healthy" if self.healthy else "unhealthy", "checks": [check.as_dict() for check in self.checks]}


def check_environment(problems: list[str]) -> CheckResult:
    """Report whether the connection settings of both trackers are complete."""
    if problems:
        return CheckResult("environment", CheckStatus.FAIL, "; ".join(problems))
    return CheckResult("environment", CheckStatus.PASS, "All required connection settings are present")


def check_sync_configuration(config_path: Path) -> CheckResult:
    """Report whether the sync configuration file loads and validates."""
    if not config_path.exists():
        return CheckResult("config", CheckStatus.FAIL, f"Sync configuration file not found: {config_path.absolute()}")
    try:
        sync_config, _ = load_and_validate_sync_configuration(config_path)
    except SyncConfigurationError as exc:
        return CheckResult("config", CheckStatus.FAIL, "Sync configuration is invalid", details={"problems": exc.problems})
    return CheckResult(
        "config",
        CheckStatus.PASS,
        "Sync configuration is valid",
        details={"path": str(config_path), "direction": sync_config.sync.direction.value, "statuses": len(sync_config.statuses)},
    )


async def check_jira_connectivity(jira_adapter: JiraAdapter) -> CheckResult:
    """Report whether Jira accepts the configured credentials."""
    try:
        account = await jira_adapter.get_myself()
        server_info = await jira_adapter.get_server_info()
    except (httpx.HTTPError, TransientNetworkError, ValueError) as exc:
        logger.error("Jira health check failed", error_type=type(exc).__name__, error=str(exc))
        return CheckResult("jira", CheckStatus.FAIL, f"Could not connect to Jira: {exc}")
    account_name = account.get("displayName") or account.get("emailAddress") or account.get("accountId")
    return CheckResult(
        "jira",
        CheckStatus.PASS,
        f"Authenticated as {account_name}",
        details={"version": server_info.get("version"), "deployment_type": server_info.get("deploymentType")},
    )


async def check_github_connectivity(github_adapter: GitHubKitAdapter) -> CheckResult:
    """Report whether the Target repository is reachable with the configured credentials."""
    try:
        repository = await github_adapter.get_repository()
    except (GitHubException, TransientNetworkError) as exc:
        logger.error("GitHub health check failed", repo=github_adapter.repository, error_type=type(exc).__name__, error=str(exc))
        return CheckResult("github", CheckStatus.FAIL, f"Could not access repository {github_adapter.repository}: {exc}")
    return CheckResult(
        "github",
        CheckStatus.PASS,
        f"Repository {repository.full_name} is accessible",
        details={"has_issues": repository.has_issues},
    )


async def run_health_check(
    config_path: Path,
    github_config: GitHubConnectionConfig | None,
    jira_config: JiraConnectionConfig | None,
    problems: list[str] | None = None,
) -> HealthReport:
    """Run every health check. Trackers with incomplete connection settings are reported as failed without being contacted."""
    report = HealthReport()
    report.checks.append(check_environment(problems or []))
    report.checks.append(check_sync_configuration(config_path))

    if jira_config is None:
        report.checks.append(CheckResult("jira", CheckStatus.FAIL, "Skipped, Jira connection settings are incomplete"))
    else:
        jira_adapter = await create_jira_adapter(jira_config)
        try:
            report.checks.append(await check_jira_connectivity(jira_adapter))
        finally:
            await jira_adapter.aclose()

    if github_config is None:
        report.checks.append(CheckResult("github", CheckStatus.FAIL, "Skipped, GitHub connection settings are incomplete"))
    else:
        try:
            github_adapter = await create_github_adapter(github_config)
        except (GitHubException, OSError, ValueError) as exc:
            report.checks.append(CheckResult("github", CheckStatus.FAIL, f"Could not create GitHub client: {exc}"))
        else:
            report.checks.append(await check_github_connectivity(github_adapter))

    logger.info("Ran health check", healthy=report.healthy, **{check.name: check.status.value for check in report.checks})
    return report
