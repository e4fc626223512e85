"""GitHub client adapter for the githubkit library."""

from functools import wraps
from pathlib import Path
from typing import Any, Awaitable, Callable, Self, TypeVar

import structlog
from githubkit import Response
from githubkit.exception import RequestFailed
from githubkit.versions.latest.models import FullRepository, Issue, Label

from tracker_sync_manager.configuration.models import GitHubAuthenticationType
from tracker_sync_manager.schemas.issues import TargetIssue, TargetState
from tracker_sync_manager.utils.github import split_repository_in_configuration
from tracker_sync_manager.utils.retry import retry_on_rate_limit

from .abc import TargetTrackerBase
from .client import GitHubClient, get_github_client

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def handle_github_422(func: F) -> F:
    """Decorator to handle GitHub 422 Unprocessable Entity errors, logging and raising with details."""

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except RequestFailed as exc:
            if exc.response.status_code == 422:
                try:
                    error_data = exc.response.json()
                except ValueError:
                    error_data = {}
                message = error_data.get("message", "Unprocessable Entity")
                errors = error_data.get("errors", [])
                logger.error(
                    "GitHub 422 Unprocessable Entity",
                    function=func.__name__,
                    message=message,
                    errors=errors,
                    url=getattr(exc.response, "url", None),
                    status_code=422,
                )
                raise ValueError(
                    f"GitHub 422 error in {func.__name__}: {message} | errors: {errors} | url: {getattr(exc.response, 'url', None)}"
                ) from exc
            raise

    return wrapper  # type: ignore


class GitHubKitAdapter(TargetTrackerBase):
    """GitHub client adapter for the githubkit library."""

    def __init__(self, client: GitHubClient, owner: str, repo_name: str) -> None:
        """Initialize the GitHub client adapter with an already-initialized client."""
        self.client = client
        self.owner = owner
        self.repo_name = repo_name

    def _omit_null_parameters(self, **kwargs: Any) -> dict[str, Any]:
        """Omit parameters that are None."""
        return {k: v for k, v in kwargs.items() if v is not None}

    @property
    def repository(self) -> str:
        """The Target repository in 'owner/repo' form."""
        return f"{self.owner}/{self.repo_name}"

    @classmethod
    async def create(
        cls,
        repo: str,
        github_auth_type: GitHubAuthenticationType,
        github_pat_token: str | None = None,
        github_app_id: int | None = None,
        github_app_private_key_path: Path | None = None,
        github_app_installation_id: int | None = None,
        github_api_url: str = "https://api.github.com",
    ) -> Self:
        """Create a new GitHub client adapter.

        Args:
            repo: Repository in 'owner/repo' format
            github_auth_type: Type of authentication (PAT or APP)
            github_pat_token: Personal access token (required for PAT auth)
            github_app_id: GitHub App ID (required for APP auth)
            github_app_private_key_path: Path to private key file (required for APP auth)
            github_app_installation_id: Installation ID (required for APP auth)
            github_api_url: GitHub API URL (defaults to https://api.github.com)

        Returns:
            Configured GitHubKitAdapter instance

        Raises:
            ValueError: If the repository is not in 'owner/repo' format
        """
        owner, repo_name = await split_repository_in_configuration(repo=repo)
        logger.info(
            "Creating client for GitHub instance and repository",
            github_api_url=github_api_url,
            owner=owner,
            repo_name=repo_name,
        )
        client = await get_github_client(
            repo=repo,
            github_auth_type=github_auth_type,
            github_pat_token=github_pat_token,
            github_app_id=github_app_id,
            github_app_private_key_path=github_app_private_key_path,
            github_app_installation_id=github_app_installation_id,
            github_api_url=github_api_url,
        )
        return cls(client, owner, repo_name)

    # Repository CRUD
    @retry_on_rate_limit()
    async def get_repository(self) -> FullRepository:
        """Get the repository for the current client."""
        response: Response[FullRepository] = await self.client.rest.repos.async_get(owner=self.owner, repo=self.repo_name)
        return response.parsed_data

    # Issue CRUD
    @retry_on_rate_limit()
    async def list_issues(self, per_page: int = 100) -> list[TargetIssue]:
        """List all issues for a repository, handling pagination.

        The issues endpoint also returns pull requests; those are discarded.
        """
        all_issues: list[TargetIssue] = []
        page: int = 1
        while True:
            response: Response[list[Issue]] = await self.client.rest.issues.async_list_for_repo(
                owner=self.owner,
                repo=self.repo_name,
                state="all",
                per_page=per_page,
                page=page,
            )
            issues: list[Issue] = response.parsed_data
            if not issues:
                break
            all_issues.extend(TargetIssue.from_github_issue(issue) for issue in issues if not getattr(issue, "pull_request", None))
            if len(issues) < per_page:
                break
            page += 1
        return all_issues

    @handle_github_422
    @retry_on_rate_limit()
    async def create_issue(self, title: str, body: str, labels: list[str] | None = None) -> TargetIssue:
        """Create an issue for a repository."""
        params = self._omit_null_parameters(title=title, body=body, labels=labels)
        response: Response[Issue] = await self.client.rest.issues.async_create(
            owner=self.owner,
            repo=self.repo_name,
            **params,
        )
        return TargetIssue.from_github_issue(response.parsed_data)

    @handle_github_422
    @retry_on_rate_limit()
    async def update_issue(
        self,
        issue_number: int,
        title: str | None = None,
        body: str | None = None,
        labels: list[str] | None = None,
        state: TargetState | None = None,
    ) -> TargetIssue:
        """Update an issue for a repository."""
        params = self._omit_null_parameters(
            title=title,
            body=body,
            labels=labels,
            state=state.value if state is not None else None,
        )
        response: Response[Issue] = await self.client.rest.issues.async_update(
            owner=self.owner,
            repo=self.repo_name,
            issue_number=issue_number,
            **params,
        )
        return TargetIssue.from_github_issue(response.parsed_data)

    async def set_state(self, issue_number: int, state: TargetState) -> TargetIssue:
        """Open or close an issue for a repository."""
        return await self.update_issue(issue_number, state=state)

    # Label CRUD
    @handle_github_422
    @retry_on_rate_limit()
    async def create_label(self, name: str, color: str, description: str | None = None) -> Label:
        """Create a label for a repository."""
        params = self._omit_null_parameters(name=name, color=color, description=description)
        response: Response[Label] = await self.client.rest.issues.async_create_label(
            owner=self.owner,
            repo=self.repo_name,
            **params,
        )
        return response.parsed_data

    @handle_github_422
    @retry_on_rate_limit()
    async def update_label(self, name: str, new_name: str | None = None, color: str | None = None, description: str | None = None) -> Label:
        """Update a label for a repository."""
        params = self._omit_null_parameters(new_name=new_name, color=color, description=description)
        response: Response[Label] = await self.client.rest.issues.async_update_label(
            owner=self.owner,
            repo=self.repo_name,
            name=name,
            **params,
        )
        return response.parsed_data

    @retry_on_rate_limit()
    async def list_labels(self, per_page: int = 100) -> list[Label]:
        """List all labels for a repository, handling pagination."""
        all_labels: list[Label] = []
        page: int = 1
        while True:
            response: Response[list[Label]] = await self.client.rest.issues.async_list_labels_for_repo(
                owner=self.owner,
                repo=self.repo_name,
                per_page=per_page,
                page=page,
            )
            labels: list[Label] = response.parsed_data
            all_labels.extend(labels)
            if len(labels) < per_page:
                break
            page += 1
        return all_labels
