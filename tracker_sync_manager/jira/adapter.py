"""Jira client adapter for the Jira Cloud REST API over httpx."""

from functools import wraps
from typing import Any, Awaitable, Callable, Self, TypeVar

import httpx
import structlog

from tracker_sync_manager.schemas.issues import SourceIssue, Transition
from tracker_sync_manager.schemas.sync_config import FieldMappingConfig
from tracker_sync_manager.synchronize.exceptions import SourceIssueNotFoundError
from tracker_sync_manager.utils.constants import JIRA_SEARCH_PAGE_SIZE
from tracker_sync_manager.utils.retry import retry_on_rate_limit

from .abc import SourceTrackerBase
from .client import JiraClient, get_jira_client

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

BASE_ISSUE_FIELDS = ("summary", "description", "status")


def handle_jira_400(func: F) -> F:
    """Decorator to handle Jira 400 Bad Request errors, logging and raising with details."""

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 400:
                try:
                    error_data = exc.response.json()
                except ValueError:
                    error_data = {}
                error_messages = error_data.get("errorMessages", [])
                errors = error_data.get("errors", {})
                logger.error(
                    "Jira 400 Bad Request",
                    function=func.__name__,
                    error_messages=error_messages,
                    errors=errors,
                    url=str(exc.request.url),
                    status_code=400,
                )
                raise ValueError(f"Jira 400 error in {func.__name__}: {error_messages} | errors: {errors} | url: {exc.request.url}") from exc
            raise

    return wrapper  # type: ignore


class JiraAdapter(SourceTrackerBase):
    """Jira client adapter for the Jira Cloud REST API."""

    def __init__(
        self,
        client: JiraClient,
        field_mapping: FieldMappingConfig | None = None,
        eligible_categories: list[str] | None = None,
    ) -> None:
        """Initialize the Jira client adapter with an already-initialized client."""
        self.client = client
        self.field_mapping = field_mapping or FieldMappingConfig()
        self.eligible_categories = eligible_categories

    @classmethod
    async def create(
        cls,
        base_url: str,
        email: str,
        api_token: str,
        field_mapping: FieldMappingConfig | None = None,
        eligible_categories: list[str] | None = None,
    ) -> Self:
        """Create a new Jira client adapter.

        Args:
            base_url: Jira site URL, such as https://example.atlassian.net
            email: Account email used for basic authentication
            api_token: API token of the account
            field_mapping: Field ids the category, priority and parent are read from
            eligible_categories: Categories that are sync-eligible, or None for all

        Returns:
            Configured JiraAdapter instance
        """
        logger.info("Creating client for Jira instance", base_url=base_url)
        client = await get_jira_client(base_url=base_url, email=email, api_token=api_token)
        return cls(client, field_mapping=field_mapping, eligible_categories=eligible_categories)

    @property
    def requested_fields(self) -> list[str]:
        """Issue fields requested from Jira, without duplicates and in a stable order."""
        fields = [
            *BASE_ISSUE_FIELDS,
            self.field_mapping.category_field,
            self.field_mapping.priority_field,
            self.field_mapping.parent_field,
        ]
        return list(dict.fromkeys(fields))

    def _to_source_issue(self, raw_issue: dict[str, Any]) -> SourceIssue:
        return SourceIssue.from_jira_issue(
            raw_issue,
            category_field=self.field_mapping.category_field,
            priority_field=self.field_mapping.priority_field,
            parent_field=self.field_mapping.parent_field,
            eligible_categories=self.eligible_categories,
        )

    @handle_jira_400
    @retry_on_rate_limit()
    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a single request and raise for unsuccessful status codes."""
        response = await self.client.request(method, url, **kwargs)
        response.raise_for_status()
        return response

    # Issue CRUD
    async def list_issues(self, jql: str) -> list[SourceIssue]:
        """List every issue matching a JQL query, handling token-based pagination."""
        all_issues: list[SourceIssue] = []
        next_page_token: str | None = None
        while True:
            payload: dict[str, Any] = {"jql": jql, "maxResults": JIRA_SEARCH_PAGE_SIZE, "fields": self.requested_fields}
            if next_page_token:
                payload["nextPageToken"] = next_page_token
            response = await self._request("POST", "/rest/api/3/search/jql", json=payload)
            data = response.json()
            all_issues.extend(self._to_source_issue(raw_issue) for raw_issue in data.get("issues", []))
            next_page_token = data.get("nextPageToken")
            if not next_page_token or data.get("isLast"):
                break
        logger.debug("Listed Source issues", jql=jql, issue_count=len(all_issues))
        return all_issues

    async def get_issue(self, issue_key: str) -> SourceIssue:
        """Get a single issue by key.

        Raises:
            SourceIssueNotFoundError: If the issue does not exist or is not visible to the account.
        """
        try:
            response = await self._request("GET", f"/rest/api/3/issue/{issue_key}", params={"fields": ",".join(self.requested_fields)})
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 404:
                raise SourceIssueNotFoundError(issue_key) from exc
            raise
        return self._to_source_issue(response.json())

    async def create_issue(self, fields: dict[str, Any]) -> str:
        """Create an issue and return its key."""
        response = await self._request("POST", "/rest/api/3/issue", json={"fields": fields})
        issue_key: str = response.json()["key"]
        return issue_key

    async def update_issue(self, issue_key: str, fields: dict[str, Any]) -> None:
        """Update fields of an issue."""
        await self._request("PUT", f"/rest/api/3/issue/{issue_key}", json={"fields": fields})

    # Workflow transitions
    async def list_available_transitions(self, issue_key: str) -> list[Transition]:
        """List the transitions currently available to an issue."""
        response = await self._request("GET", f"/rest/api/3/issue/{issue_key}/transitions")
        return [Transition.from_jira_transition(raw) for raw in response.json().get("transitions", [])]

    async def apply_transition(self, issue_key: str, transition_id: str) -> None:
        """Execute a transition on an issue by its identifier."""
        await self._request("POST", f"/rest/api/3/issue/{issue_key}/transitions", json={"transition": {"id": transition_id}})

    # Instance information
    async def get_myself(self) -> dict[str, Any]:
        """Get the account the client is authenticated as."""
        response = await self._request("GET", "/rest/api/3/myself")
        account: dict[str, Any] = response.json()
        return account

    async def get_server_info(self) -> dict[str, Any]:
        """Get the version and deployment details of the Jira instance."""
        response = await self._request("GET", "/rest/api/3/serverInfo")
        server_info: dict[str, Any] = response.json()
        return server_info

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()
