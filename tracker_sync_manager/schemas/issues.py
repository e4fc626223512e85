"""Pydantic schemas for issue snapshots read from the Source and Target trackers."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tracker_sync_manager.synchronize.types import GitHubIssueLike
from tracker_sync_manager.synchronize.utils import extract_label_names


class TargetState(str, Enum):
    """Binary state of a Target tracker issue."""

    OPEN = "open"
    CLOSED = "closed"


def extract_option_value(value: Any) -> str | None:
    """Extract the display value of a Jira select, option, or named field.

    Jira returns select fields as ``{"value": ...}``, built-in fields such as
    ``issuetype`` or ``priority`` as ``{"name": ...}``, and multi-selects as a
    list of either. Only the first entry of a list is used.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, list):
        return extract_option_value(value[0]) if value else None
    if isinstance(value, dict):
        for attribute in ("value", "name", "key"):
            if value.get(attribute):
                return str(value[attribute])
    return None


class SourceIssue(BaseModel):
    """Snapshot of a Source tracker (Jira) issue."""

    model_config = ConfigDict(frozen=True)

    key: str
    title: str
    rich_body: dict[str, Any] | str | None = None
    status: str
    category: str | None = None
    priority: str | None = None
    parent_key: str | None = None
    sync_eligible: bool = True

    @classmethod
    def from_jira_issue(
        cls,
        raw_issue: dict[str, Any],
        category_field: str = "issuetype",
        priority_field: str = "priority",
        parent_field: str = "parent",
        eligible_categories: list[str] | None = None,
    ) -> "SourceIssue":
        """Build a snapshot from the JSON representation returned by the Jira REST API."""
        fields: dict[str, Any] = raw_issue.get("fields") or {}
        category = extract_option_value(fields.get(category_field))
        sync_eligible = True
        if eligible_categories is not None:
            sync_eligible = category in eligible_categories
        return cls(
            key=raw_issue["key"],
            title=fields.get("summary") or "",
            rich_body=fields.get("description"),
            status=extract_option_value(fields.get("status")) or "",
            category=category,
            priority=extract_option_value(fields.get(priority_field)),
            parent_key=extract_option_value(fields.get(parent_field)),
            sync_eligible=sync_eligible,
        )


class TargetIssue(BaseModel):
    """Snapshot of a Target tracker (GitHub) issue."""

    model_config = ConfigDict(frozen=True)

    number: int
    title: str
    body: str = ""
    labels: frozenset[str] = Field(default_factory=frozenset)
    state: TargetState = TargetState.OPEN

    @classmethod
    def from_github_issue(cls, issue: GitHubIssueLike) -> "TargetIssue":
        """Build a snapshot from a githubkit ``Issue`` (or any object with the same attributes)."""
        state = getattr(issue, "state", TargetState.OPEN.value)
        return cls(
            number=issue.number,
            title=issue.title or "",
            body=(getattr(issue, "body", None) or "").replace("\r\n", "\n"),
            labels=frozenset(extract_label_names(getattr(issue, "labels", None) or [])),
            state=TargetState(getattr(state, "value", state)),
        )


class Transition(BaseModel):
    """A workflow transition currently available to a Source issue."""

    model_config = ConfigDict(frozen=True)

    id: str
    destination_status: str

    @classmethod
    def from_jira_transition(cls, raw_transition: dict[str, Any]) -> "Transition":
        """Build a transition from the JSON returned by the Jira transitions endpoint."""
        destination = raw_transition.get("to") or {}
        return cls(id=str(raw_transition["id"]), destination_status=destination.get("name", ""))
