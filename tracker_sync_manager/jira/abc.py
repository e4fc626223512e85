"""Base ABC for Source tracker clients."""

from abc import ABC, abstractmethod
from typing import Any

from tracker_sync_manager.schemas.issues import SourceIssue, Transition


class SourceTrackerBase(ABC):
    """Base ABC for Source tracker clients."""

    # Issue CRUD
    @abstractmethod
    async def list_issues(self, jql: str) -> list[SourceIssue]:
        """List every issue matching a JQL query."""
        pass

    @abstractmethod
    async def get_issue(self, issue_key: str) -> SourceIssue:
        """Get a single issue by key."""
        pass

    @abstractmethod
    async def create_issue(self, fields: dict[str, Any]) -> str:
        """Create an issue and return its key."""
        pass

    @abstractmethod
    async def update_issue(self, issue_key: str, fields: dict[str, Any]) -> None:
        """Update fields of an issue."""
        pass

    # Workflow transitions
    @abstractmethod
    async def list_available_transitions(self, issue_key: str) -> list[Transition]:
        """List the transitions currently available to an issue."""
        pass

    @abstractmethod
    async def apply_transition(self, issue_key: str, transition_id: str) -> None:
        """Execute a transition on an issue by its identifier."""
        pass
