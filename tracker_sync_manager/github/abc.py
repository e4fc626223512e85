"""Base ABC for Target tracker clients."""

from abc import ABC, abstractmethod

from tracker_sync_manager.schemas.issues import TargetIssue, TargetState


class TargetTrackerBase(ABC):
    """Base ABC for Target tracker clients."""

    # Issue CRUD
    @abstractmethod
    async def list_issues(self) -> list[TargetIssue]:
        """List every issue of the Target repository, open and closed."""
        pass

    @abstractmethod
    async def create_issue(self, title: str, body: str, labels: list[str] | None = None) -> TargetIssue:
        """Create an issue in the Target repository."""
        pass

    @abstractmethod
    async def update_issue(
        self,
        issue_number: int,
        title: str | None = None,
        body: str | None = None,
        labels: list[str] | None = None,
        state: TargetState | None = None,
    ) -> TargetIssue:
        """Update an issue in the Target repository. Arguments left as None are not changed."""
        pass

    @abstractmethod
    async def set_state(self, issue_number: int, state: TargetState) -> TargetIssue:
        """Open or close an issue in the Target repository."""
        pass

    @property
    @abstractmethod
    def repository(self) -> str:
        """The Target repository in 'owner/repo' form."""
        pass
