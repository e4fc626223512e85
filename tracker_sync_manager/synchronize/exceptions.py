"""Exceptions raised while reconciling issues between the Source and Target trackers."""


class TransientNetworkError(Exception):
    """Raised when an adapter call keeps failing with rate limits or transient errors after all retries."""

    def __init__(self, function_name: str, attempts: int, message: str) -> None:
        """Initialize the exception with the failed function name and the number of attempts made."""
        super().__init__(f"{function_name} failed after {attempts} attempt(s): {message}")
        self.function_name = function_name
        self.attempts = attempts


class NoValidTransitionError(Exception):
    """Raised when no transition currently available to a Source issue leads to the desired status.

    This signals a workflow or configuration mismatch and is never retried.
    """

    def __init__(self, issue_key: str, desired_status: str, available_statuses: list[str]) -> None:
        """Initialize the exception with the issue key, desired status, and reachable statuses."""
        available = ", ".join(available_statuses) if available_statuses else "none"
        super().__init__(f"No valid transition found to status '{desired_status}' for {issue_key} (available: {available})")
        self.issue_key = issue_key
        self.desired_status = desired_status
        self.available_statuses = available_statuses


class AmbiguousIdentityError(Exception):
    """Raised when two or more Target issues embed the same Source key."""

    def __init__(self, source_key: str, target_numbers: list[int]) -> None:
        """Initialize the exception with the Source key and the conflicting Target issue numbers."""
        numbers = ", ".join(f"#{number}" for number in target_numbers)
        super().__init__(f"Source issue {source_key} is linked from multiple Target issues: {numbers}")
        self.source_key = source_key
        self.target_numbers = target_numbers


class MalformedMetadataError(Exception):
    """Raised when an identity marker is present in a Target body but cannot be parsed."""

    pass


class IssueSyncError(Exception):
    """Raised when synchronizing a single issue pair fails."""

    def __init__(self, source_key: str | None, target_number: int | None, cause: Exception) -> None:
        """Initialize the exception with the pair identity and the underlying cause."""
        subject = source_key or (f"#{target_number}" if target_number is not None else "unknown issue")
        super().__init__(f"Failed to synchronize {subject}: {cause}")
        self.source_key = source_key
        self.target_number = target_number
        self.cause = cause


class SourceIssueNotFoundError(Exception):
    """Raised when a Source issue referenced by an identity marker no longer exists."""

    def __init__(self, issue_key: str) -> None:
        """Initialize the exception with the missing issue key."""
        super().__init__(f"Source issue {issue_key} does not exist")
        self.issue_key = issue_key
