"""Contains exceptions raised when reconciling application configuration."""


class GitHubAuthenticationConfigurationUndefinedError(Exception):
    """Raised when the GitHub authentication configuration is undefined."""

    pass


class JiraAuthenticationConfigurationUndefinedError(Exception):
    """Raised when the Jira authentication configuration is incomplete."""

    pass


class SyncConfigurationError(Exception):
    """Raised when the sync configuration is empty or self-contradictory.

    Errors of this kind are fatal to the whole reconciliation pass and are
    raised before any tracker is contacted.
    """

    def __init__(self, problems: list[str]) -> None:
        """Initialize the exception with every problem found in the configuration."""
        super().__init__("Invalid sync configuration: " + "; ".join(problems))
        self.problems = problems
