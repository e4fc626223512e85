"""Contains utility functions for GitHub interactions."""


async def split_repository_in_configuration(repo: str | None) -> tuple[str, str]:
    """Splits the Target repository in the configuration into owner and repository."""
    if repo is None:
        raise ValueError("A Target repository is required in config.")
    repo = repo.strip("/")
    parts = repo.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError("Repository must be in the format 'owner/repo' with no leading/trailing slashes or extra parts.")
    owner, repository = parts
    return owner, repository


def build_issue_url(repo: str, issue_number: int, web_url: str = "https://github.com") -> str:
    """Builds the browser URL of a Target issue."""
    return f"{web_url.rstrip('/')}/{repo.strip('/')}/issues/{issue_number}"


def web_url_from_api_url(github_api_url: str) -> str:
    """Derives the browser base URL from a GitHub or GitHub Enterprise Server API URL."""
    api_url = github_api_url.rstrip("/")
    if api_url == "https://api.github.com":
        return "https://github.com"
    if api_url.endswith("/api/v3"):
        return api_url[: -len("/api/v3")]
    return api_url
