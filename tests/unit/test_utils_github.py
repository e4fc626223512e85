"""Contains unit tests for the utils.github module."""

import pytest

from tracker_sync_manager.utils.github import build_issue_url, split_repository_in_configuration, web_url_from_api_url


@pytest.mark.asyncio
async def test_split_repository_valid() -> None:
    """Test splitting a valid owner/repo string."""
    owner, repo = await split_repository_in_configuration("octocat/Hello-World")
    assert owner == "octocat"
    assert repo == "Hello-World"


@pytest.mark.asyncio
async def test_split_repository_missing() -> None:
    """Test that ValueError is raised if repo is None."""
    with pytest.raises(ValueError, match="A Target repository is required in config."):
        await split_repository_in_configuration(None)


@pytest.mark.asyncio
async def test_split_repository_malformed_no_slash() -> None:
    """Test that ValueError is raised if repo is malformed (no slash)."""
    with pytest.raises(ValueError):
        await split_repository_in_configuration("octocat-HelloWorld")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "malformed_repo",
    [
        pytest.param("", id="empty string"),
        pytest.param("/", id="only a slash"),
        pytest.param("owner/repo/extra", id="too many parts"),
    ],
)
async def test_split_repository_various_malformed(malformed_repo: str) -> None:
    """Test that ValueError is raised if repo is malformed (various cases)."""
    with pytest.raises(ValueError):
        await split_repository_in_configuration(malformed_repo)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "repo_input,expected_owner,expected_repo",
    [
        pytest.param("octocat/Hello-World", "octocat", "Hello-World", id="no slashes"),
        pytest.param("/octocat/Hello-World", "octocat", "Hello-World", id="leading slash"),
        pytest.param("octocat/Hello-World/", "octocat", "Hello-World", id="trailing slash"),
        pytest.param("/octocat/Hello-World/", "octocat", "Hello-World", id="both slashes"),
    ],
)
async def test_split_repository_strips_slashes(repo_input: str, expected_owner: str, expected_repo: str) -> None:
    """Test that leading/trailing slashes are stripped and owner/repo are parsed correctly."""
    owner, repo = await split_repository_in_configuration(repo_input)
    assert owner == expected_owner
    assert repo == expected_repo


@pytest.mark.parametrize(
    "repo,web_url,expected",
    [
        pytest.param("octocat/Hello-World", "https://github.com", "https://github.com/octocat/Hello-World/issues/7", id="github.com"),
        pytest.param("octocat/Hello-World", "https://github.com/", "https://github.com/octocat/Hello-World/issues/7", id="trailing slash on web url"),
        pytest.param("/octocat/Hello-World/", "https://ghe.example.com", "https://ghe.example.com/octocat/Hello-World/issues/7", id="enterprise server"),
    ],
)
def test_build_issue_url(repo: str, web_url: str, expected: str) -> None:
    """Test that issue URLs are built from the repository and web base URL."""
    assert build_issue_url(repo, 7, web_url) == expected


@pytest.mark.parametrize(
    "api_url,expected",
    [
        pytest.param("https://api.github.com", "https://github.com", id="github.com"),
        pytest.param("https://api.github.com/", "https://github.com", id="github.com with trailing slash"),
        pytest.param("https://ghe.example.com/api/v3", "https://ghe.example.com", id="enterprise server"),
        pytest.param("https://proxy.example.com", "https://proxy.example.com", id="unrecognized url is kept"),
    ],
)
def test_web_url_from_api_url(api_url: str, expected: str) -> None:
    """Test that the browser base URL is derived from the API URL."""
    assert web_url_from_api_url(api_url) == expected
