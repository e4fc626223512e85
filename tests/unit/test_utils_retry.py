"""Unit tests for the retry_on_rate_limit decorator."""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest
from pytest import MonkeyPatch

from tracker_sync_manager.synchronize.exceptions import TransientNetworkError
from tracker_sync_manager.utils.retry import retry_on_rate_limit


def make_status_error(status_code: int, headers: dict[str, str] | None = None) -> httpx.HTTPStatusError:
    """Create the error httpx raises for an unsuccessful response."""
    request = httpx.Request("GET", "https://example.atlassian.net/rest/api/3/issue/PROJ-1")
    response = httpx.Response(status_code, headers=headers, request=request)
    return httpx.HTTPStatusError(f"{status_code} error", request=request, response=response)


@pytest.fixture
def sleep(monkeypatch: MonkeyPatch) -> AsyncMock:
    """Replace asyncio.sleep so retries do not wait."""
    mock = AsyncMock()
    monkeypatch.setattr(asyncio, "sleep", mock)
    return mock


@pytest.mark.asyncio
async def test_retries_transient_error_then_succeeds(sleep: AsyncMock) -> None:
    """Test that a transient server error is retried with exponential backoff."""
    call = AsyncMock(side_effect=[make_status_error(503), make_status_error(502), "ok"])

    @retry_on_rate_limit(initial_delay=1.0)
    async def fetch() -> str:
        return await call()

    assert await fetch() == "ok"
    assert call.await_count == 3
    assert [args.args[0] for args in sleep.await_args_list] == [1.0, 2.0]


@pytest.mark.asyncio
async def test_retry_after_header_is_respected(sleep: AsyncMock) -> None:
    """Test that the retry-after header of a rate limited response sets the wait time."""
    call = AsyncMock(side_effect=[make_status_error(429, {"retry-after": "7"}), "ok"])

    @retry_on_rate_limit()
    async def fetch() -> str:
        return await call()

    assert await fetch() == "ok"
    sleep.assert_awaited_once_with(7.0)


@pytest.mark.asyncio
async def test_exhausted_retries_raise_transient_network_error(sleep: AsyncMock) -> None:
    """Test that a call still failing after every retry surfaces as TransientNetworkError."""
    call = AsyncMock(side_effect=make_status_error(503))

    @retry_on_rate_limit(max_retries=2, initial_delay=1.0)
    async def fetch() -> str:
        return await call()

    with pytest.raises(TransientNetworkError, match="fetch failed after 3 attempt"):
        await fetch()
    assert call.await_count == 3


@pytest.mark.asyncio
async def test_transport_errors_are_retried(sleep: AsyncMock) -> None:
    """Test that connection failures are retried."""
    call = AsyncMock(side_effect=[httpx.ConnectError("connection reset"), "ok"])

    @retry_on_rate_limit()
    async def fetch() -> str:
        return await call()

    assert await fetch() == "ok"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        pytest.param(make_status_error(404), id="not found"),
        pytest.param(make_status_error(400), id="bad request"),
        pytest.param(ValueError("bad value"), id="unrelated error"),
    ],
)
async def test_permanent_errors_are_not_retried(sleep: AsyncMock, error: Exception) -> None:
    """Test that errors that cannot succeed on retry are raised immediately."""
    call = AsyncMock(side_effect=error)

    @retry_on_rate_limit()
    async def fetch() -> str:
        return await call()

    with pytest.raises(type(error)):
        await fetch()
    assert call.await_count == 1
    sleep.assert_not_awaited()


def test_sync_functions_are_rejected() -> None:
    """Test that decorating a synchronous function fails at decoration time."""
    with pytest.raises(RuntimeError, match="must be async"):

        @retry_on_rate_limit()
        def fetch() -> str:
            return "ok"
