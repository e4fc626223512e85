"""Retry decorator for handling tracker API rate limits and transient errors.

This module provides a decorator that implements bounded retry logic for both
tracker adapters: githubkit errors raised by the Target adapter and httpx
errors raised by the Source adapter. Rate limit headers are respected and
delays grow exponentially. Once the retries are exhausted the failure is
surfaced as a TransientNetworkError.
"""

import asyncio
import functools
import inspect
import time
from typing import Any, Callable, TypeVar

import httpx
import structlog
from githubkit.exception import PrimaryRateLimitExceeded, RequestError, RequestFailed, SecondaryRateLimitExceeded

from tracker_sync_manager.synchronize.exceptions import TransientNetworkError
from tracker_sync_manager.utils.constants import (
    DEFAULT_INITIAL_RETRY_DELAY,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_RETRY_DELAY,
    JIRA_RETRYABLE_STATUS_CODES,
)

logger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _delay_from_headers(headers: Any, function_name: str) -> float | None:
    """Read a wait time from retry-after or x-ratelimit-reset headers, if either is usable."""
    retry_after = headers.get("retry-after")
    if retry_after:
        try:
            return float(retry_after)
        except ValueError:
            logger.warning("Invalid retry-after header value", retry_after=retry_after, function=function_name)
    rate_limit_reset = headers.get("x-ratelimit-reset")
    if rate_limit_reset:
        try:
            reset_timestamp = int(rate_limit_reset)
        except ValueError:
            logger.warning("Invalid x-ratelimit-reset header value", rate_limit_reset=rate_limit_reset, function=function_name)
        else:
            current_timestamp = int(time.time())
            if reset_timestamp > current_timestamp:
                return float(reset_timestamp - current_timestamp + 1)
    return None


def _retry_wait_time(exc: Exception, delay: float, function_name: str) -> float | None:
    """Return how long to wait before retrying after an exception, or None if it must not be retried."""
    if isinstance(exc, (PrimaryRateLimitExceeded, SecondaryRateLimitExceeded)):
        retry_after = getattr(exc, "retry_after", None)
        if retry_after:
            return retry_after.total_seconds()
        return delay
    if isinstance(exc, RequestFailed):
        status_code = exc.response.status_code
        is_rate_limit = status_code == 429 or (status_code == 403 and "rate limit" in str(exc).lower())
        if not (is_rate_limit or status_code in JIRA_RETRYABLE_STATUS_CODES):
            return None
        return _delay_from_headers(exc.response.headers, function_name) or delay
    if isinstance(exc, httpx.HTTPStatusError):
        if exc.response.status_code not in JIRA_RETRYABLE_STATUS_CODES:
            return None
        return _delay_from_headers(exc.response.headers, function_name) or delay
    if isinstance(exc, (RequestError, httpx.TransportError)):
        return delay
    return None


def retry_on_rate_limit(
    max_retries: int = DEFAULT_MAX_RETRIES,
    initial_delay: float = DEFAULT_INITIAL_RETRY_DELAY,
    max_delay: float = DEFAULT_MAX_RETRY_DELAY,
    exponential_base: float = 2.0,
) -> Callable[[F], F]:
    """Decorator for retrying async adapter calls when they hit rate limits or transient failures.

    This decorator handles:
    - GitHub primary and secondary rate limits (403/429)
    - Jira rate limits (429) and transient server errors (5xx)
    - Transport-level failures (connection resets, timeouts)
    - retry-after and x-ratelimit-reset headers

    Args:
        max_retries: Maximum number of retry attempts (default: 5)
        initial_delay: Initial delay in seconds between retries (default: 2.0)
        max_delay: Maximum delay in seconds between retries (default: 60.0)
        exponential_base: Base for exponential backoff calculation (default: 2.0)

    Returns:
        Decorated function with retry logic

    Raises:
        TransientNetworkError: When the call still fails after max_retries retries.

    Example:
        @retry_on_rate_limit()
        async def list_issues(self) -> list[TargetIssue]:
            ...
    """

    def decorator(func: F) -> F:
        if not inspect.iscoroutinefunction(func):
            raise RuntimeError(
                f"Function {func.__name__} decorated with @retry_on_rate_limit must be async. This decorator only supports async functions."
            )

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            delay = initial_delay
            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    wait_time = _retry_wait_time(e, delay, func.__name__)
                    if wait_time is None:
                        raise

                    if attempt == max_retries:
                        logger.error(
                            "Max retries reached for rate limited or transient error",
                            function=func.__name__,
                            attempt=attempt + 1,
                            error_type=type(e).__name__,
                            error=str(e),
                        )
                        raise TransientNetworkError(func.__name__, attempt + 1, str(e)) from e

                    wait_time = min(wait_time, max_delay)
                    logger.warning(
                        f"Transient tracker error, retrying in {wait_time} seconds",
                        function=func.__name__,
                        error_type=type(e).__name__,
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        wait_time=wait_time,
                    )
                    await asyncio.sleep(wait_time)

                    # Exponential backoff for next attempt
                    delay = min(delay * exponential_base, max_delay)

        return async_wrapper  # type: ignore

    return decorator
