"""Sets up the authenticated httpx client for the Jira REST API."""

from typing import TypeAlias

import httpx

JiraClient: TypeAlias = httpx.AsyncClient

DEFAULT_JIRA_TIMEOUT = httpx.Timeout(30.0, connect=10.0)


async def get_jira_client(base_url: str, email: str, api_token: str, transport: httpx.AsyncBaseTransport | None = None) -> JiraClient:
    """Returns an httpx client authenticated against Jira Cloud with an account email and API token."""
    if not (base_url and email and api_token):
        raise RuntimeError("Jira authentication requires base_url, email, and api_token in config.")
    return httpx.AsyncClient(
        base_url=base_url.rstrip("/"),
        auth=httpx.BasicAuth(email, api_token),
        headers={"Accept": "application/json", "Content-Type": "application/json"},
        timeout=DEFAULT_JIRA_TIMEOUT,
        transport=transport,
    )
