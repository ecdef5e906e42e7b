"""Utilities for creating httpx AsyncClient instances for the GitHub API."""

from typing import Any

import httpx

__all__ = ["DEFAULT_GITHUB_API_URL", "create_github_http_client"]

DEFAULT_GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"


def create_github_http_client(
    token: str | None = None,
    base_url: str = DEFAULT_GITHUB_API_URL,
    **kwargs: Any,
) -> httpx.AsyncClient:
    """Create an httpx AsyncClient with GitHub REST defaults.

    Defaults:
    - follow_redirects=True
    - a 30 second timeout
    - the GitHub JSON media type and API version headers
    - bearer authentication when ``token`` is given

    Any keyword argument accepted by httpx.AsyncClient overrides the defaults;
    ``headers`` are merged over the GitHub headers.

    Note:
        The returned AsyncClient must be closed, preferably by using it as an
        async context manager.

    Examples:
        async with create_github_http_client(token) as client:
            response = await client.get("/repos/octocat/hello-world/commits")

        # Against GitHub Enterprise Server
        async with create_github_http_client(token, base_url="https://ghe.example.com/api/v3") as client:
            ...
    """
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
        "User-Agent": "github-commit-mcp",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    headers.update(kwargs.pop("headers", None) or {})

    default_kwargs: dict[str, Any] = {
        "base_url": base_url,
        "follow_redirects": True,
        "timeout": httpx.Timeout(30.0),
    }
    default_kwargs.update(kwargs)
    return httpx.AsyncClient(headers=headers, **default_kwargs)
