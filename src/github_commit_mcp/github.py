"""GitHub REST API adapter.

A thin call-through: arguments are checked, the request is made, and the
response is mapped onto small pydantic models. Ordering is whatever GitHub
returns; nothing is re-sorted locally.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any, Literal

import httpx
from pydantic import BaseModel

from github_commit_mcp.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    RemoteError,
    ValidationError,
)
from github_commit_mcp.utilities.http import DEFAULT_GITHUB_API_URL, create_github_http_client

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
MAX_LIMIT = 100

MergeMethod = Literal["merge", "squash", "rebase"]
MERGE_METHODS: tuple[str, ...] = ("merge", "squash", "rebase")


class CommitSummary(BaseModel):
    sha: str
    author: str | None
    message: str
    date: str | None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> CommitSummary:
        commit = data.get("commit") or {}
        author = commit.get("author") or {}
        return cls(
            sha=data["sha"],
            author=author.get("name"),
            message=commit.get("message", ""),
            date=author.get("date"),
        )


class PullRequestSummary(BaseModel):
    number: int
    title: str
    author: str | None
    state: str
    created_at: str
    updated_at: str
    url: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> PullRequestSummary:
        user = data.get("user") or {}
        return cls(
            number=data["number"],
            title=data["title"],
            author=user.get("login"),
            state=data["state"],
            created_at=data["created_at"],
            updated_at=data["updated_at"],
            url=data.get("html_url"),
        )


class MergeResult(BaseModel):
    sha: str
    merged: bool
    message: str


class CreatedPullRequest(BaseModel):
    number: int
    url: str


def _require(**values: str | None) -> None:
    missing = [name for name, value in values.items() if not value or not value.strip()]
    if missing:
        raise ValidationError(f"Missing required argument(s): {', '.join(missing)}")


def _check_limit(limit: int) -> None:
    if not 1 <= limit <= MAX_LIMIT:
        raise ValidationError(f"limit must be between 1 and {MAX_LIMIT}, got {limit}")


class GitHubClient:
    """Async client for the handful of GitHub endpoints the server needs.

    Use it as an async context manager. When ``http_client`` is passed in the
    caller keeps ownership of it and it is not closed on exit.
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str = DEFAULT_GITHUB_API_URL,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._owns_client = http_client is None
        self._client = http_client or create_github_http_client(token, base_url=base_url)

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self,
        method: str,
        owner: str,
        repo: str,
        path: str,
        **kwargs: Any,
    ) -> Any:
        url = f"/repos/{owner}/{repo}{path}"
        logger.debug("GitHub %s %s", method, url)
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("GitHub request %s %s failed: %s", method, url, exc)
            raise RemoteError(f"GitHub request failed: {exc}") from exc

        if response.status_code == 404:
            raise NotFoundError(f"repository {owner}/{repo} not found")
        if response.status_code == 403:
            raise PermissionDeniedError(
                f"permission denied for {owner}/{repo}: {_error_message(response)}"
            )
        if response.is_error:
            raise RemoteError(
                f"GitHub API error {response.status_code} for {owner}/{repo}: {_error_message(response)}",
                status_code=response.status_code,
            )
        return response.json()

    async def list_commits(
        self,
        owner: str,
        repo: str,
        branch: str | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> list[CommitSummary]:
        """Most recent commits, newest first as GitHub orders them."""
        _require(owner=owner, repo=repo)
        _check_limit(limit)
        params: dict[str, Any] = {"per_page": limit}
        if branch:
            params["sha"] = branch
        data = await self._request("GET", owner, repo, "/commits", params=params)
        return [CommitSummary.from_api(item) for item in data[:limit]]

    async def list_open_pull_requests(
        self,
        owner: str,
        repo: str,
        limit: int = DEFAULT_LIMIT,
    ) -> list[PullRequestSummary]:
        """Open pull requests, most recently updated first."""
        _require(owner=owner, repo=repo)
        _check_limit(limit)
        params = {"state": "open", "sort": "updated", "direction": "desc", "per_page": limit}
        data = await self._request("GET", owner, repo, "/pulls", params=params)
        return [PullRequestSummary.from_api(item) for item in data[:limit]]

    async def merge_pull_request(
        self,
        owner: str,
        repo: str,
        number: int,
        method: MergeMethod = "merge",
        message: str | None = None,
    ) -> MergeResult:
        _require(owner=owner, repo=repo)
        if number < 1:
            raise ValidationError(f"pull request number must be positive, got {number}")
        if method not in MERGE_METHODS:
            raise ValidationError(f"merge method must be one of {', '.join(MERGE_METHODS)}, got {method!r}")
        payload: dict[str, Any] = {"merge_method": method}
        if message:
            payload["commit_message"] = message
        data = await self._request("PUT", owner, repo, f"/pulls/{number}/merge", json=payload)
        return MergeResult(sha=data["sha"], merged=data.get("merged", True), message=data.get("message", ""))

    async def create_pull_request(
        self,
        owner: str,
        repo: str,
        title: str,
        head: str,
        base: str,
        body: str | None = None,
    ) -> CreatedPullRequest:
        _require(owner=owner, repo=repo, title=title, head=head, base=base)
        payload: dict[str, Any] = {"title": title, "head": head, "base": base}
        if body is not None:
            payload["body"] = body
        data = await self._request("POST", owner, repo, "/pulls", json=payload)
        return CreatedPullRequest(number=data["number"], url=data["html_url"])


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.reason_phrase
