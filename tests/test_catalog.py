import json
from pathlib import Path

import httpx
import pytest

from github_commit_mcp.capabilities import CapabilityKind, OperationRequest
from github_commit_mcp.capabilities.catalog import build_registry
from github_commit_mcp.exceptions import NotFoundError, ValidationError
from github_commit_mcp.github import GitHubClient
from github_commit_mcp.prompts import COMMIT_MESSAGE_INSTRUCTION
from github_commit_mcp.utilities.http import create_github_http_client


class FakeGitHub:
    """Records requests and answers with canned JSON keyed by (method, path)."""

    def __init__(self, routes: dict[tuple[str, str], httpx.Response] | None = None):
        self.routes = routes or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.routes.get((request.method, request.url.path))
        if response is None:
            return httpx.Response(404, json={"message": "Not Found"})
        return response

    def client(self) -> GitHubClient:
        return GitHubClient(http_client=create_github_http_client("token", transport=httpx.MockTransport(self)))


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def registry(fake_github, recording_runner):
    return build_registry(fake_github.client(), recording_runner)


def tool(name: str, **arguments) -> OperationRequest:
    return OperationRequest(CapabilityKind.TOOL, name, arguments)


def test_catalog_contents(registry):
    assert registry.sealed
    assert [d.name for d in registry.list_capabilities(CapabilityKind.RESOURCE)] == ["commits", "pulls"]
    assert [d.name for d in registry.list_capabilities(CapabilityKind.TOOL)] == [
        "generate-commit-message",
        "merge-pull-request",
        "create-pull-request",
        "commit-changes",
    ]
    assert [d.name for d in registry.list_capabilities(CapabilityKind.PROMPT)] == ["commit-message"]


@pytest.mark.anyio
async def test_generate_commit_message_from_changes(registry, recording_runner):
    result = await registry.dispatch(tool("generate-commit-message", changes="foo"))

    assert not result.is_error
    assert result.text == f"{COMMIT_MESSAGE_INSTRUCTION}\n\nfoo"
    assert "Additional context" not in result.text
    assert recording_runner.calls == []


@pytest.mark.anyio
async def test_generate_commit_message_with_context(registry):
    result = await registry.dispatch(tool("generate-commit-message", changes="foo", context="bar"))

    assert result.text == f"{COMMIT_MESSAGE_INSTRUCTION}\n\nfoo\n\nAdditional context:\nbar"


@pytest.mark.anyio
async def test_generate_commit_message_needs_changes_or_repo_path(registry):
    result = await registry.dispatch(tool("generate-commit-message"))

    assert isinstance(result.error, ValidationError)
    assert "Either 'changes' or 'repoPath' is required" in str(result.error)


@pytest.mark.anyio
async def test_generate_commit_message_reads_working_tree(registry, recording_runner, tmp_path: Path):
    recording_runner.responses = {
        ("status",): " M app.py\n",
        ("diff", "--cached"): "",
        ("diff",): "-old\n+new\n",
    }

    result = await registry.dispatch(tool("generate-commit-message", repoPath=str(tmp_path)))

    assert not result.is_error
    assert "Status:\n M app.py" in result.text
    assert "Diff:\n-old\n+new" in result.text
    assert all(directory == tmp_path for directory, _ in recording_runner.calls)


@pytest.mark.anyio
async def test_generate_commit_message_clean_tree(registry, tmp_path: Path):
    result = await registry.dispatch(tool("generate-commit-message", repoPath=str(tmp_path)))

    assert isinstance(result.error, ValidationError)
    assert "No uncommitted changes" in str(result.error)


@pytest.mark.anyio
async def test_commit_changes_stages_named_files(registry, recording_runner, tmp_path: Path):
    recording_runner.responses = {
        ("branch", "--show-current"): "main\n",
        ("rev-parse", "HEAD"): "0123abcd\n",
    }

    result = await registry.dispatch(
        tool("commit-changes", repoPath=str(tmp_path), message="Add a", files=["a.txt"])
    )

    assert result.text == "Commit: 0123abcd\nBranch: main"
    assert recording_runner.commands == [
        ("git", "branch", "--show-current"),
        ("git", "add", "--", "a.txt"),
        ("git", "commit", "-m", "Add a"),
        ("git", "rev-parse", "HEAD"),
    ]


@pytest.mark.anyio
async def test_commit_changes_rejects_empty_file_list(registry, recording_runner, tmp_path: Path):
    result = await registry.dispatch(tool("commit-changes", repoPath=str(tmp_path), message="m", files=[]))

    assert isinstance(result.error, ValidationError)
    assert "files" in str(result.error)
    assert recording_runner.calls == []


@pytest.mark.anyio
async def test_generate_commit_message_keeps_changes_verbatim(registry):
    changes = " M app.py\n@@ -1 +1 @@\n-old\n+new\n"

    result = await registry.dispatch(tool("generate-commit-message", changes=changes, context="  indented\n"))

    assert result.text == f"{COMMIT_MESSAGE_INSTRUCTION}\n\n{changes}\n\nAdditional context:\n  indented\n"


@pytest.mark.anyio
async def test_blank_identifiers_are_rejected(registry, fake_github):
    result = await registry.dispatch(
        tool("create-pull-request", owner="octocat", repo="hello-world", title="t", head="   ", base="main")
    )

    assert isinstance(result.error, ValidationError)
    assert "head" in str(result.error)
    assert fake_github.requests == []


@pytest.mark.anyio
async def test_commit_changes_requires_message(registry, recording_runner, tmp_path: Path):
    result = await registry.dispatch(tool("commit-changes", repoPath=str(tmp_path)))

    assert isinstance(result.error, ValidationError)
    assert recording_runner.calls == []


@pytest.mark.anyio
async def test_merge_pull_request_defaults_to_merge(registry, fake_github):
    fake_github.routes[("PUT", "/repos/octocat/hello-world/pulls/42/merge")] = httpx.Response(
        200, json={"sha": "abc123", "merged": True, "message": "Pull Request successfully merged"}
    )

    result = await registry.dispatch(tool("merge-pull-request", owner="octocat", repo="hello-world", pullNumber=42))

    assert result.text == "Pull request #42 merged\nSHA: abc123\nMessage: Pull Request successfully merged"
    assert json.loads(fake_github.requests[0].content) == {"merge_method": "merge"}


@pytest.mark.anyio
async def test_merge_pull_request_rejects_unknown_method(registry, fake_github):
    result = await registry.dispatch(
        tool("merge-pull-request", owner="octocat", repo="hello-world", pullNumber=42, mergeMethod="octopus")
    )

    assert isinstance(result.error, ValidationError)
    assert fake_github.requests == []


@pytest.mark.anyio
async def test_create_pull_request(registry, fake_github):
    fake_github.routes[("POST", "/repos/octocat/hello-world/pulls")] = httpx.Response(
        201, json={"number": 9, "html_url": "https://github.com/octocat/hello-world/pull/9"}
    )

    result = await registry.dispatch(
        tool(
            "create-pull-request",
            owner="octocat",
            repo="hello-world",
            title="Add login",
            head="feature",
            base="main",
            body="Adds a login page",
        )
    )

    assert result.text == "Created pull request #9\nURL: https://github.com/octocat/hello-world/pull/9"
    assert json.loads(fake_github.requests[0].content)["body"] == "Adds a login page"


@pytest.mark.anyio
async def test_commits_resource(registry, fake_github):
    fake_github.routes[("GET", "/repos/octocat/hello-world/commits")] = httpx.Response(
        200,
        json=[
            {
                "sha": "abc",
                "commit": {"message": "Fix bug", "author": {"name": "Mona", "date": "2024-01-02T00:00:00Z"}},
            },
            {
                "sha": "def",
                "commit": {"message": "Initial", "author": {"name": "Hubot", "date": "2024-01-01T00:00:00Z"}},
            },
        ],
    )

    result = await registry.read_resource("github://octocat/hello-world/commits")

    assert [item.text for item in result.content] == [
        "Commit: abc\nAuthor: Mona\nMessage: Fix bug\nDate: 2024-01-02T00:00:00Z",
        "Commit: def\nAuthor: Hubot\nMessage: Initial\nDate: 2024-01-01T00:00:00Z",
    ]


@pytest.mark.anyio
async def test_commits_resource_for_branch(registry, fake_github):
    fake_github.routes[("GET", "/repos/octocat/hello-world/commits")] = httpx.Response(200, json=[])

    result = await registry.read_resource("github://octocat/hello-world/commits/feature/login")

    assert not result.is_error
    assert fake_github.requests[0].url.params["sha"] == "feature/login"


@pytest.mark.anyio
async def test_commits_resource_missing_repository(registry):
    result = await registry.read_resource("github://nobody/nothing/commits")

    assert isinstance(result.error, NotFoundError)
    assert "nobody/nothing" in str(result.error)


@pytest.mark.anyio
async def test_pulls_resource(registry, fake_github):
    fake_github.routes[("GET", "/repos/octocat/hello-world/pulls")] = httpx.Response(
        200,
        json=[
            {
                "number": 3,
                "title": "Add login",
                "user": {"login": "mona"},
                "state": "open",
                "created_at": "2024-01-01T00:00:00Z",
                "updated_at": "2024-01-03T00:00:00Z",
                "html_url": "https://github.com/octocat/hello-world/pull/3",
            }
        ],
    )

    result = await registry.read_resource("github://octocat/hello-world/pulls")

    assert result.text == (
        "Pull Request #3: Add login\n"
        "Author: mona\n"
        "State: open\n"
        "Created: 2024-01-01T00:00:00Z\n"
        "Updated: 2024-01-03T00:00:00Z"
    )


@pytest.mark.anyio
async def test_commit_message_prompt(registry):
    result = await registry.dispatch(
        OperationRequest(CapabilityKind.PROMPT, "commit-message", {"changes": "foo", "context": "bar"})
    )

    assert result.text == f"{COMMIT_MESSAGE_INSTRUCTION}\n\nfoo\n\nAdditional context:\nbar"


@pytest.mark.anyio
async def test_commit_message_prompt_requires_changes(registry):
    result = await registry.dispatch(OperationRequest(CapabilityKind.PROMPT, "commit-message", {}))

    assert isinstance(result.error, ValidationError)
