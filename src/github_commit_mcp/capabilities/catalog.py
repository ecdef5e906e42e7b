"""The resources, tools and prompts this server offers."""

from __future__ import annotations as _annotations

from typing import Literal

from pydantic import Field, field_validator

from github_commit_mcp.capabilities.base import CapabilityArguments, ContentItem, NonBlankStr
from github_commit_mcp.capabilities.registry import CapabilityRegistry
from github_commit_mcp.exceptions import ValidationError
from github_commit_mcp.git import GitRepository
from github_commit_mcp.github import CommitSummary, GitHubClient, PullRequestSummary
from github_commit_mcp.prompts import commit_message_prompt
from github_commit_mcp.shell import ShellRunner

SCHEME = "github"


class RepositoryArguments(CapabilityArguments):
    owner: NonBlankStr = Field(description="Repository owner (user or organization)")
    repo: NonBlankStr = Field(description="Repository name")


class CommitsArguments(RepositoryArguments):
    branch: str | None = Field(default=None, description="Branch to list commits from; defaults to the default branch")


class GenerateCommitMessageArguments(CapabilityArguments):
    changes: str | None = Field(default=None, description="Description or diff of the changes")
    context: str | None = Field(default=None, description="Additional context for the commit message")
    repo_path: str | None = Field(
        default=None,
        alias="repoPath",
        description="Local repository to read changes from when 'changes' is not given",
    )


class MergePullRequestArguments(RepositoryArguments):
    pull_number: int = Field(alias="pullNumber", gt=0, description="Pull request number")
    merge_method: Literal["merge", "squash", "rebase"] = Field(
        default="merge", alias="mergeMethod", description="How to merge the pull request"
    )
    commit_message: str | None = Field(default=None, alias="commitMessage", description="Merge commit message")


class CreatePullRequestArguments(RepositoryArguments):
    title: NonBlankStr = Field(description="Pull request title")
    head: NonBlankStr = Field(description="Branch containing the changes")
    base: NonBlankStr = Field(description="Branch to merge into")
    body: str | None = Field(default=None, description="Pull request description")


class CommitChangesArguments(CapabilityArguments):
    repo_path: NonBlankStr = Field(alias="repoPath", description="Path to the local repository")
    message: NonBlankStr = Field(description="Commit message")
    files: list[NonBlankStr] | None = Field(default=None, description="Files to stage; stages everything when omitted")

    @field_validator("files")
    @classmethod
    def _files_not_empty(cls, files: list[str] | None) -> list[str] | None:
        if files is not None and not files:
            raise ValueError("must name at least one file; omit it to stage everything")
        return files


class CommitMessagePromptArguments(CapabilityArguments):
    changes: str = Field(min_length=1, description="Description or diff of the changes")
    context: str | None = Field(default=None, description="Additional context for the commit message")


def format_commit(commit: CommitSummary) -> str:
    return f"Commit: {commit.sha}\nAuthor: {commit.author}\nMessage: {commit.message}\nDate: {commit.date}"


def format_pull_request(pull: PullRequestSummary) -> str:
    return (
        f"Pull Request #{pull.number}: {pull.title}\n"
        f"Author: {pull.author}\n"
        f"State: {pull.state}\n"
        f"Created: {pull.created_at}\n"
        f"Updated: {pull.updated_at}"
    )


def build_registry(github: GitHubClient, runner: ShellRunner | None = None) -> CapabilityRegistry:
    """Register every capability against ``github`` and ``runner`` and seal the registry."""
    runner = runner or ShellRunner()
    registry = CapabilityRegistry()

    @registry.resource(
        "commits",
        f"{SCHEME}://{{owner}}/{{repo}}/commits",
        f"{SCHEME}://{{owner}}/{{repo}}/commits/{{+branch}}",
        arguments=CommitsArguments,
        title="Recent commits",
        description="The 10 most recent commits of a repository, newest first",
    )
    async def commits(args: CommitsArguments) -> list[ContentItem]:
        found = await github.list_commits(args.owner, args.repo, branch=args.branch)
        return [ContentItem(text=format_commit(commit)) for commit in found]

    @registry.resource(
        "pulls",
        f"{SCHEME}://{{owner}}/{{repo}}/pulls",
        arguments=RepositoryArguments,
        title="Open pull requests",
        description="Open pull requests of a repository, most recently updated first",
    )
    async def pulls(args: RepositoryArguments) -> list[ContentItem]:
        found = await github.list_open_pull_requests(args.owner, args.repo)
        return [ContentItem(text=format_pull_request(pull)) for pull in found]

    @registry.tool(
        "generate-commit-message",
        arguments=GenerateCommitMessageArguments,
        description=(
            "Build a prompt asking for a commit message. Pass 'changes', or 'repoPath' to read "
            "the working tree's status and diff."
        ),
    )
    async def generate_commit_message(args: GenerateCommitMessageArguments) -> str:
        changes = args.changes
        if not changes and args.repo_path:
            changes = await GitRepository(args.repo_path, runner).describe_changes()
            if not changes:
                raise ValidationError(f"No uncommitted changes found in {args.repo_path}")
        if not changes:
            raise ValidationError("Either 'changes' or 'repoPath' is required")
        return commit_message_prompt(changes, args.context)

    @registry.tool(
        "merge-pull-request",
        arguments=MergePullRequestArguments,
        description="Merge a pull request",
    )
    async def merge_pull_request(args: MergePullRequestArguments) -> str:
        result = await github.merge_pull_request(
            args.owner,
            args.repo,
            args.pull_number,
            method=args.merge_method,
            message=args.commit_message,
        )
        return f"Pull request #{args.pull_number} merged\nSHA: {result.sha}\nMessage: {result.message}"

    @registry.tool(
        "create-pull-request",
        arguments=CreatePullRequestArguments,
        description="Open a new pull request",
    )
    async def create_pull_request(args: CreatePullRequestArguments) -> str:
        created = await github.create_pull_request(
            args.owner,
            args.repo,
            title=args.title,
            head=args.head,
            base=args.base,
            body=args.body,
        )
        return f"Created pull request #{created.number}\nURL: {created.url}"

    @registry.tool(
        "commit-changes",
        arguments=CommitChangesArguments,
        description="Stage files (or everything) in a local repository and commit them",
    )
    async def commit_changes(args: CommitChangesArguments) -> str:
        outcome = await GitRepository(args.repo_path, runner).commit_changes(args.message, args.files)
        return f"Commit: {outcome.sha}\nBranch: {outcome.branch}"

    @registry.prompt(
        "commit-message",
        arguments=CommitMessagePromptArguments,
        description="Ask the model for a commit message describing the given changes",
    )
    async def commit_message(args: CommitMessagePromptArguments) -> str:
        return commit_message_prompt(args.changes, args.context)

    registry.seal()
    return registry
