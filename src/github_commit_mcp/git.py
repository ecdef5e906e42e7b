"""Local git operations built on the shell runner."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from github_commit_mcp.shell import ShellRunner

logger = logging.getLogger(__name__)

GIT = "git"


@dataclass(frozen=True)
class CommitOutcome:
    sha: str
    branch: str


class GitRepository:
    """A working tree on local disk.

    Every method shells out through ``runner``; failures surface as
    :class:`~github_commit_mcp.exceptions.ExecutionError` and are never
    retried, since staging and committing are not safe to repeat blindly.
    """

    def __init__(self, path: str | os.PathLike[str], runner: ShellRunner | None = None):
        self.path = Path(path)
        self.runner = runner or ShellRunner()

    async def _git(self, *args: str) -> str:
        output = await self.runner.run(self.path, GIT, *args)
        return output.stdout

    async def status(self) -> str:
        return await self._git("status", "--short")

    async def diff(self) -> str:
        """Staged and unstaged changes against the index and HEAD."""
        staged = await self._git("diff", "--cached")
        unstaged = await self._git("diff")
        return "\n".join(part for part in (staged.strip(), unstaged.strip()) if part)

    async def describe_changes(self) -> str:
        """Summarize the working tree for a commit-message prompt.

        Returns an empty string when there is nothing to commit.
        """
        status = (await self.status()).rstrip()
        if not status.strip():
            return ""
        diff = await self.diff()
        summary = f"Status:\n{status}"
        if diff:
            summary += f"\n\nDiff:\n{diff}"
        return summary

    async def stage(self, files: Sequence[str] | None = None) -> None:
        """Stage ``files``, or everything when ``files`` is None."""
        if files is None:
            await self._git("add", "--all")
        else:
            await self._git("add", "--", *files)

    async def commit(self, message: str) -> None:
        await self._git("commit", "-m", message)

    async def head(self) -> str:
        return (await self._git("rev-parse", "HEAD")).strip()

    async def current_branch(self) -> str:
        """Name of the checked-out branch, or ``HEAD`` when detached.

        Works before the first commit, unlike ``rev-parse --abbrev-ref``.
        """
        return (await self._git("branch", "--show-current")).strip() or "HEAD"

    async def commit_changes(self, message: str, files: Sequence[str] | None = None) -> CommitOutcome:
        """Stage, commit, then resolve the new HEAD.

        The branch is resolved before anything is staged, so once the commit
        lands the only remaining step is reading HEAD. Each step starts only
        after the previous one succeeded; the first failure propagates and the
        remaining steps are skipped.
        """
        branch = await self.current_branch()
        await self.stage(files)
        await self.commit(message)
        sha = await self.head()
        logger.info("Committed %s on %s in %s", sha, branch, self.path)
        return CommitOutcome(sha=sha, branch=branch)
