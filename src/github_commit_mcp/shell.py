"""Run version-control commands as isolated child processes."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import anyio

from github_commit_mcp.exceptions import ExecutionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandOutput:
    stdout: str
    stderr: str


class ShellRunner:
    """Spawns one child process per call.

    The working directory is passed to the child only; the server's own
    working directory and environment are never touched, so concurrent calls
    cannot observe each other.
    """

    async def run(self, working_directory: str | os.PathLike[str], *args: str) -> CommandOutput:
        """Run ``args`` inside ``working_directory``.

        Raises:
            ExecutionError: if the process cannot be spawned or exits non-zero.
        """
        if not args:
            raise ValueError("No command given")

        cwd = Path(working_directory)
        logger.debug("Running %s in %s", args, cwd)
        try:
            # Empty stdin keeps children off the stdio transport.
            completed = await anyio.run_process(list(args), input=b"", cwd=cwd, check=False)
        except OSError as exc:
            logger.warning("Could not spawn %s in %s: %s", args[0], cwd, exc)
            raise ExecutionError(args, str(exc)) from exc

        stdout = completed.stdout.decode("utf-8", errors="replace")
        stderr = completed.stderr.decode("utf-8", errors="replace")
        if completed.returncode != 0:
            logger.warning("%s exited with status %d in %s", args, completed.returncode, cwd)
            raise ExecutionError(args, stderr, completed.returncode)
        return CommandOutput(stdout=stdout, stderr=stderr)
