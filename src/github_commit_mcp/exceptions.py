"""Exceptions raised by github-commit-mcp."""

from __future__ import annotations

from collections.abc import Sequence


class GitHubCommitMCPError(Exception):
    """Base error for github-commit-mcp."""


class ConfigurationError(GitHubCommitMCPError):
    """Required configuration is missing or invalid."""


class ValidationError(GitHubCommitMCPError):
    """Arguments were missing or malformed; nothing external was called."""


class ExecutionError(GitHubCommitMCPError):
    """A local command failed to spawn or exited with a non-zero status.

    Attributes:
        command: the argv that was executed
        returncode: the exit status, or None if the process never started
        stderr: captured standard error text
    """

    def __init__(
        self,
        command: Sequence[str],
        stderr: str,
        returncode: int | None = None,
    ):
        self.command = list(command)
        self.stderr = stderr
        self.returncode = returncode
        detail = stderr.strip() or "no error output"
        if returncode is None:
            message = f"failed to run '{' '.join(self.command)}': {detail}"
        else:
            message = f"'{' '.join(self.command)}' exited with status {returncode}: {detail}"
        super().__init__(message)


class SourceHostError(GitHubCommitMCPError):
    """Error returned by the remote source-hosting API."""


class NotFoundError(SourceHostError):
    """The remote API answered 404."""


class PermissionDeniedError(SourceHostError):
    """The remote API answered 403."""


class RemoteError(SourceHostError):
    """Any other remote API or network failure."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class RoutingError(GitHubCommitMCPError):
    """A message referenced a session id with no open connection."""

    def __init__(self, session_id: str):
        super().__init__(f"Could not find session {session_id}")
        self.session_id = session_id
