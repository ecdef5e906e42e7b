"""Logging utilities for github-commit-mcp."""

import logging
from collections.abc import Mapping
from typing import Any, Literal

from rich.console import Console
from rich.logging import RichHandler

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def get_logger(name: str) -> logging.Logger:
    """Get a logger for ``name``.

    Args:
        name: usually the calling module's ``__name__``

    Returns:
        a logger instance
    """
    return logging.getLogger(name)


def configure_logging(level: LogLevel = "INFO") -> None:
    """Configure logging for the server.

    Everything goes to stderr; stdout carries protocol messages when the
    stdio transport is in use.

    Args:
        level: the log level to use
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def redact_sensitive_data(
    data: Mapping[str, Any] | None,
    sensitive_keys: set[str] | None = None,
) -> Mapping[str, Any] | None:
    """Return a shallow copy with sensitive values replaced by "***".

    Parameters
    ----------
    data:
        Original mapping, typically a settings dump. If *None* the function
        simply returns *None*.
    sensitive_keys:
        Optional set of keys that should be hidden; defaults to the
        credential-bearing keys used by this server.
    """

    if data is None:
        return None

    sensitive_keys = sensitive_keys or {
        "github_token",
        "authorization",
        "access_token",
    }

    return {key: "***" if key.lower() in sensitive_keys else value for key, value in data.items()}
