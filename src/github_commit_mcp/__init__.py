__version__ = "1.0.0"

from .exceptions import (  # noqa: E402
    ConfigurationError,
    ExecutionError,
    GitHubCommitMCPError,
    NotFoundError,
    PermissionDeniedError,
    RemoteError,
    RoutingError,
    SourceHostError,
    ValidationError,
)

__all__ = [
    "__version__",
    "ConfigurationError",
    "ExecutionError",
    "GitHubCommitMCPError",
    "NotFoundError",
    "PermissionDeniedError",
    "RemoteError",
    "RoutingError",
    "SourceHostError",
    "ValidationError",
]
