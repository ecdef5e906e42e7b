"""Server settings."""

from __future__ import annotations

from typing import Any, Literal

import pydantic
from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from github_commit_mcp.exceptions import ConfigurationError
from github_commit_mcp.utilities.http import DEFAULT_GITHUB_API_URL


class Settings(BaseSettings):
    """github-commit-mcp settings.

    All settings can be configured via environment variables with the prefix
    GITHUB_COMMIT_MCP_, e.g. GITHUB_COMMIT_MCP_LOG_LEVEL=DEBUG. The token is
    also read from GITHUB_TOKEN and the port from PORT.
    """

    model_config = SettingsConfigDict(
        env_prefix="GITHUB_COMMIT_MCP_",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    github_token: SecretStr = Field(
        validation_alias=AliasChoices("github_token", "GITHUB_TOKEN", "GITHUB_COMMIT_MCP_GITHUB_TOKEN"),
    )
    github_api_url: str = DEFAULT_GITHUB_API_URL

    transport: Literal["stdio", "sse"] = "stdio"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # HTTP settings, only used by the SSE transport
    host: str = "127.0.0.1"
    port: int | None = Field(
        default=None,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("port", "PORT", "GITHUB_COMMIT_MCP_PORT"),
    )
    sse_path: str = "/sse"
    message_path: str = "/messages/"

    shutdown_grace_period: float = 5.0
    """Seconds to wait for services to stop before they are cancelled."""

    @pydantic.model_validator(mode="after")
    def _port_required_for_sse(self) -> Settings:
        if self.transport == "sse" and self.port is None:
            raise ValueError("a listening port is required for the sse transport (set PORT or pass --port)")
        return self


def load_settings(**overrides: Any) -> Settings:
    """Build settings from the environment, applying non-None overrides.

    Raises:
        ConfigurationError: if required settings are missing or invalid.
    """
    try:
        return Settings(**{key: value for key, value in overrides.items() if value is not None})
    except pydantic.ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'settings'}: {error['msg']}" for error in exc.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from exc
