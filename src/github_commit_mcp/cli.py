"""Command-line entry point."""

from __future__ import annotations

import sys

import anyio
import click

from github_commit_mcp.capabilities.catalog import build_registry
from github_commit_mcp.config import Settings, load_settings
from github_commit_mcp.exceptions import ConfigurationError
from github_commit_mcp.github import GitHubClient
from github_commit_mcp.server import create_server
from github_commit_mcp.services import StdioService, UvicornService
from github_commit_mcp.sessions import SessionRegistry
from github_commit_mcp.sse import create_sse_app
from github_commit_mcp.supervisor import EXIT_FATAL, Service, Supervisor
from github_commit_mcp.utilities.logging import configure_logging, get_logger, redact_sensitive_data

logger = get_logger(__name__)


async def run_server(settings: Settings) -> int:
    """Serve until shutdown and return the process exit status."""
    sessions = SessionRegistry()
    supervisor = Supervisor(sessions, grace_period=settings.shutdown_grace_period)

    async with GitHubClient(settings.github_token.get_secret_value(), base_url=settings.github_api_url) as github:
        server = create_server(build_registry(github))

        service: Service
        if settings.transport == "sse":
            if settings.port is None:
                raise ConfigurationError("a listening port is required for the sse transport")
            app = create_sse_app(server, sessions, sse_path=settings.sse_path, message_path=settings.message_path)
            service = UvicornService(app, settings.host, settings.port, settings.log_level)
            logger.info("Serving SSE on http://%s:%d%s", settings.host, settings.port, settings.sse_path)
        else:
            service = StdioService(server)
            logger.info("Serving on stdio")

        return await supervisor.run(service)


@click.command()
@click.option(
    "--transport",
    type=click.Choice(["stdio", "sse"]),
    default=None,
    help="Transport type [default: stdio]",
)
@click.option("--host", default=None, help="Host to bind for SSE [default: 127.0.0.1]")
@click.option("--port", type=int, default=None, help="Port to listen on for SSE (or set PORT)")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default=None,
    help="Logging level [default: INFO]",
)
def main(transport: str | None, host: str | None, port: int | None, log_level: str | None) -> None:
    """Serve GitHub commit and pull request tools over MCP."""
    try:
        settings = load_settings(
            transport=transport,
            host=host,
            port=port,
            log_level=log_level.upper() if log_level else None,
        )
    except ConfigurationError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(EXIT_FATAL)

    configure_logging(settings.log_level)
    logger.debug("Settings: %s", redact_sensitive_data(settings.model_dump()))
    try:
        status = anyio.run(run_server, settings)
    except ConfigurationError as exc:
        logger.critical("%s", exc)
        sys.exit(EXIT_FATAL)
    sys.exit(status)
