"""Expose a :class:`CapabilityRegistry` through the MCP low-level server."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.shared.exceptions import McpError
from pydantic import AnyUrl

from github_commit_mcp import __version__
from github_commit_mcp.capabilities import CapabilityKind, CapabilityRegistry, OperationRequest
from github_commit_mcp.exceptions import GitHubCommitMCPError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

SERVER_NAME = "github-commit-mcp"

# JSON-RPC code MCP reserves for a missing resource.
RESOURCE_NOT_FOUND = -32002


def error_data(error: GitHubCommitMCPError) -> types.ErrorData:
    if isinstance(error, ValidationError):
        code = types.INVALID_PARAMS
    elif isinstance(error, NotFoundError):
        code = RESOURCE_NOT_FOUND
    else:
        code = types.INTERNAL_ERROR
    return types.ErrorData(code=code, message=str(error), data={"type": type(error).__name__})


def create_server(registry: CapabilityRegistry, name: str = SERVER_NAME) -> Server[Any, Any]:
    server: Server[Any, Any] = Server(name, version=__version__)

    def session_id() -> str | None:
        """Session id of the SSE connection the current request arrived on."""
        try:
            request = server.request_context.request
        except LookupError:
            return None
        query_params = getattr(request, "query_params", None)
        return query_params.get("session_id") if query_params is not None else None

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [
            types.Tool(
                name=descriptor.name,
                title=descriptor.title,
                description=descriptor.description,
                inputSchema=descriptor.input_schema,
            )
            for descriptor in registry.list_capabilities(CapabilityKind.TOOL)
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[types.ContentBlock]:
        result = await registry.dispatch(OperationRequest(CapabilityKind.TOOL, name, arguments or {}, session_id()))
        if result.error is not None:
            # The low-level server turns this into an isError tool result.
            raise result.error
        return [types.TextContent(type="text", text=item.text) for item in result.content]

    @server.list_resources()
    async def list_resources() -> list[types.Resource]:
        # Everything is addressed through templates.
        return []

    @server.list_resource_templates()
    async def list_resource_templates() -> list[types.ResourceTemplate]:
        return [
            types.ResourceTemplate(
                uriTemplate=template.template,
                name=descriptor.name,
                title=descriptor.title,
                description=descriptor.description,
                mimeType=descriptor.mime_type,
            )
            for descriptor in registry.list_capabilities(CapabilityKind.RESOURCE)
            for template in descriptor.uri_templates
        ]

    @server.read_resource()
    async def read_resource(uri: AnyUrl) -> Iterable[ReadResourceContents]:
        result = await registry.read_resource(str(uri), session_id())
        if result.error is not None:
            raise McpError(error_data(result.error))
        return [ReadResourceContents(content=item.text, mime_type="text/plain") for item in result.content]

    @server.list_prompts()
    async def list_prompts() -> list[types.Prompt]:
        return [
            types.Prompt(
                name=descriptor.name,
                title=descriptor.title,
                description=descriptor.description,
                arguments=[
                    types.PromptArgument(name=arg_name, description=arg_description, required=required)
                    for arg_name, arg_description, required in descriptor.argument_specs()
                ],
            )
            for descriptor in registry.list_capabilities(CapabilityKind.PROMPT)
        ]

    @server.get_prompt()
    async def get_prompt(name: str, arguments: dict[str, str] | None) -> types.GetPromptResult:
        result = await registry.dispatch(OperationRequest(CapabilityKind.PROMPT, name, arguments or {}, session_id()))
        if result.error is not None:
            raise McpError(error_data(result.error))
        descriptor = registry.get(CapabilityKind.PROMPT, name)
        return types.GetPromptResult(
            description=descriptor.description,
            messages=[
                types.PromptMessage(role="user", content=types.TextContent(type="text", text=result.text)),
            ],
        )

    return server
