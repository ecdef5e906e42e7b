from __future__ import annotations as _annotations

from collections.abc import Callable, Mapping
from typing import Any

import pydantic

from github_commit_mcp.capabilities.base import (
    CapabilityArguments,
    CapabilityDescriptor,
    CapabilityKind,
    Handler,
    OperationRequest,
    OperationResult,
)
from github_commit_mcp.capabilities.uri import UriTemplate
from github_commit_mcp.exceptions import GitHubCommitMCPError, ValidationError
from github_commit_mcp.utilities.logging import get_logger

logger = get_logger(__name__)


def format_validation_error(name: str, error: pydantic.ValidationError) -> str:
    problems = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"]) or "arguments"
        problems.append(f"{location}: {detail['msg']}")
    return f"Invalid arguments for {name}: " + "; ".join(problems)


class CapabilityRegistry:
    """Holds the resources, tools and prompts the server offers.

    Capabilities are registered once at startup, after which :meth:`seal`
    freezes the set. :meth:`dispatch` validates arguments against the
    declared model, runs the handler and folds any failure into a single
    :class:`OperationResult`.
    """

    def __init__(self) -> None:
        self._capabilities: dict[tuple[CapabilityKind, str], CapabilityDescriptor] = {}
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        self._sealed = True

    def add(self, descriptor: CapabilityDescriptor) -> CapabilityDescriptor:
        if self._sealed:
            raise RuntimeError(f"Cannot register {descriptor.name!r}: the capability registry is sealed")
        key = (descriptor.kind, descriptor.name)
        if key in self._capabilities:
            raise ValueError(f"{descriptor.kind.value.capitalize()} already registered: {descriptor.name}")
        if descriptor.kind is CapabilityKind.RESOURCE and not descriptor.uri_templates:
            raise ValueError(f"Resource {descriptor.name!r} needs at least one URI template")
        self._capabilities[key] = descriptor
        logger.debug("Registered %s %s", descriptor.kind.value, descriptor.name)
        return descriptor

    def _decorator(
        self,
        kind: CapabilityKind,
        name: str,
        arguments: type[CapabilityArguments],
        description: str,
        title: str | None,
        uri_templates: tuple[str, ...] = (),
    ) -> Callable[[Handler], Handler]:
        def decorator(fn: Handler) -> Handler:
            self.add(
                CapabilityDescriptor(
                    name=name,
                    kind=kind,
                    arguments=arguments,
                    handler=fn,
                    description=description or (fn.__doc__ or "").strip(),
                    title=title,
                    uri_templates=tuple(UriTemplate(template) for template in uri_templates),
                )
            )
            return fn

        return decorator

    def resource(
        self,
        name: str,
        *uri_templates: str,
        arguments: type[CapabilityArguments],
        description: str = "",
        title: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a read-only resource addressed by one or more URI templates.

        Template parameters become the handler's arguments, so every template
        parameter must be a field of ``arguments``.
        """
        fields = {info.alias or field_name for field_name, info in arguments.model_fields.items()}
        for template in uri_templates:
            unknown = set(UriTemplate(template).parameters) - fields
            if unknown:
                raise ValueError(
                    f"URI template {template!r} has parameters not declared by {arguments.__name__}: {unknown}"
                )
        return self._decorator(CapabilityKind.RESOURCE, name, arguments, description, title, uri_templates)

    def tool(
        self,
        name: str,
        *,
        arguments: type[CapabilityArguments],
        description: str = "",
        title: str | None = None,
    ) -> Callable[[Handler], Handler]:
        return self._decorator(CapabilityKind.TOOL, name, arguments, description, title)

    def prompt(
        self,
        name: str,
        *,
        arguments: type[CapabilityArguments],
        description: str = "",
        title: str | None = None,
    ) -> Callable[[Handler], Handler]:
        return self._decorator(CapabilityKind.PROMPT, name, arguments, description, title)

    def list_capabilities(self, kind: CapabilityKind) -> list[CapabilityDescriptor]:
        return [descriptor for (k, _), descriptor in self._capabilities.items() if k is kind]

    def get(self, kind: CapabilityKind, name: str) -> CapabilityDescriptor:
        try:
            return self._capabilities[(kind, name)]
        except KeyError:
            raise ValidationError(f"Unknown {kind.value}: {name}") from None

    def match_resource(self, uri: str) -> tuple[CapabilityDescriptor, dict[str, str]]:
        """Find the resource whose template matches ``uri``."""
        for descriptor in self.list_capabilities(CapabilityKind.RESOURCE):
            for template in descriptor.uri_templates:
                params = template.matches(uri)
                if params is not None:
                    return descriptor, params
        raise ValidationError(f"Unknown resource: {uri}")

    def resource_request(self, uri: str, session_id: str | None = None) -> OperationRequest:
        descriptor, params = self.match_resource(uri)
        return OperationRequest(CapabilityKind.RESOURCE, descriptor.name, params, session_id)

    async def read_resource(self, uri: str, session_id: str | None = None) -> OperationResult:
        try:
            request = self.resource_request(uri, session_id)
        except ValidationError as exc:
            logger.warning("resource read failed (session %s): %s", session_id, exc)
            return OperationResult.failure(exc)
        return await self.dispatch(request)

    def validate(self, descriptor: CapabilityDescriptor, arguments: Mapping[str, Any]) -> CapabilityArguments:
        try:
            return descriptor.arguments.model_validate(dict(arguments))
        except pydantic.ValidationError as exc:
            raise ValidationError(format_validation_error(descriptor.name, exc)) from exc

    async def dispatch(self, request: OperationRequest) -> OperationResult:
        """Run one operation; failures come back as a result, not an exception."""
        try:
            descriptor = self.get(request.kind, request.name)
            arguments = self.validate(descriptor, request.arguments)
            result = await descriptor.handler(arguments)
        except GitHubCommitMCPError as exc:
            logger.warning(
                "%s %s failed (session %s): %s",
                request.kind.value,
                request.name,
                request.session_id,
                exc,
            )
            return OperationResult.failure(exc)
        except Exception as exc:
            logger.exception("Unexpected error in %s %s", request.kind.value, request.name)
            return OperationResult.failure(GitHubCommitMCPError(f"Error executing {request.name}: {exc}"))
        return OperationResult.success(result)
