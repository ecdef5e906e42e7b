"""Capability descriptors, requests and results."""

from __future__ import annotations as _annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict

from github_commit_mcp.capabilities.uri import UriTemplate
from github_commit_mcp.exceptions import GitHubCommitMCPError


class CapabilityKind(str, Enum):
    RESOURCE = "resource"
    TOOL = "tool"
    PROMPT = "prompt"


class CapabilityArguments(BaseModel):
    """Base class for the declared input of a capability.

    Fields use snake_case in Python and their wire names as aliases
    (``pullNumber``, ``repoPath``...). Unknown arguments are rejected. String
    values reach handlers exactly as sent.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be blank")
    return value


NonBlankStr = Annotated[str, AfterValidator(_not_blank)]


class ContentItem(BaseModel):
    kind: Literal["text"] = "text"
    text: str


HandlerResult = str | list[ContentItem]
Handler = Callable[[Any], Awaitable[HandlerResult]]


@dataclass(frozen=True)
class CapabilityDescriptor:
    """A named operation offered to clients. Immutable once built."""

    name: str
    kind: CapabilityKind
    arguments: type[CapabilityArguments]
    handler: Handler = field(compare=False)
    description: str = ""
    title: str | None = None
    uri_templates: tuple[UriTemplate, ...] = ()
    mime_type: str = "text/plain"

    @property
    def input_schema(self) -> dict[str, Any]:
        return self.arguments.model_json_schema(by_alias=True)

    def argument_specs(self) -> list[tuple[str, str | None, bool]]:
        """(wire name, description, required) for every declared argument."""
        specs: list[tuple[str, str | None, bool]] = []
        for name, info in self.arguments.model_fields.items():
            specs.append((info.alias or name, info.description, info.is_required()))
        return specs


@dataclass(frozen=True)
class OperationRequest:
    kind: CapabilityKind
    name: str
    arguments: Mapping[str, Any] = field(default_factory=dict)
    session_id: str | None = None


@dataclass(frozen=True)
class OperationResult:
    """Either content or a single failure, never both."""

    content: list[ContentItem] = field(default_factory=list)
    error: GitHubCommitMCPError | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def text(self) -> str:
        return "\n\n".join(item.text for item in self.content)

    @classmethod
    def success(cls, result: HandlerResult) -> OperationResult:
        if isinstance(result, str):
            return cls(content=[ContentItem(text=result)])
        return cls(content=list(result))

    @classmethod
    def failure(cls, error: GitHubCommitMCPError) -> OperationResult:
        return cls(error=error)
