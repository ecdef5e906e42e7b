from .base import (
    CapabilityArguments,
    CapabilityDescriptor,
    CapabilityKind,
    ContentItem,
    NonBlankStr,
    OperationRequest,
    OperationResult,
)
from .registry import CapabilityRegistry
from .uri import UriTemplate

__all__ = [
    "CapabilityArguments",
    "CapabilityDescriptor",
    "CapabilityKind",
    "CapabilityRegistry",
    "ContentItem",
    "NonBlankStr",
    "OperationRequest",
    "OperationResult",
    "UriTemplate",
]
