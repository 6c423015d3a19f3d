"""
Gateway data models.
"""

from .provider import (
    Vendor,
    CredentialVendor,
    ProviderCapability,
    ProviderStatus,
    ProviderDescriptor,
)
from .conversation import Role, ConversationMessage, Conversation
from .result import (
    FailureKind,
    DispatchSuccess,
    DispatchFailure,
    DispatchResult,
    ImageSuccess,
    ImageResult,
    StreamChunk,
    StreamSummary,
    StreamEvent,
)

__all__ = [
    "Vendor",
    "CredentialVendor",
    "ProviderCapability",
    "ProviderStatus",
    "ProviderDescriptor",
    "Role",
    "ConversationMessage",
    "Conversation",
    "FailureKind",
    "DispatchSuccess",
    "DispatchFailure",
    "DispatchResult",
    "ImageSuccess",
    "ImageResult",
    "StreamChunk",
    "StreamSummary",
    "StreamEvent",
]
