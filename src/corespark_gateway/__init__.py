"""
CoreSpark Provider Gateway

A single chat, completion and image interface over several AI vendors:
- Vendor-neutral conversation and result models
- Per-vendor request translation and response normalization
- Credential-driven provider availability
- Failures returned as classified values, never retried
"""

from .core.credentials import CredentialStore, get_credential_store
from .core.registry import ProviderRegistry, get_registry
from .core.config import GatewayConfig, GenerationSettings, load_config, credentials_from_env
from .core.dispatcher import DispatchCoordinator
from .core.errors import GatewayError, UnsupportedVendorError, NormalizationError
from .models import (
    Vendor,
    ProviderCapability,
    ProviderDescriptor,
    Role,
    ConversationMessage,
    FailureKind,
    DispatchSuccess,
    DispatchFailure,
    DispatchResult,
    ImageSuccess,
    StreamChunk,
    StreamSummary,
)

__all__ = [
    "CredentialStore",
    "get_credential_store",
    "ProviderRegistry",
    "get_registry",
    "GatewayConfig",
    "GenerationSettings",
    "load_config",
    "credentials_from_env",
    "DispatchCoordinator",
    "GatewayError",
    "UnsupportedVendorError",
    "NormalizationError",
    "Vendor",
    "ProviderCapability",
    "ProviderDescriptor",
    "Role",
    "ConversationMessage",
    "FailureKind",
    "DispatchSuccess",
    "DispatchFailure",
    "DispatchResult",
    "ImageSuccess",
    "StreamChunk",
    "StreamSummary",
]
__version__ = "1.0.0"
