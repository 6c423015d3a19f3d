"""
Core gateway components.
"""

from .errors import (
    GatewayError,
    ProviderNotFoundError,
    UnsupportedVendorError,
    NormalizationError,
)
from .credentials import CredentialStore, get_credential_store, reset_credential_store
from .registry import ProviderRegistry, DEFAULT_CATALOG, get_registry
from .config import (
    GatewayConfig,
    GenerationSettings,
    credentials_from_env,
    load_config,
)
from .vault import VaultCredentialSource
from .dispatcher import DispatchCoordinator

__all__ = [
    "GatewayError",
    "ProviderNotFoundError",
    "UnsupportedVendorError",
    "NormalizationError",
    "CredentialStore",
    "get_credential_store",
    "reset_credential_store",
    "ProviderRegistry",
    "DEFAULT_CATALOG",
    "get_registry",
    "GatewayConfig",
    "GenerationSettings",
    "credentials_from_env",
    "load_config",
    "VaultCredentialSource",
    "DispatchCoordinator",
]
