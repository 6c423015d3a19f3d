"""
Provider registry and availability filter.
"""

import logging
from typing import Dict, Iterable, List, Optional

from ..models.provider import ProviderCapability, ProviderDescriptor, Vendor
from .credentials import CredentialStore
from .errors import ProviderNotFoundError

logger = logging.getLogger(__name__)


OPENAI_CHAT_ENDPOINT = "https://api.openai.com/v1/chat/completions"
OPENAI_IMAGE_ENDPOINT = "https://api.openai.com/v1/images/generations"
ANTHROPIC_MESSAGES_ENDPOINT = "https://api.anthropic.com/v1/messages"
GOOGLE_GENERATE_ENDPOINT = (
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
)

DEFAULT_CATALOG = (
    ProviderDescriptor(
        id="gpt-4-turbo",
        name="GPT-4 Turbo",
        vendor=Vendor.OPENAI,
        capability=ProviderCapability.MULTIMODAL,
        endpoint=OPENAI_CHAT_ENDPOINT,
        max_tokens=128000,
        supports_streaming=True,
    ),
    ProviderDescriptor(
        id="gpt-3.5-turbo",
        name="GPT-3.5 Turbo",
        vendor=Vendor.OPENAI,
        capability=ProviderCapability.TEXT,
        endpoint=OPENAI_CHAT_ENDPOINT,
        max_tokens=16385,
        supports_streaming=True,
    ),
    ProviderDescriptor(
        id="claude-3-opus",
        name="Claude 3 Opus",
        vendor=Vendor.ANTHROPIC,
        capability=ProviderCapability.MULTIMODAL,
        endpoint=ANTHROPIC_MESSAGES_ENDPOINT,
        max_tokens=200000,
        supports_streaming=True,
    ),
    ProviderDescriptor(
        id="claude-3-sonnet",
        name="Claude 3 Sonnet",
        vendor=Vendor.ANTHROPIC,
        capability=ProviderCapability.MULTIMODAL,
        endpoint=ANTHROPIC_MESSAGES_ENDPOINT,
        max_tokens=200000,
        supports_streaming=True,
    ),
    ProviderDescriptor(
        id="gemini-pro",
        name="Gemini Pro",
        vendor=Vendor.GOOGLE,
        capability=ProviderCapability.MULTIMODAL,
        endpoint=GOOGLE_GENERATE_ENDPOINT.format(model="gemini-pro"),
        max_tokens=32768,
        supports_streaming=True,
    ),
    ProviderDescriptor(
        id="dall-e-3",
        name="DALL-E 3",
        vendor=Vendor.OPENAI,
        capability=ProviderCapability.IMAGE,
        endpoint=OPENAI_IMAGE_ENDPOINT,
        supports_streaming=False,
    ),
)


class ProviderRegistry:
    """
    Read-only catalog of provider descriptors.

    The catalog is fixed at construction. Availability is derived on demand
    from the catalog and a credential store; nothing is probed over the network.
    """

    def __init__(self, descriptors: Optional[Iterable[ProviderDescriptor]] = None):
        """
        Initialize the registry.

        Args:
            descriptors: Catalog entries. Defaults to DEFAULT_CATALOG.

        Raises:
            ValueError: If two descriptors share an id
        """
        self._providers: Dict[str, ProviderDescriptor] = {}
        for descriptor in (DEFAULT_CATALOG if descriptors is None else descriptors):
            if descriptor.id in self._providers:
                raise ValueError(f"Duplicate provider id: {descriptor.id}")
            self._providers[descriptor.id] = descriptor

    def get(self, provider_id: str) -> Optional[ProviderDescriptor]:
        """Get a descriptor by id, or None."""
        return self._providers.get(provider_id)

    def require(self, provider_id: str) -> ProviderDescriptor:
        """
        Get a descriptor by id.

        Raises:
            ProviderNotFoundError: If the id is not registered
        """
        descriptor = self._providers.get(provider_id)
        if descriptor is None:
            raise ProviderNotFoundError(f"Provider {provider_id} not found", provider=provider_id)
        return descriptor

    def list_providers(self) -> List[ProviderDescriptor]:
        """All descriptors in catalog order."""
        return list(self._providers.values())

    def is_available(self, descriptor: ProviderDescriptor, credentials: CredentialStore) -> bool:
        """
        Check whether a descriptor is usable with the given credentials.

        Credentials are vendor-scoped, so descriptors sharing a vendor are
        always available or unavailable together.
        """
        if not descriptor.requires_credential:
            return True
        return credentials.has_credential(descriptor.vendor.value)

    def list_available(self, credentials: CredentialStore) -> List[ProviderDescriptor]:
        """
        Descriptors usable with the current credentials, in catalog order.

        Args:
            credentials: Store to check against

        Returns:
            Available descriptors
        """
        available = [
            d for d in self._providers.values()
            if self.is_available(d, credentials)
        ]
        logger.debug(f"{len(available)}/{len(self._providers)} providers available")
        return available

    def find_by_capability(self, capability: ProviderCapability) -> List[ProviderDescriptor]:
        """All descriptors offering a capability."""
        return [d for d in self._providers.values() if d.capability == capability]

    def __contains__(self, provider_id: str) -> bool:
        return provider_id in self._providers

    def __len__(self) -> int:
        return len(self._providers)


# Global registry instance
_registry: Optional[ProviderRegistry] = None


def get_registry() -> ProviderRegistry:
    """Get the global provider registry."""
    global _registry
    if _registry is None:
        _registry = ProviderRegistry()
    return _registry
