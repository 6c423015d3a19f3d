"""
Provider descriptor models.
"""

from typing import Optional
from enum import Enum

from pydantic import BaseModel, ConfigDict


class Vendor(str, Enum):
    """Upstream API families. Each maps to exactly one adapter."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"


class CredentialVendor(str, Enum):
    """Vendors a credential can be stored for."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    STABILITY = "stability"
    REPLICATE = "replicate"


class ProviderCapability(str, Enum):
    """What a provider produces."""
    TEXT = "text"
    IMAGE = "image"
    MULTIMODAL = "multimodal"


class ProviderStatus(str, Enum):
    """Advertised status. Informational only."""
    ONLINE = "online"
    OFFLINE = "offline"
    LIMITED = "limited"


class ProviderDescriptor(BaseModel):
    """
    Static metadata for one offered model.

    Descriptors are immutable and created once from the catalog.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    vendor: Vendor
    capability: ProviderCapability
    requires_credential: bool = True
    endpoint: str
    max_tokens: Optional[int] = None
    supports_streaming: bool = False
    status: ProviderStatus = ProviderStatus.ONLINE

    @property
    def company(self) -> str:
        """Human-readable vendor name."""
        return VENDOR_DISPLAY_NAMES[self.vendor]

    @property
    def is_conversational(self) -> bool:
        return self.capability in (ProviderCapability.TEXT, ProviderCapability.MULTIMODAL)


VENDOR_DISPLAY_NAMES = {
    Vendor.OPENAI: "OpenAI",
    Vendor.ANTHROPIC: "Anthropic",
    Vendor.GOOGLE: "Google",
}
