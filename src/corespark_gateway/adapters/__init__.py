"""
Vendor adapters.

Each vendor family contributes one VendorAdapter record. The tables below
are the only place a vendor is wired in, and must cover every Vendor member.
"""

from typing import Any, Dict, Optional, Union

from ..core.config import GenerationSettings
from ..core.errors import UnsupportedVendorError
from ..models.conversation import Conversation
from ..models.provider import ProviderDescriptor, Vendor
from .base import (
    AuthPlacement,
    AuthScheme,
    ImageAdapter,
    NormalizedResponse,
    StreamRequest,
    VendorAdapter,
    extract_error_message,
)
from . import anthropic, google, openai

VENDOR_ADAPTERS: Dict[Vendor, VendorAdapter] = {
    Vendor.OPENAI: openai.ADAPTER,
    Vendor.ANTHROPIC: anthropic.ADAPTER,
    Vendor.GOOGLE: google.ADAPTER,
}

IMAGE_ADAPTERS: Dict[Vendor, ImageAdapter] = {
    Vendor.OPENAI: openai.IMAGE_ADAPTER,
}

AUTH_SCHEMES: Dict[Vendor, AuthScheme] = {
    vendor: adapter.auth for vendor, adapter in VENDOR_ADAPTERS.items()
}

_missing = set(Vendor) - set(VENDOR_ADAPTERS)
if _missing:
    raise RuntimeError(f"No adapter registered for: {sorted(v.value for v in _missing)}")


def _as_vendor(vendor: Union[Vendor, str], provider: Optional[str]) -> Vendor:
    try:
        return Vendor(vendor)
    except ValueError:
        raise UnsupportedVendorError(
            f"Vendor {vendor} is not supported", provider=provider, vendor=str(vendor)
        )


def get_adapter(vendor: Union[Vendor, str], provider: Optional[str] = None) -> VendorAdapter:
    """
    Look up the chat adapter for a vendor.

    Raises:
        UnsupportedVendorError: If the vendor has no adapter
    """
    key = _as_vendor(vendor, provider)
    adapter = VENDOR_ADAPTERS.get(key)
    if adapter is None:
        raise UnsupportedVendorError(
            f"Vendor {key.value} is not supported", provider=provider, vendor=key.value
        )
    return adapter


def get_image_adapter(vendor: Union[Vendor, str], provider: Optional[str] = None) -> ImageAdapter:
    """
    Look up the image adapter for a vendor.

    Raises:
        UnsupportedVendorError: If the vendor cannot generate images
    """
    key = _as_vendor(vendor, provider)
    adapter = IMAGE_ADAPTERS.get(key)
    if adapter is None:
        raise UnsupportedVendorError(
            f"Vendor {key.value} does not support image generation",
            provider=provider,
            vendor=key.value,
        )
    return adapter


def translate(
    descriptor: ProviderDescriptor,
    conversation: Conversation,
    system_prompt: Optional[str] = None,
    settings: Optional[GenerationSettings] = None,
) -> Dict[str, Any]:
    """
    Translate a conversation into the descriptor's vendor request body.

    Args:
        descriptor: Target provider
        conversation: Ordered conversation turns
        system_prompt: Optional system instruction
        settings: Generation settings; vendor defaults if None

    Returns:
        JSON-serializable request body

    Raises:
        UnsupportedVendorError: If the descriptor's vendor has no adapter
    """
    adapter = get_adapter(descriptor.vendor, provider=descriptor.id)
    return adapter.translate(
        descriptor, conversation, system_prompt, settings or adapter.defaults
    )


def normalize(vendor: Union[Vendor, str], data: Any) -> NormalizedResponse:
    """
    Normalize a vendor success body.

    Raises:
        UnsupportedVendorError: If the vendor has no adapter
        NormalizationError: If the body lacks the expected fields
    """
    return get_adapter(vendor).normalize(data)


__all__ = [
    "AUTH_SCHEMES",
    "IMAGE_ADAPTERS",
    "VENDOR_ADAPTERS",
    "AuthPlacement",
    "AuthScheme",
    "ImageAdapter",
    "NormalizedResponse",
    "StreamRequest",
    "VendorAdapter",
    "extract_error_message",
    "get_adapter",
    "get_image_adapter",
    "normalize",
    "translate",
]
