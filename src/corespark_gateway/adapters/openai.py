"""
OpenAI chat completions and image generation wire format.
"""

from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..core.config import GenerationSettings
from ..models.conversation import Conversation, Role
from ..models.provider import ProviderDescriptor, Vendor
from .base import (
    AuthPlacement,
    AuthScheme,
    ImageAdapter,
    NormalizedResponse,
    StreamRequest,
    VendorAdapter,
    dig,
    require_count,
    require_text,
)

AUTH = AuthScheme(placement=AuthPlacement.HEADER, name="Authorization", prefix="Bearer ")

ROLE_MAP: Mapping[Role, str] = {
    Role.USER: "user",
    Role.ASSISTANT: "assistant",
    Role.SYSTEM: "system",
}

DEFAULTS = GenerationSettings()

IMAGE_SIZES = ("1024x1024", "1024x1792", "1792x1024")
DEFAULT_IMAGE_SIZE = "1024x1024"


def translate(
    descriptor: ProviderDescriptor,
    conversation: Conversation,
    system_prompt: Optional[str] = None,
    settings: GenerationSettings = DEFAULTS,
) -> Dict[str, Any]:
    """Build a /chat/completions body. The system prompt becomes a leading message."""
    messages: List[Dict[str, str]] = []
    if system_prompt:
        messages.append({"role": ROLE_MAP[Role.SYSTEM], "content": system_prompt})
    messages.extend(
        {"role": ROLE_MAP[m.role], "content": m.content} for m in conversation
    )

    body: Dict[str, Any] = {
        "model": descriptor.id,
        "messages": messages,
        "max_tokens": settings.max_tokens_for(descriptor),
    }
    if settings.temperature is not None:
        body["temperature"] = settings.temperature
    return body


def count_tokens(usage: Mapping[str, Any]) -> int:
    """OpenAI reports a single total."""
    return require_count(dig(usage, "total_tokens"), "usage.total_tokens")


def normalize(data: Any) -> NormalizedResponse:
    content = dig(data, "choices", 0, "message", "content")
    return NormalizedResponse(
        content=require_text(content, "choices.0.message.content"),
        tokens_consumed=count_tokens(dig(data, "usage")),
    )


def stream_request(descriptor: ProviderDescriptor, body: Dict[str, Any]) -> StreamRequest:
    return StreamRequest(
        url=descriptor.endpoint,
        body={**body, "stream": True, "stream_options": {"include_usage": True}},
    )


def parse_stream_event(event: Dict[str, Any]) -> Tuple[Optional[str], Dict[str, Any]]:
    """Text delta and usage from one chat.completion.chunk."""
    text = None
    choices = event.get("choices") or []
    if choices:
        text = (choices[0].get("delta") or {}).get("content")
    usage = event.get("usage") or {}
    return text, dict(usage)


def translate_image(
    descriptor: ProviderDescriptor,
    prompt: str,
    size: str = DEFAULT_IMAGE_SIZE,
    quality: str = "standard",
) -> Dict[str, Any]:
    """Build an /images/generations body for a single image."""
    return {
        "model": descriptor.id,
        "prompt": prompt,
        "size": size,
        "quality": quality,
        "n": 1,
    }


def normalize_image(data: Any) -> Tuple[str, Optional[str]]:
    """
    Extract the asset URL from an image response.

    Returns:
        (url, revised_prompt)
    """
    url = require_text(dig(data, "data", 0, "url"), "data.0.url")
    revised = dig(data, "data", 0).get("revised_prompt")
    return url, revised if isinstance(revised, str) else None


ADAPTER = VendorAdapter(
    vendor=Vendor.OPENAI,
    auth=AUTH,
    role_map=ROLE_MAP,
    defaults=DEFAULTS,
    translate=translate,
    normalize=normalize,
    count_tokens=count_tokens,
    stream_request=stream_request,
    parse_stream_event=parse_stream_event,
)

IMAGE_ADAPTER = ImageAdapter(
    vendor=Vendor.OPENAI,
    auth=AUTH,
    sizes=IMAGE_SIZES,
    translate=translate_image,
    normalize=normalize_image,
)
