"""
Anthropic messages API wire format.
"""

from typing import Any, Dict, Mapping, Optional, Tuple

from ..core.config import GenerationSettings
from ..core.errors import NormalizationError
from ..models.conversation import Conversation, Role
from ..models.provider import ProviderDescriptor, Vendor
from .base import (
    AuthPlacement,
    AuthScheme,
    NormalizedResponse,
    StreamRequest,
    VendorAdapter,
    dig,
    require_count,
    require_text,
)

ANTHROPIC_VERSION = "2023-06-01"

AUTH = AuthScheme(
    placement=AuthPlacement.HEADER,
    name="x-api-key",
    extra_headers={"anthropic-version": ANTHROPIC_VERSION},
)

# System turns are lifted into the top-level "system" field
ROLE_MAP: Mapping[Role, str] = {
    Role.USER: "user",
    Role.ASSISTANT: "assistant",
}

DEFAULTS = GenerationSettings(temperature=None)


def resolve_system(conversation: Conversation, system_prompt: Optional[str]) -> Optional[str]:
    """
    Pick the single system instruction for the request.

    The system prompt argument counts as preceding the conversation, so the
    last system-role message wins over it.
    """
    system = system_prompt or None
    for message in conversation:
        if message.role == Role.SYSTEM:
            system = message.content
    return system


def translate(
    descriptor: ProviderDescriptor,
    conversation: Conversation,
    system_prompt: Optional[str] = None,
    settings: GenerationSettings = DEFAULTS,
) -> Dict[str, Any]:
    """Build a /messages body."""
    body: Dict[str, Any] = {
        "model": descriptor.id,
        "messages": [
            {"role": ROLE_MAP[m.role], "content": m.content}
            for m in conversation
            if m.role != Role.SYSTEM
        ],
        "max_tokens": settings.max_tokens_for(descriptor),
    }

    system = resolve_system(conversation, system_prompt)
    if system:
        body["system"] = system
    if settings.temperature is not None:
        body["temperature"] = settings.temperature
    return body


def count_tokens(usage: Mapping[str, Any]) -> int:
    """Anthropic reports input and output separately; the canonical count is their sum."""
    input_tokens = require_count(dig(usage, "input_tokens"), "usage.input_tokens")
    output_tokens = require_count(dig(usage, "output_tokens"), "usage.output_tokens")
    return input_tokens + output_tokens


def normalize(data: Any) -> NormalizedResponse:
    blocks = dig(data, "content")
    if not isinstance(blocks, list) or not blocks:
        raise NormalizationError("Response has no content blocks")

    texts = []
    for block in blocks:
        if not isinstance(block, dict):
            raise NormalizationError("Response content block is not an object")
        if block.get("type", "text") == "text":
            texts.append(require_text(block.get("text"), "content.text"))

    return NormalizedResponse(
        content="".join(texts),
        tokens_consumed=count_tokens(dig(data, "usage")),
    )


def stream_request(descriptor: ProviderDescriptor, body: Dict[str, Any]) -> StreamRequest:
    return StreamRequest(url=descriptor.endpoint, body={**body, "stream": True})


def parse_stream_event(event: Dict[str, Any]) -> Tuple[Optional[str], Dict[str, Any]]:
    """Text delta and usage fragments from one server-sent event."""
    event_type = event.get("type")

    if event_type == "content_block_delta":
        delta = event.get("delta") or {}
        if delta.get("type") == "text_delta":
            return delta.get("text"), {}

    elif event_type == "message_start":
        usage = (event.get("message") or {}).get("usage") or {}
        return None, dict(usage)

    elif event_type == "message_delta":
        return None, dict(event.get("usage") or {})

    return None, {}


ADAPTER = VendorAdapter(
    vendor=Vendor.ANTHROPIC,
    auth=AUTH,
    role_map=ROLE_MAP,
    defaults=DEFAULTS,
    translate=translate,
    normalize=normalize,
    count_tokens=count_tokens,
    stream_request=stream_request,
    parse_stream_event=parse_stream_event,
)
