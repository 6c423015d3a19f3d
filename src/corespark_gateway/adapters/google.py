"""
Google Generative Language (Gemini) wire format.
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

AUTH = AuthScheme(placement=AuthPlacement.QUERY, name="key")

# Gemini has no system role in "contents"; system turns are sent as user turns
ROLE_MAP: Mapping[Role, str] = {
    Role.USER: "user",
    Role.ASSISTANT: "model",
    Role.SYSTEM: "user",
}

DEFAULTS = GenerationSettings()


def _content(role: str, text: str) -> Dict[str, Any]:
    return {"parts": [{"text": text}], "role": role}


def translate(
    descriptor: ProviderDescriptor,
    conversation: Conversation,
    system_prompt: Optional[str] = None,
    settings: GenerationSettings = DEFAULTS,
) -> Dict[str, Any]:
    """Build a :generateContent body. The system prompt becomes a leading user turn."""
    contents = []
    if system_prompt:
        contents.append(_content(ROLE_MAP[Role.SYSTEM], system_prompt))
    contents.extend(_content(ROLE_MAP[m.role], m.content) for m in conversation)

    generation_config: Dict[str, Any] = {
        "maxOutputTokens": settings.max_tokens_for(descriptor),
    }
    if settings.temperature is not None:
        generation_config["temperature"] = settings.temperature

    return {"contents": contents, "generationConfig": generation_config}


def count_tokens(usage: Mapping[str, Any]) -> int:
    """Gemini reports a single total; absent metadata counts as zero."""
    if not usage:
        return 0
    return require_count(dig(usage, "totalTokenCount"), "usageMetadata.totalTokenCount")


def _candidate_text(candidate: Any) -> str:
    parts = dig(candidate, "content", "parts")
    if not isinstance(parts, list) or not parts:
        raise NormalizationError("Response candidate has no parts")
    return "".join(
        require_text(part.get("text"), "candidates.0.content.parts.text")
        for part in parts
        if isinstance(part, dict) and "text" in part
    )


def normalize(data: Any) -> NormalizedResponse:
    candidate = dig(data, "candidates", 0)
    usage = data.get("usageMetadata") or {}
    return NormalizedResponse(
        content=_candidate_text(candidate),
        tokens_consumed=count_tokens(usage),
    )


def stream_request(descriptor: ProviderDescriptor, body: Dict[str, Any]) -> StreamRequest:
    """Streaming uses the sibling :streamGenerateContent method in SSE mode."""
    url = descriptor.endpoint.replace(":generateContent", ":streamGenerateContent")
    return StreamRequest(url=url, body=body, params={"alt": "sse"})


def parse_stream_event(event: Dict[str, Any]) -> Tuple[Optional[str], Dict[str, Any]]:
    """Text and running usage from one streamed GenerateContentResponse."""
    text = None
    candidates = event.get("candidates") or []
    if candidates:
        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(p["text"] for p in parts if isinstance(p, dict) and "text" in p) or None
    return text, dict(event.get("usageMetadata") or {})


ADAPTER = VendorAdapter(
    vendor=Vendor.GOOGLE,
    auth=AUTH,
    role_map=ROLE_MAP,
    defaults=DEFAULTS,
    translate=translate,
    normalize=normalize,
    count_tokens=count_tokens,
    stream_request=stream_request,
    parse_stream_event=parse_stream_event,
)
