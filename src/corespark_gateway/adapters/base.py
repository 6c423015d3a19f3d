"""
Shared adapter types and helpers.

A vendor adapter is a record of plain functions rather than a class
hierarchy; the vendor enum selects the record.
"""

from typing import Any, Callable, Dict, Mapping, Optional, Tuple
from dataclasses import dataclass, field
from enum import Enum

from ..core.config import GenerationSettings
from ..core.errors import NormalizationError
from ..models.conversation import Conversation, Role
from ..models.provider import ProviderDescriptor, Vendor


class AuthPlacement(str, Enum):
    """Where a credential travels on the wire."""
    HEADER = "header"
    QUERY = "query"


@dataclass(frozen=True)
class AuthScheme:
    """How a vendor expects its API key."""
    placement: AuthPlacement
    name: str
    prefix: str = ""
    extra_headers: Mapping[str, str] = field(default_factory=dict)

    def apply(self, secret: str) -> Tuple[Dict[str, str], Dict[str, str]]:
        """
        Build auth headers and query parameters for a request.

        Args:
            secret: Vendor API key

        Returns:
            (headers, params)
        """
        headers = {"Content-Type": "application/json", **self.extra_headers}
        params: Dict[str, str] = {}
        if self.placement == AuthPlacement.HEADER:
            headers[self.name] = f"{self.prefix}{secret}"
        else:
            params[self.name] = secret
        return headers, params


@dataclass(frozen=True)
class NormalizedResponse:
    """Vendor-neutral content and canonical token count."""
    content: str
    tokens_consumed: int


@dataclass(frozen=True)
class StreamRequest:
    """Wire details for a streaming call."""
    url: str
    body: Dict[str, Any]
    params: Dict[str, str] = field(default_factory=dict)


Translator = Callable[
    [ProviderDescriptor, Conversation, Optional[str], GenerationSettings],
    Dict[str, Any],
]


@dataclass(frozen=True)
class VendorAdapter:
    """Translator/normalizer pair plus wire conventions for one vendor family."""
    vendor: Vendor
    auth: AuthScheme
    role_map: Mapping[Role, str]
    defaults: GenerationSettings
    translate: Translator
    normalize: Callable[[Any], NormalizedResponse]
    count_tokens: Callable[[Mapping[str, Any]], int]
    stream_request: Callable[[ProviderDescriptor, Dict[str, Any]], StreamRequest]
    parse_stream_event: Callable[[Dict[str, Any]], Tuple[Optional[str], Dict[str, Any]]]


def dig(data: Any, *path: Any) -> Any:
    """
    Walk nested dicts/lists, raising NormalizationError on any miss.

    >>> dig({"a": [{"b": 1}]}, "a", 0, "b")
    1
    """
    current = data
    for step in path:
        try:
            current = current[step]
        except (KeyError, IndexError, TypeError):
            where = ".".join(str(p) for p in path)
            raise NormalizationError(f"Response is missing '{where}'")
    return current


def require_text(value: Any, where: str) -> str:
    if not isinstance(value, str):
        raise NormalizationError(f"Response field '{where}' is not text")
    return value


def require_count(value: Any, where: str) -> int:
    """Validate a token counter from a vendor body."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise NormalizationError(f"Response field '{where}' is not a token count")
    return value


def extract_error_message(body: Any) -> Optional[str]:
    """
    Best-effort message from a vendor error body.

    All three vendor families use {"error": {"message": ...}}; some proxies
    return {"error": "..."} instead.
    """
    if not isinstance(body, dict):
        return None
    error = body.get("error")
    if isinstance(error, dict):
        message = error.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    if isinstance(error, str) and error.strip():
        return error.strip()
    return None


@dataclass(frozen=True)
class ImageAdapter:
    """Request/response pair for a vendor's image generation endpoint."""
    vendor: Vendor
    auth: AuthScheme
    sizes: Tuple[str, ...]
    translate: Callable[[ProviderDescriptor, str, str, str], Dict[str, Any]]
    normalize: Callable[[Any], Tuple[str, Optional[str]]]
