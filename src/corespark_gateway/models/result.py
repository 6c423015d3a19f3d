"""
Dispatch result models.

Every gateway operation returns one of these values; failures are data,
not exceptions.
"""

from typing import Optional, Union, Literal
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class FailureKind(str, Enum):
    """Classification of a failed dispatch."""
    UNKNOWN_PROVIDER = "unknown_provider"
    MISSING_CREDENTIAL = "missing_credential"
    PROVIDER_REJECTED = "provider_rejected"
    MALFORMED_RESPONSE = "malformed_response"
    TRANSPORT_ERROR = "transport_error"
    INVALID_REQUEST = "invalid_request"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DispatchSuccess(BaseModel):
    """A completed chat dispatch."""
    status: Literal["success"] = "success"
    content: str
    tokens_consumed: int = Field(ge=0)
    provider_id: str
    provider_name: str
    completed_at: datetime = Field(default_factory=_utcnow)

    @property
    def ok(self) -> bool:
        return True


class DispatchFailure(BaseModel):
    """A classified failure. Always carries a human-readable message."""
    status: Literal["failure"] = "failure"
    kind: FailureKind
    message: str = Field(min_length=1)
    provider_id: str
    provider_name: Optional[str] = None
    status_code: Optional[int] = None

    @property
    def ok(self) -> bool:
        return False


class ImageSuccess(BaseModel):
    """A generated image asset."""
    status: Literal["success"] = "success"
    url: str
    revised_prompt: Optional[str] = None
    provider_id: str
    provider_name: str
    completed_at: datetime = Field(default_factory=_utcnow)

    @property
    def ok(self) -> bool:
        return True


class StreamChunk(BaseModel):
    """A fragment of generated text from a streaming dispatch."""
    type: Literal["chunk"] = "chunk"
    text: str


class StreamSummary(BaseModel):
    """Final item of a successful stream."""
    type: Literal["summary"] = "summary"
    tokens_consumed: int = Field(ge=0)
    provider_id: str
    provider_name: str
    completed_at: datetime = Field(default_factory=_utcnow)


DispatchResult = Union[DispatchSuccess, DispatchFailure]
ImageResult = Union[ImageSuccess, DispatchFailure]
StreamEvent = Union[StreamChunk, StreamSummary, DispatchFailure]
