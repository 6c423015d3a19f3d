"""
Vendor-neutral conversation models.
"""

from typing import List
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Author of a conversation turn."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversationMessage(BaseModel):
    """
    One turn of a conversation.

    Conversations are plain ordered lists of these; order is turn order and
    is preserved through translation.
    """
    role: Role
    content: str
    created_at: datetime = Field(default_factory=_utcnow)

    @classmethod
    def user(cls, content: str) -> "ConversationMessage":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "ConversationMessage":
        return cls(role=Role.ASSISTANT, content=content)

    @classmethod
    def system(cls, content: str) -> "ConversationMessage":
        return cls(role=Role.SYSTEM, content=content)


Conversation = List[ConversationMessage]
