# backend/app/schemas/realtime.py
"""
Payloads of client events on the live transport.

Each mirrors the matching HTTP body plus ``conversationId``. A payload
that fails validation is dropped without a reply.
"""

from typing import Optional

from pydantic import AliasChoices, Field

from .base import RequestModel, UtcDatetime
from .message import SendMessageRequest


class ConversationEvent(RequestModel):
    conversation_id: str = Field(
        min_length=1, validation_alias=AliasChoices("conversationId", "conversation_id")
    )


class TypingEvent(ConversationEvent):
    """``typing:start`` / ``typing:stop``."""


class SendMessageEvent(SendMessageRequest, ConversationEvent):
    """``message:send``."""


class ReadEvent(ConversationEvent):
    """``message:read``: cutoff is now, or the creation time of ``messageId``."""

    message_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("messageId", "message_id")
    )
    up_to: Optional[UtcDatetime] = Field(
        default=None, validation_alias=AliasChoices("upTo", "up_to")
    )
