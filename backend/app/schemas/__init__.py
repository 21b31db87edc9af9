# backend/app/schemas/__init__.py
"""
Pydantic schemas for the Groupo messaging backend.
"""

from .base_responses import ErrorResponse, SuccessResponse
from .conversation import (
    ArchiveConversationRequest,
    ConversationListItem,
    ConversationListResponse,
    ConversationResponse,
    CreateConversationRequest,
    CreateConversationResponse,
    PeerInfo,
)
from .message import (
    AttachmentIn,
    AttachmentResponse,
    MarkReadRequest,
    MarkReadResponse,
    MessageResponse,
    MessagesResponse,
    SendMessageRequest,
)
from .realtime import ReadEvent, SendMessageEvent, TypingEvent

__all__ = [
    "ArchiveConversationRequest",
    "AttachmentIn",
    "AttachmentResponse",
    "ConversationListItem",
    "ConversationListResponse",
    "ConversationResponse",
    "CreateConversationRequest",
    "CreateConversationResponse",
    "ErrorResponse",
    "MarkReadRequest",
    "MarkReadResponse",
    "MessageResponse",
    "MessagesResponse",
    "PeerInfo",
    "ReadEvent",
    "SendMessageEvent",
    "SendMessageRequest",
    "SuccessResponse",
    "TypingEvent",
]
