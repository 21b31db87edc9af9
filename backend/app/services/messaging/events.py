# backend/app/services/messaging/events.py
"""
Realtime event type definitions and builders.

Every frame on the live transport, in either direction, has this shape:
{
    "event": str,          # Event name, e.g. "message:new"
    "data": dict,          # Event-specific payload
    "schema_version": int, # Schema version (currently 1)
    "timestamp": str,      # ISO 8601 timestamp (server frames only)
}
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from ...models.conversation import Conversation
from ...models.message import Message
from ...schemas.conversation import ConversationResponse
from ...schemas.message import MessageResponse


class ClientEvent(str, Enum):
    """Events a client may send."""

    TYPING_START = "typing:start"
    TYPING_STOP = "typing:stop"
    MESSAGE_SEND = "message:send"
    MESSAGE_READ = "message:read"


class EventType(str, Enum):
    """Events the server publishes to rooms."""

    MESSAGE_NEW = "message:new"
    MESSAGE_READ = "message:read"
    TYPING = "typing"
    PRESENCE = "presence"


# Current schema version - increment when payload structure changes
SCHEMA_VERSION = 1


def build_event(event_type: EventType, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Build a properly structured server frame."""
    return {
        "event": event_type.value,
        "data": payload,
        "schema_version": SCHEMA_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def serialize_message(message: Message) -> Dict[str, Any]:
    return MessageResponse.model_validate(message).model_dump(mode="json")


def serialize_conversation_summary(conversation: Conversation) -> Dict[str, Any]:
    return ConversationResponse.model_validate(conversation).model_dump(mode="json")


def build_new_message_event(message: Message, conversation: Conversation) -> Dict[str, Any]:
    """``message:new`` with the stored message and a fresh conversation snapshot."""
    return build_event(
        EventType.MESSAGE_NEW,
        {
            "message": serialize_message(message),
            "conversationSummary": serialize_conversation_summary(conversation),
        },
    )


def build_read_receipt_event(
    conversation_id: str,
    reader_user_id: str,
    at: datetime,
    up_to_message_id: Optional[str] = None,
) -> Dict[str, Any]:
    return build_event(
        EventType.MESSAGE_READ,
        {
            "conversationId": conversation_id,
            "readerUserId": reader_user_id,
            "upToMessageId": up_to_message_id,
            "at": at.isoformat(),
        },
    )


def build_typing_event(conversation_id: str, user_id: str, is_typing: bool) -> Dict[str, Any]:
    return build_event(
        EventType.TYPING,
        {
            "conversationId": conversation_id,
            "userId": user_id,
            "isTyping": is_typing,
        },
    )


def build_presence_event(user_id: str, online: bool) -> Dict[str, Any]:
    return build_event(EventType.PRESENCE, {"userId": user_id, "online": online})
