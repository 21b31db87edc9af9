# backend/app/schemas/conversation.py
"""
Pydantic schemas for conversation API.

Provides request/response models for the per-pair conversation endpoints.
"""

from typing import List, Optional

from pydantic import AliasChoices, Field

from ..core.enums import ParticipantRole
from .base import RequestModel, StandardizedModel, UtcDatetime


class CreateConversationRequest(RequestModel):
    """Get-or-create the conversation between a buyer and a manufacturer."""

    buyer_id: str = Field(min_length=1, validation_alias=AliasChoices("buyerId", "buyer_id"))
    manufacturer_id: str = Field(
        min_length=1, validation_alias=AliasChoices("manufacturerId", "manufacturer_id")
    )


class ArchiveConversationRequest(RequestModel):
    archived: bool = True


class ConversationResponse(StandardizedModel):
    """
    Conversation row as stored.

    Also used as the summary snapshot carried with live ``message:new`` events.
    """

    id: str
    buyer_id: str
    manufacturer_id: str
    created_at: UtcDatetime
    last_message_at: Optional[UtcDatetime] = None
    last_message_text: Optional[str] = None
    is_archived: bool = False


class PeerInfo(StandardizedModel):
    """The other participant, as shown in the conversation list."""

    id: str
    role: ParticipantRole
    display_name: str = Field(alias="displayName")
    online: bool = False


class ConversationListItem(ConversationResponse):
    peer: Optional[PeerInfo] = None
    unread_count: int = 0


class ConversationListResponse(StandardizedModel):
    conversations: List[ConversationListItem]


class CreateConversationResponse(StandardizedModel):
    conversation: ConversationResponse
    created: bool
