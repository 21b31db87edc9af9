# backend/app/routes/v1/conversations.py
"""
Conversations routes - API v1

Versioned conversation endpoints under /api/v1/conversations.
All business logic delegated to ConversationService / MessageService.

Routes have ZERO direct DB access - all operations go through service layer.
Blocking service calls run in a worker thread; realtime side effects are
published from the outbox after the service has committed.

Endpoints:
    GET /                                                  -> List user's conversations
    POST /                                                 -> Get-or-create a conversation
    GET /{conversation_id}                                 -> Conversation details
    PATCH /{conversation_id}/archive                       -> Archive / unarchive
    GET /{conversation_id}/messages                        -> Ascending message page
    GET /{conversation_id}/messages/requirement/{id}       -> Requirement thread
    GET /{conversation_id}/messages/ai-design/{id}         -> AI-design thread
    POST /{conversation_id}/messages                       -> Send a message
    POST /{conversation_id}/read                           -> Mark messages read
"""

import asyncio
from datetime import datetime
import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, Response, status

from ...api.dependencies.auth import get_current_participant
from ...api.dependencies.services import (
    get_conversation_service,
    get_message_service,
    get_presence_registry,
    get_realtime_outbox,
)
from ...core.config import settings
from ...core.constants import ULID_PATH_PATTERN
from ...models.message import Message
from ...principal import Participant
from ...schemas.base_responses import SuccessResponse
from ...schemas.conversation import (
    ArchiveConversationRequest,
    ConversationListItem,
    ConversationListResponse,
    ConversationResponse,
    CreateConversationRequest,
    CreateConversationResponse,
    PeerInfo,
)
from ...schemas.message import (
    MarkReadRequest,
    MarkReadResponse,
    MessageResponse,
    MessagesResponse,
    SendMessageRequest,
)
from ...services.conversation_service import ConversationListEntry, ConversationService
from ...services.message_service import MessageService
from ...services.messaging.outbox import RealtimeOutbox
from ...services.messaging.presence import PresenceRegistry

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["conversations-v1"])

ConversationId = Annotated[str, Path(pattern=ULID_PATH_PATTERN, description="Conversation ULID")]


def _list_item(entry: ConversationListEntry) -> ConversationListItem:
    base = ConversationResponse.model_validate(entry.conversation).model_dump()
    base.update(
        last_message_text=entry.last_message_text,
        last_message_at=entry.last_message_at,
        unread_count=entry.unread_count,
    )
    peer = None
    if entry.peer_id and entry.peer_role and entry.peer_display_name:
        peer = PeerInfo(
            id=entry.peer_id,
            role=entry.peer_role,
            display_name=entry.peer_display_name,
            online=entry.peer_online,
        )
    return ConversationListItem(**base, peer=peer)


def _messages_page(messages: List[Message], limit: int) -> MessagesResponse:
    return MessagesResponse(
        messages=[MessageResponse.model_validate(message) for message in messages],
        has_more=len(messages) >= limit,
    )


@router.get("", response_model=SuccessResponse[ConversationListResponse])
async def list_conversations(
    limit: int = Query(settings.conversation_list_default_limit, ge=1),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None, max_length=200),
    archived: Optional[bool] = Query(None),
    current_user: Participant = Depends(get_current_participant),
    service: ConversationService = Depends(get_conversation_service),
    presence: PresenceRegistry = Depends(get_presence_registry),
) -> SuccessResponse[ConversationListResponse]:
    """
    List the caller's conversations, most recently active first.

    ``limit`` is capped at the configured maximum (100).
    """
    entries = await asyncio.to_thread(
        service.list_conversations,
        current_user,
        limit=limit,
        offset=offset,
        search=search,
        archived=archived,
        is_online=presence.is_online,
    )
    return SuccessResponse[ConversationListResponse](
        data=ConversationListResponse(conversations=[_list_item(entry) for entry in entries])
    )


@router.post("", response_model=SuccessResponse[CreateConversationResponse])
async def create_conversation(
    response: Response,
    request: CreateConversationRequest,
    current_user: Participant = Depends(get_current_participant),
    service: ConversationService = Depends(get_conversation_service),
) -> SuccessResponse[CreateConversationResponse]:
    """
    Get or create the conversation between a buyer and a manufacturer.

    Idempotent: repeated and concurrent calls return the same conversation.
    201 when it was created by this call, 200 otherwise.
    """
    conversation, created = await asyncio.to_thread(
        service.get_or_create_conversation,
        current_user,
        request.buyer_id,
        request.manufacturer_id,
    )
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return SuccessResponse[CreateConversationResponse](
        data=CreateConversationResponse(
            conversation=ConversationResponse.model_validate(conversation),
            created=created,
        )
    )


@router.get("/{conversation_id}", response_model=SuccessResponse[ConversationResponse])
async def get_conversation(
    conversation_id: ConversationId,
    current_user: Participant = Depends(get_current_participant),
    service: ConversationService = Depends(get_conversation_service),
) -> SuccessResponse[ConversationResponse]:
    conversation = await asyncio.to_thread(
        service.get_conversation_for_participant, conversation_id, current_user
    )
    return SuccessResponse[ConversationResponse](
        data=ConversationResponse.model_validate(conversation)
    )


@router.patch("/{conversation_id}/archive", response_model=SuccessResponse[ConversationResponse])
async def set_conversation_archived(
    conversation_id: ConversationId,
    request: ArchiveConversationRequest,
    current_user: Participant = Depends(get_current_participant),
    service: ConversationService = Depends(get_conversation_service),
) -> SuccessResponse[ConversationResponse]:
    conversation = await asyncio.to_thread(
        service.set_archived, conversation_id, current_user, request.archived
    )
    return SuccessResponse[ConversationResponse](
        data=ConversationResponse.model_validate(conversation)
    )


@router.get("/{conversation_id}/messages", response_model=SuccessResponse[MessagesResponse])
async def list_messages(
    conversation_id: ConversationId,
    before: Optional[datetime] = Query(None, description="Exclusive cursor (ISO 8601)"),
    limit: int = Query(
        settings.message_page_default_limit, ge=1, le=settings.message_page_max_limit
    ),
    requirement_id: Optional[str] = Query(None, alias="requirementId"),
    ai_design_id: Optional[str] = Query(None, alias="aiDesignId"),
    current_user: Participant = Depends(get_current_participant),
    service: MessageService = Depends(get_message_service),
) -> SuccessResponse[MessagesResponse]:
    """Ascending page of messages, each with its attachments."""
    messages = await asyncio.to_thread(
        service.list_messages,
        conversation_id,
        current_user,
        before=before,
        limit=limit,
        requirement_id=requirement_id,
        ai_design_id=ai_design_id,
    )
    return SuccessResponse[MessagesResponse](data=_messages_page(messages, limit))


@router.get(
    "/{conversation_id}/messages/requirement/{requirement_id}",
    response_model=SuccessResponse[MessagesResponse],
)
async def list_requirement_thread(
    conversation_id: ConversationId,
    requirement_id: str,
    before: Optional[datetime] = Query(None),
    limit: int = Query(settings.thread_page_max_limit, ge=1, le=settings.thread_page_max_limit),
    current_user: Participant = Depends(get_current_participant),
    service: MessageService = Depends(get_message_service),
) -> SuccessResponse[MessagesResponse]:
    """Messages of one requirement negotiation inside the conversation."""
    messages = await asyncio.to_thread(
        service.list_messages,
        conversation_id,
        current_user,
        before=before,
        limit=limit,
        requirement_id=requirement_id,
    )
    return SuccessResponse[MessagesResponse](data=_messages_page(messages, limit))


@router.get(
    "/{conversation_id}/messages/ai-design/{ai_design_id}",
    response_model=SuccessResponse[MessagesResponse],
)
async def list_ai_design_thread(
    conversation_id: ConversationId,
    ai_design_id: str,
    before: Optional[datetime] = Query(None),
    limit: int = Query(settings.thread_page_max_limit, ge=1, le=settings.thread_page_max_limit),
    current_user: Participant = Depends(get_current_participant),
    service: MessageService = Depends(get_message_service),
) -> SuccessResponse[MessagesResponse]:
    """Messages of one AI-design negotiation inside the conversation."""
    messages = await asyncio.to_thread(
        service.list_messages,
        conversation_id,
        current_user,
        before=before,
        limit=limit,
        ai_design_id=ai_design_id,
    )
    return SuccessResponse[MessagesResponse](data=_messages_page(messages, limit))


@router.post(
    "/{conversation_id}/messages",
    response_model=SuccessResponse[MessageResponse],
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    conversation_id: ConversationId,
    request: SendMessageRequest,
    current_user: Participant = Depends(get_current_participant),
    service: MessageService = Depends(get_message_service),
    outbox: RealtimeOutbox = Depends(get_realtime_outbox),
) -> SuccessResponse[MessageResponse]:
    """
    Send a message with an optional attachment batch.

    400 when the body (after HTML stripping) is empty and there are no
    attachments. Both participants' rooms receive ``message:new``.
    """
    sent = await asyncio.to_thread(
        service.send_message,
        conversation_id,
        current_user,
        body=request.body,
        attachments=request.attachments,
        client_temp_id=request.client_temp_id,
        requirement_id=request.requirement_id,
        ai_design_id=request.ai_design_id,
        outbox=outbox,
    )
    await outbox.dispatch()
    return SuccessResponse[MessageResponse](data=MessageResponse.model_validate(sent.message))


@router.post("/{conversation_id}/read", response_model=SuccessResponse[MarkReadResponse])
async def mark_conversation_read(
    conversation_id: ConversationId,
    request: Optional[MarkReadRequest] = Body(None),
    current_user: Participant = Depends(get_current_participant),
    service: MessageService = Depends(get_message_service),
    outbox: RealtimeOutbox = Depends(get_realtime_outbox),
) -> SuccessResponse[MarkReadResponse]:
    """Mark the other party's messages read up to ``upTo`` (default: now)."""
    result = await asyncio.to_thread(
        service.mark_read,
        conversation_id,
        current_user,
        up_to=request.up_to if request else None,
        outbox=outbox,
    )
    await outbox.dispatch()
    return SuccessResponse[MarkReadResponse](data=MarkReadResponse(updated=result.updated))
