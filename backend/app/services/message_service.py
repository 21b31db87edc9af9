# backend/app/services/message_service.py
"""
Message Service (Message Log orchestration).

Shared by the HTTP routes and the live transport:
- Paginated, thread-filterable history
- Sending: sanitize, enforce body-or-attachment, persist message and
  attachments, refresh the conversation snapshot
- Read marking with cutoff resolution

Realtime side effects are recorded in a ``RealtimeOutbox`` supplied by the
caller and published only after the transaction has committed.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import EmptyMessageException
from ..domain.message_summary import summarize
from ..domain.thread_context import ThreadContext
from ..models.conversation import Conversation
from ..models.message import Message
from ..principal import Participant
from ..repositories.factory import RepositoryFactory
from ..repositories.message_repository import MessageRepository
from ..schemas.message import AttachmentIn
from ..utils.text import sanitize_body
from ..utils.time_utils import ensure_utc, utc_now
from .base import BaseService
from .conversation_service import ConversationService
from .messaging.events import build_new_message_event, build_read_receipt_event
from .messaging.outbox import RealtimeOutbox
from .messaging.rooms import conversation_rooms

logger = logging.getLogger(__name__)


@dataclass
class SentMessage:
    message: Message
    conversation: Conversation


@dataclass
class ReadResult:
    conversation: Conversation
    updated: int
    at: datetime
    up_to_message_id: Optional[str] = None


class MessageService(BaseService):
    """Service for the message log of a conversation."""

    def __init__(
        self,
        db: Session,
        message_repository: Optional[MessageRepository] = None,
        conversation_service: Optional[ConversationService] = None,
    ):
        super().__init__(db)
        self.message_repository = message_repository or RepositoryFactory.create_message_repository(
            db
        )
        self.conversation_service = conversation_service or ConversationService(db)

    @BaseService.measure_operation("list_messages")
    def list_messages(
        self,
        conversation_id: str,
        participant: Participant,
        before: Optional[datetime] = None,
        limit: Optional[int] = None,
        requirement_id: Optional[str] = None,
        ai_design_id: Optional[str] = None,
    ) -> List[Message]:
        """
        One page of history in ascending order.

        Raises:
            NotFoundException / NotParticipantException: via the participant check
            ValidationException: If both thread filters are given
        """
        context = ThreadContext.from_ids(requirement_id, ai_design_id)
        self.conversation_service.get_conversation_for_participant(conversation_id, participant)
        return self.message_repository.list_with_attachments(
            conversation_id,
            before=before,
            limit=limit or settings.message_page_default_limit,
            context=context,
        )

    @BaseService.measure_operation("send_message")
    def send_message(
        self,
        conversation_id: str,
        participant: Participant,
        body: Optional[str] = None,
        attachments: Optional[Sequence[AttachmentIn]] = None,
        client_temp_id: Optional[str] = None,
        requirement_id: Optional[str] = None,
        ai_design_id: Optional[str] = None,
        outbox: Optional[RealtimeOutbox] = None,
    ) -> SentMessage:
        """
        Persist a message from a participant and queue its ``message:new`` event.

        Raises:
            NotFoundException / NotParticipantException: via the participant check
            EmptyMessageException: If the sanitized body is empty and there are
                no attachments
            ValidationException: If both thread ids are given
        """
        conversation = self.conversation_service.get_conversation_for_participant(
            conversation_id, participant
        )
        context = ThreadContext.from_ids(requirement_id, ai_design_id)
        clean_body = sanitize_body(body)
        records = [attachment.to_record() for attachment in attachments or []]
        if not clean_body and not records:
            raise EmptyMessageException()

        summary = summarize(clean_body, records, settings.summary_max_length)

        with self.transaction():
            message = self.message_repository.insert_message(
                conversation_id=conversation.id,
                sender_role=participant.role,
                sender_id=participant.user_id,
                body=clean_body,
                client_temp_id=client_temp_id,
                summary_text=summary,
                context=context,
            )
            self.message_repository.insert_attachments(message.id, records)

        self.db.refresh(conversation)
        self.db.refresh(message, attribute_names=["attachments"])
        self.logger.info(
            f"[MSG] Message {message.id} sent in {conversation.id}",
            extra={
                "sender_id": participant.user_id,
                "attachments": len(records),
                "client_temp_id": client_temp_id,
            },
        )

        if outbox is not None:
            outbox.add(conversation_rooms(conversation), build_new_message_event(message, conversation))
        return SentMessage(message=message, conversation=conversation)

    @BaseService.measure_operation("mark_read")
    def mark_read(
        self,
        conversation_id: str,
        participant: Participant,
        up_to: Optional[datetime] = None,
        message_id: Optional[str] = None,
        outbox: Optional[RealtimeOutbox] = None,
    ) -> ReadResult:
        """
        Mark the other party's messages read strictly before the cutoff.

        The cutoff is ``up_to`` when given, else the creation time of
        ``message_id`` when it names a message of this conversation, else now.
        """
        conversation = self.conversation_service.get_conversation_for_participant(
            conversation_id, participant
        )
        at = up_to or self._resolve_cutoff(conversation.id, message_id)

        with self.transaction():
            updated = self.message_repository.mark_read(conversation.id, participant.user_id, at)

        if updated:
            self.logger.debug(
                f"[MSG] Marked {updated} messages read in {conversation.id}",
                extra={"reader_id": participant.user_id},
            )
        if outbox is not None:
            outbox.add(
                conversation_rooms(conversation),
                build_read_receipt_event(conversation.id, participant.user_id, at, message_id),
            )
        return ReadResult(
            conversation=conversation, updated=updated, at=at, up_to_message_id=message_id
        )

    def _resolve_cutoff(self, conversation_id: str, message_id: Optional[str]) -> datetime:
        if not message_id:
            return utc_now()
        try:
            message = self.message_repository.get_by_id(message_id, load_relationships=False)
        except Exception as exc:
            self.logger.warning(f"[MSG] Cutoff lookup for {message_id} failed: {exc}")
            return utc_now()
        if message is None or message.conversation_id != conversation_id:
            self.logger.info(f"[MSG] Cutoff message {message_id} not found, using now")
            return utc_now()
        return ensure_utc(message.created_at)
