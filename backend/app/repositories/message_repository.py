# backend/app/repositories/message_repository.py
"""
Message Repository for the message log.

Owns message and attachment persistence, cursor pagination, and the
read-flag flip. The denormalized conversation summary is written here,
alongside the message, inside a savepoint so a failed summary write never
undoes the message.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.enums import ParticipantRole
from ..core.exceptions import RepositoryException
from ..core.metrics import CONVERSATION_SUMMARY_FAILURES_TOTAL
from ..domain.thread_context import ThreadContext
from ..models.conversation import Conversation
from ..models.message import Message, MessageAttachment
from .base_repository import BaseRepository


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class MessageRepository(BaseRepository[Message]):
    """Repository for Message and MessageAttachment operations."""

    def __init__(self, db: Session):
        super().__init__(db, Message)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(selectinload(Message.attachments))

    def insert_message(
        self,
        conversation_id: str,
        sender_role: str,
        sender_id: str,
        body: str,
        client_temp_id: Optional[str] = None,
        summary_text: Optional[str] = None,
        context: Optional[ThreadContext] = None,
    ) -> Message:
        """
        Persist a message, then best-effort refresh the conversation summary.

        Callers must have validated that the message has a body or
        attachments. Does NOT commit.
        """
        try:
            message = Message(
                conversation_id=conversation_id,
                sender_role=ParticipantRole(sender_role).value,
                sender_id=sender_id,
                body=body or "",
                client_temp_id=client_temp_id,
                context_type=context.type.value if context else None,
                context_id=context.id if context else None,
            )
            self.db.add(message)
            self.db.flush()
        except SQLAlchemyError as e:
            self.logger.error(f"Error inserting message into {conversation_id}: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to insert message: {str(e)}")

        preview = summary_text if summary_text is not None else message.body
        try:
            with self.db.begin_nested():
                self._update_conversation_summary(conversation_id, message.created_at, preview)
        except SQLAlchemyError as exc:
            CONVERSATION_SUMMARY_FAILURES_TOTAL.inc()
            self.logger.warning(
                f"[MSG] Conversation summary update failed: {exc}",
                extra={"conversation_id": conversation_id, "message_id": message.id},
            )
        return message

    def _update_conversation_summary(
        self, conversation_id: str, last_message_at: datetime, last_message_text: str
    ) -> None:
        self.db.query(Conversation).filter(Conversation.id == conversation_id).update(
            {
                Conversation.last_message_at: last_message_at,
                Conversation.last_message_text: last_message_text,
            }
        )

    def insert_attachments(
        self, message_id: str, attachments: List[Dict[str, Any]]
    ) -> List[MessageAttachment]:
        """
        Persist a batch of already-normalized attachment records for a message.

        Each dict uses column names (file_url, mime_type, ...). Does NOT commit.
        """
        if not attachments:
            return []
        try:
            rows = [MessageAttachment(message_id=message_id, **data) for data in attachments]
            self.db.add_all(rows)
            self.db.flush()
            return rows
        except SQLAlchemyError as e:
            self.logger.error(f"Error inserting attachments for {message_id}: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to insert attachments: {str(e)}")

    def get_with_attachments(self, message_id: str) -> Optional[Message]:
        return self.get_by_id(message_id, load_relationships=True)

    def list_with_attachments(
        self,
        conversation_id: str,
        before: Optional[datetime] = None,
        limit: int = 50,
        context: Optional[ThreadContext] = None,
    ) -> List[Message]:
        """
        One page of history, oldest first.

        The newest ``limit`` messages older than ``before`` (exclusive) are
        fetched newest first, then returned in ascending order.
        """
        try:
            query = self._apply_eager_loading(
                self.db.query(Message).filter(Message.conversation_id == conversation_id)
            )
            if before is not None:
                query = query.filter(Message.created_at < _as_utc(before))
            if context is not None:
                query = query.filter(
                    Message.context_type == context.type.value,
                    Message.context_id == context.id,
                )
            page: Sequence[Message] = (
                query.order_by(Message.created_at.desc(), Message.id.desc()).limit(limit).all()
            )
            return list(reversed(page))
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing messages for {conversation_id}: {str(e)}")
            raise RepositoryException(f"Failed to list messages: {str(e)}")

    def mark_read(self, conversation_id: str, reader_user_id: str, up_to: datetime) -> int:
        """
        Flip the read flag on the other party's messages strictly before ``up_to``.

        Only unread rows are touched, so repeating a cutoff updates nothing.
        Does NOT commit.
        """
        try:
            updated = (
                self.db.query(Message)
                .filter(
                    Message.conversation_id == conversation_id,
                    Message.created_at < _as_utc(up_to),
                    Message.sender_id != reader_user_id,
                    Message.is_read == False,  # noqa: E712
                )
                .update({Message.is_read: True}, synchronize_session=False)
            )
            self.db.flush()
            return int(updated or 0)
        except SQLAlchemyError as e:
            self.logger.error(f"Error marking messages read in {conversation_id}: {str(e)}")
            self.db.rollback()
            raise RepositoryException(f"Failed to mark messages read: {str(e)}")
