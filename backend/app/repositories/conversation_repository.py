# backend/app/repositories/conversation_repository.py
"""
Conversation Repository for per-pair messaging.

Provides data access for conversations between buyers and manufacturers.
Pair uniqueness is owned by the database constraint; this repository only
turns a lost creation race back into a lookup.
"""

from typing import Dict, List, Optional, Sequence, cast

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.enums import ParticipantRole
from ..core.exceptions import RepositoryException
from ..models.conversation import Conversation
from ..models.message import Message
from ..utils.text import escape_like
from .base_repository import BaseRepository


class ConversationRepository(BaseRepository[Conversation]):
    """
    Repository for Conversation entity operations.

    Handles:
    - Finding or creating the conversation for a buyer-manufacturer pair
    - Listing a user's conversations, most recently active first
    - Batched unread counts and latest messages for list enrichment
    """

    def __init__(self, db: Session):
        super().__init__(db, Conversation)

    def find_by_pair(self, buyer_id: str, manufacturer_id: str) -> Optional[Conversation]:
        result = (
            self.db.query(Conversation)
            .filter(
                Conversation.buyer_id == buyer_id,
                Conversation.manufacturer_id == manufacturer_id,
            )
            .first()
        )
        return cast(Optional[Conversation], result)

    def get_or_create(self, buyer_id: str, manufacturer_id: str) -> tuple[Conversation, bool]:
        """
        Get the pair's conversation, creating it on first contact.

        Two concurrent creators may both miss the lookup; the loser's insert
        hits the unique constraint, is rolled back, and the winner's row is
        returned instead.

        Returns:
            Tuple of (conversation, created) where created is True if new
        """
        existing = self.find_by_pair(buyer_id, manufacturer_id)
        if existing:
            return existing, False

        conversation = Conversation(buyer_id=buyer_id, manufacturer_id=manufacturer_id)
        self.db.add(conversation)
        try:
            self.db.flush()
            return conversation, True
        except IntegrityError:
            self.db.rollback()
            self.logger.info(
                "[CONV] Lost creation race, re-reading pair",
                extra={"buyer_id": buyer_id, "manufacturer_id": manufacturer_id},
            )

        winner = self.find_by_pair(buyer_id, manufacturer_id)
        if winner is None:
            raise RepositoryException(
                f"Conversation for pair {buyer_id}/{manufacturer_id} vanished after conflict"
            )
        return winner, False

    def find_for_user(
        self,
        user_id: str,
        role: ParticipantRole,
        limit: int = 50,
        offset: int = 0,
        search: Optional[str] = None,
        archived: Optional[bool] = None,
    ) -> Sequence[Conversation]:
        """
        Conversations where the user holds the side of the pair matching their role.

        Ordered by last activity (conversations without messages last), then
        by creation time.
        """
        try:
            column = (
                Conversation.buyer_id
                if ParticipantRole(role) == ParticipantRole.BUYER
                else Conversation.manufacturer_id
            )
            query: Query = self.db.query(Conversation).filter(column == user_id)

            if search:
                query = query.filter(
                    Conversation.last_message_text.ilike(f"%{escape_like(search)}%", escape="\\")
                )
            if archived is not None:
                query = query.filter(Conversation.is_archived == archived)

            query = query.order_by(
                Conversation.last_message_at.desc().nulls_last(),
                Conversation.created_at.desc(),
            )
            if offset > 0:
                query = query.offset(offset)
            return cast(Sequence[Conversation], query.limit(limit).all())
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing conversations for {user_id}: {str(e)}")
            raise RepositoryException(f"Failed to list conversations: {str(e)}")

    def get_unread_counts(self, conversation_ids: List[str], user_id: str) -> Dict[str, int]:
        """
        Unread messages per conversation for ``user_id``.

        A message is unread when the other participant sent it and it has
        not been marked read. Conversations with none are omitted.
        """
        if not conversation_ids:
            return {}
        rows = (
            self.db.query(Message.conversation_id, func.count(Message.id))
            .filter(
                Message.conversation_id.in_(conversation_ids),
                Message.sender_id != user_id,
                Message.is_read == False,  # noqa: E712
            )
            .group_by(Message.conversation_id)
            .all()
        )
        return {conversation_id: int(count) for conversation_id, count in rows}

    def get_unread_count(self, conversation_id: str, user_id: str) -> int:
        return self.get_unread_counts([conversation_id], user_id).get(conversation_id, 0)

    def get_latest_messages(self, conversation_ids: List[str]) -> Dict[str, Message]:
        """
        Most recent message (with attachments) of each conversation.

        Used by the list to derive the preview from the log itself instead
        of trusting the denormalized summary.
        """
        if not conversation_ids:
            return {}
        latest = (
            self.db.query(
                Message.conversation_id.label("conversation_id"),
                func.max(Message.created_at).label("created_at"),
            )
            .filter(Message.conversation_id.in_(conversation_ids))
            .group_by(Message.conversation_id)
            .subquery()
        )
        rows = (
            self.db.query(Message)
            .join(
                latest,
                (Message.conversation_id == latest.c.conversation_id)
                & (Message.created_at == latest.c.created_at),
            )
            .options(selectinload(Message.attachments))
            .all()
        )
        result: Dict[str, Message] = {}
        for message in rows:
            # Same-instant messages: ULIDs sort by creation
            current = result.get(message.conversation_id)
            if current is None or message.id > current.id:
                result[message.conversation_id] = message
        return result

    def set_archived(self, conversation_id: str, archived: bool) -> Optional[Conversation]:
        return self.update(conversation_id, is_archived=archived)
