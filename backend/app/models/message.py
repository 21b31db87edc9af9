# backend/app/models/message.py
"""
Message and attachment models for the chat system.

A message belongs to exactly one conversation and is immutable after
creation except for its read flag. It may be tagged with one thread
context: a requirement negotiation or an AI-design negotiation.
Attachments are inserted as a batch right after their message and are
cascade-deleted with it.
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import ThreadContextType
from ..database import Base


class Message(Base):
    """
    Message in a buyer-manufacturer conversation.

    ``context_type``/``context_id`` hold the optional thread tag; both are
    set or both are NULL.
    """

    __tablename__ = "messages"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    conversation_id = Column(
        String(26), ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False
    )
    sender_role = Column(String(20), nullable=False)
    sender_id = Column(String(64), nullable=False)
    body = Column(Text, nullable=False, default="")
    context_type = Column(String(20), nullable=True)
    context_id = Column(String(64), nullable=True)
    client_temp_id = Column(String(64), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    conversation = relationship("Conversation", back_populates="messages")
    attachments = relationship(
        "MessageAttachment",
        back_populates="message",
        order_by="MessageAttachment.created_at",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("sender_role IN ('buyer', 'manufacturer')", name="ck_messages_sender_role"),
        CheckConstraint(
            "(context_type IS NULL AND context_id IS NULL) "
            "OR (context_type IN ('requirement', 'ai_design') AND context_id IS NOT NULL)",
            name="ck_messages_thread_context",
        ),
        Index("idx_messages_conversation_created", "conversation_id", "created_at"),
        Index("idx_messages_thread", "conversation_id", "context_type", "context_id"),
        Index("idx_messages_unread", "conversation_id", "is_read", "sender_id"),
    )

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, conversation={self.conversation_id}, sender={self.sender_id})>"

    @property
    def requirement_id(self) -> Optional[str]:
        if self.context_type == ThreadContextType.REQUIREMENT.value:
            return self.context_id
        return None

    @property
    def ai_design_id(self) -> Optional[str]:
        if self.context_type == ThreadContextType.AI_DESIGN.value:
            return self.context_id
        return None


class MessageAttachment(Base):
    """File attached to a message. Immutable once written."""

    __tablename__ = "message_attachments"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    message_id = Column(String(26), ForeignKey("messages.id", ondelete="CASCADE"), nullable=False)
    file_url = Column(Text, nullable=False)
    mime_type = Column(String(255), nullable=True)
    size_bytes = Column(BigInteger, nullable=True)
    file_type = Column(String(20), nullable=True)
    original_name = Column(String(512), nullable=True)
    public_id = Column(String(512), nullable=True)
    thumbnail_url = Column(Text, nullable=True)
    width = Column(Integer, nullable=True)
    height = Column(Integer, nullable=True)
    duration = Column(Float, nullable=True)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    message = relationship("Message", back_populates="attachments")

    __table_args__ = (Index("idx_message_attachments_message", "message_id"),)
