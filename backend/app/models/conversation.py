# backend/app/models/conversation.py
"""
Conversation model for per-pair messaging.

Each buyer-manufacturer pair has exactly one conversation. It is created
lazily on first contact and carries a denormalized preview of its most
recent message for the conversation list.

Design decisions:
- One conversation per (buyer, manufacturer) pair, enforced by a unique constraint
- Identities live in the identity service; ids are stored without foreign keys
- The summary fields are written only by message insertion
- Conversations are archived, never deleted, in normal operation
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, Column, DateTime, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import ParticipantRole
from ..database import Base


class Conversation(Base):
    """
    Conversation between one buyer and one manufacturer.

    Attributes:
        id: ULID primary key
        buyer_id: Identity of the buyer party
        manufacturer_id: Identity of the manufacturer party
        created_at: When the conversation was created
        last_message_at: When the most recent message was sent
        last_message_text: Summary of the most recent message
        is_archived: Archive flag toggled by either participant
    """

    __tablename__ = "conversations"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    buyer_id = Column(String(64), nullable=False)
    manufacturer_id = Column(String(64), nullable=False)
    created_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    last_message_at = Column(DateTime(timezone=True), nullable=True)
    last_message_text = Column(Text, nullable=True)
    is_archived = Column(Boolean, nullable=False, default=False)

    messages = relationship(
        "Message",
        back_populates="conversation",
        order_by="Message.created_at",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("buyer_id", "manufacturer_id", name="uq_conversations_pair"),
        Index("idx_conversations_buyer", "buyer_id"),
        Index("idx_conversations_manufacturer", "manufacturer_id"),
        Index("idx_conversations_last_message", "last_message_at"),
        {
            "comment": "One conversation per buyer-manufacturer pair",
        },
    )

    def __repr__(self) -> str:
        return (
            f"<Conversation(id={self.id}, buyer={self.buyer_id}, "
            f"manufacturer={self.manufacturer_id})>"
        )

    def participant_id(self, role: ParticipantRole) -> str:
        return str(self.buyer_id if role == ParticipantRole.BUYER else self.manufacturer_id)

    def is_participant(self, user_id: str, role: Optional[ParticipantRole] = None) -> bool:
        """
        Check if a user is a participant in this conversation.

        When a role is given the identity must hold that side of the pair,
        so a buyer id can never act as the manufacturer party.
        """
        if role is None:
            return user_id in (self.buyer_id, self.manufacturer_id)
        return self.participant_id(ParticipantRole(role)) == user_id

    def participant_ids(self) -> tuple[str, str]:
        return str(self.buyer_id), str(self.manufacturer_id)
