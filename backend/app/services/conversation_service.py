# backend/app/services/conversation_service.py
"""
Conversation Service (Conversation Directory).

Handles business logic for the conversation system including:
- Resolving or creating the single conversation of a buyer-manufacturer pair
- Listing a user's conversations with previews, peers and unread counts
- Participant checks shared by the HTTP and live transports
- Archive toggling
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import DEFAULT_BUYER_DISPLAY_NAME, DEFAULT_MANUFACTURER_DISPLAY_NAME
from ..core.enums import ParticipantRole
from ..core.exceptions import (
    ForbiddenException,
    NotFoundException,
    NotParticipantException,
    ValidationException,
)
from ..domain.message_summary import summarize
from ..models.conversation import Conversation
from ..models.message import Message
from ..principal import Participant
from ..repositories.conversation_repository import ConversationRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.profile_repository import ProfileRepository
from .base import BaseService

logger = logging.getLogger(__name__)


@dataclass
class ConversationListEntry:
    """A conversation as shown in the caller's list."""

    conversation: Conversation
    last_message_text: Optional[str]
    last_message_at: Optional[datetime]
    unread_count: int = 0
    peer_id: Optional[str] = None
    peer_role: Optional[ParticipantRole] = None
    peer_display_name: Optional[str] = None
    peer_online: bool = False


class ConversationService(BaseService):
    """
    Service for managing per-pair conversations.

    Handles conversation creation and listing with proper access control.
    """

    def __init__(
        self,
        db: Session,
        conversation_repository: Optional[ConversationRepository] = None,
        profile_repository: Optional[ProfileRepository] = None,
    ):
        super().__init__(db)
        self.conversation_repository = (
            conversation_repository or RepositoryFactory.create_conversation_repository(db)
        )
        self.profile_repository = profile_repository or RepositoryFactory.create_profile_repository(
            db
        )

    @BaseService.measure_operation("get_or_create_conversation")
    def get_or_create_conversation(
        self,
        participant: Participant,
        buyer_id: str,
        manufacturer_id: str,
    ) -> Tuple[Conversation, bool]:
        """
        Get existing conversation or create new one.

        The caller must be one of the two named parties, on the side that
        matches their role.

        Returns:
            Tuple of (conversation, created) where created is True if new

        Raises:
            ValidationException: If the same identity is named on both sides
            ForbiddenException: If the caller is not one of the named parties
        """
        if buyer_id == manufacturer_id:
            raise ValidationException(
                "Buyer and manufacturer must be different identities", code="SAME_PARTICIPANT"
            )
        expected = buyer_id if participant.role == ParticipantRole.BUYER else manufacturer_id
        if participant.user_id != expected:
            raise ForbiddenException(
                "You can only open conversations you take part in", code="NOT_PARTICIPANT"
            )

        with self.transaction():
            conversation, created = self.conversation_repository.get_or_create(
                buyer_id=buyer_id,
                manufacturer_id=manufacturer_id,
            )
        if created:
            self.logger.info(
                f"[CONV] Created conversation {conversation.id}",
                extra={"buyer_id": buyer_id, "manufacturer_id": manufacturer_id},
            )
        return conversation, created

    def get_conversation(self, conversation_id: str) -> Conversation:
        conversation = self.conversation_repository.get_by_id(
            conversation_id, load_relationships=False
        )
        if conversation is None:
            raise NotFoundException("Conversation not found", code="CONVERSATION_NOT_FOUND")
        return conversation

    def get_conversation_for_participant(
        self, conversation_id: str, participant: Participant
    ) -> Conversation:
        """
        Load a conversation the caller takes part in.

        Raises:
            NotFoundException: If the conversation does not exist
            NotParticipantException: If the caller is neither party
        """
        conversation = self.get_conversation(conversation_id)
        if not conversation.is_participant(participant.user_id, participant.role):
            self.logger.warning(
                f"[CONV] User {participant.user_id} is not a participant in {conversation_id}"
            )
            raise NotParticipantException(conversation_id)
        return conversation

    @BaseService.measure_operation("list_conversations")
    def list_conversations(
        self,
        participant: Participant,
        limit: Optional[int] = None,
        offset: int = 0,
        search: Optional[str] = None,
        archived: Optional[bool] = None,
        is_online: Optional[Callable[[str], bool]] = None,
    ) -> List[ConversationListEntry]:
        """
        The caller's conversations, most recently active first.

        The preview comes from the latest stored message, not the
        denormalized summary, so a previously failed summary write heals
        itself here. Enrichment problems degrade an entry to its stored
        fields instead of failing the list.
        """
        limit = min(
            limit or settings.conversation_list_default_limit,
            settings.conversation_list_max_limit,
        )
        conversations = list(
            self.conversation_repository.find_for_user(
                participant.user_id,
                participant.role,
                limit=limit,
                offset=max(offset, 0),
                search=search.strip() if search and search.strip() else None,
                archived=archived,
            )
        )
        ids = [conversation.id for conversation in conversations]
        peer_role = participant.role.counterpart

        latest: Dict[str, Message] = {}
        unread: Dict[str, int] = {}
        names: Dict[str, str] = {}
        try:
            latest = self.conversation_repository.get_latest_messages(ids)
            unread = self.conversation_repository.get_unread_counts(ids, participant.user_id)
            names = self.profile_repository.get_display_names(
                peer_role, [c.participant_id(peer_role) for c in conversations]
            )
        except Exception as exc:
            self.logger.warning(
                f"[CONV] List enrichment failed, returning stored fields: {exc}",
                extra={"user_id": participant.user_id},
            )

        entries = []
        for conversation in conversations:
            entry = ConversationListEntry(
                conversation=conversation,
                last_message_text=conversation.last_message_text,
                last_message_at=conversation.last_message_at,
            )
            try:
                message = latest.get(conversation.id)
                if message is not None:
                    entry.last_message_text = summarize(
                        message.body, message.attachments, settings.summary_max_length
                    )
                    entry.last_message_at = message.created_at
                entry.unread_count = unread.get(conversation.id, 0)
                entry.peer_id = conversation.participant_id(peer_role)
                entry.peer_role = peer_role
                entry.peer_display_name = names.get(entry.peer_id) or (
                    DEFAULT_MANUFACTURER_DISPLAY_NAME
                    if peer_role == ParticipantRole.MANUFACTURER
                    else DEFAULT_BUYER_DISPLAY_NAME
                )
                entry.peer_online = bool(is_online(entry.peer_id)) if is_online else False
            except Exception as exc:
                self.logger.warning(
                    f"[CONV] Could not enrich conversation {conversation.id}: {exc}"
                )
                entry = ConversationListEntry(
                    conversation=conversation,
                    last_message_text=conversation.last_message_text,
                    last_message_at=conversation.last_message_at,
                )
            entries.append(entry)
        return entries

    @BaseService.measure_operation("set_archived")
    def set_archived(
        self, conversation_id: str, participant: Participant, archived: bool
    ) -> Conversation:
        conversation = self.get_conversation_for_participant(conversation_id, participant)
        with self.transaction():
            self.conversation_repository.set_archived(conversation.id, archived)
        self.db.refresh(conversation)
        return conversation
