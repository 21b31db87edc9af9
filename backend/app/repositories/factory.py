# backend/app/repositories/factory.py
"""
Repository Factory for the Groupo messaging backend.

Services build their repositories through this factory so tests can swap
an implementation in one place.
"""

from sqlalchemy.orm import Session

from .conversation_repository import ConversationRepository
from .message_repository import MessageRepository
from .profile_repository import ProfileRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_conversation_repository(db: Session) -> ConversationRepository:
        return ConversationRepository(db)

    @staticmethod
    def create_message_repository(db: Session) -> MessageRepository:
        return MessageRepository(db)

    @staticmethod
    def create_profile_repository(db: Session) -> ProfileRepository:
        return ProfileRepository(db)
