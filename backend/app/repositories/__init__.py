# backend/app/repositories/__init__.py
"""
Repository layer (Persistence Gateway) for the Groupo messaging backend.

Key Components:
- BaseRepository: generic CRUD helpers shared by all repositories
- RepositoryFactory: builds repository instances for services
- ConversationRepository: pair get-or-create, listing, unread counts
- MessageRepository: message log, attachments, read marking
- ProfileRepository: counterpart display names

Repositories never commit; services own transaction boundaries.
"""

from .base_repository import BaseRepository
from .conversation_repository import ConversationRepository
from .factory import RepositoryFactory
from .message_repository import MessageRepository
from .profile_repository import ProfileRepository

__all__ = [
    "BaseRepository",
    "ConversationRepository",
    "MessageRepository",
    "ProfileRepository",
    "RepositoryFactory",
]
