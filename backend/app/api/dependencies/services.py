# backend/app/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

import logging

from fastapi import Depends
from sqlalchemy.orm import Session
from starlette.requests import HTTPConnection

from ...database import get_db
from ...services.conversation_service import ConversationService
from ...services.message_service import MessageService
from ...services.messaging.outbox import RealtimeOutbox
from ...services.messaging.presence import PresenceRegistry
from ...services.messaging.publisher import RealtimePublisher

logger = logging.getLogger(__name__)


def get_conversation_service(db: Session = Depends(get_db)) -> ConversationService:
    return ConversationService(db)


def get_message_service(db: Session = Depends(get_db)) -> MessageService:
    return MessageService(db)


def get_presence_registry(connection: HTTPConnection) -> PresenceRegistry:
    """Process-wide presence registry created in the application lifespan."""
    return connection.app.state.presence


def get_realtime_publisher() -> RealtimePublisher:
    return RealtimePublisher()


def get_realtime_outbox(
    publisher: RealtimePublisher = Depends(get_realtime_publisher),
) -> RealtimeOutbox:
    """A fresh outbox per request; the route dispatches it after the write."""
    return RealtimeOutbox(publisher)
