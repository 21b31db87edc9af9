# backend/app/api/dependencies/__init__.py
"""
Central export point for all dependencies.
"""

from .auth import get_current_participant
from .services import (
    get_conversation_service,
    get_message_service,
    get_presence_registry,
    get_realtime_outbox,
    get_realtime_publisher,
)

__all__ = [
    "get_conversation_service",
    "get_current_participant",
    "get_message_service",
    "get_presence_registry",
    "get_realtime_outbox",
    "get_realtime_publisher",
]
