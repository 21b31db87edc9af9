# backend/app/services/messaging/__init__.py
"""
Realtime messaging package.

Architecture:
- Broadcaster fans events out over one Redis connection per worker
- Rooms: ``user:<id>``, ``role:<role>`` and the global presence room
- Services record side effects in a RealtimeOutbox; callers publish after commit
- ChatSocketSession handles one WebSocket connection's events
"""

from app.services.messaging.events import (
    SCHEMA_VERSION,
    ClientEvent,
    EventType,
    build_event,
)
from app.services.messaging.outbox import RealtimeOutbox
from app.services.messaging.presence import PresenceRegistry
from app.services.messaging.publisher import RealtimePublisher

__all__ = [
    "SCHEMA_VERSION",
    "ClientEvent",
    "EventType",
    "PresenceRegistry",
    "RealtimeOutbox",
    "RealtimePublisher",
    "build_event",
]
