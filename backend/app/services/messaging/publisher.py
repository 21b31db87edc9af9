# backend/app/services/messaging/publisher.py
"""
Publishing of realtime events to rooms via the shared Broadcaster.

Frames are JSON-encoded once here and decoded by each subscriber's
connection pump. Publishing never raises to callers that go through the
outbox; direct callers get the broadcaster's exception.
"""

import json
import logging
from typing import Any, Dict, Optional

from broadcaster import Broadcast

from ...core.broadcast import get_broadcast
from ...core.metrics import REALTIME_EVENTS_PUBLISHED_TOTAL

logger = logging.getLogger(__name__)


class RealtimePublisher:
    """Thin wrapper over ``Broadcast.publish`` that speaks event frames."""

    def __init__(self, broadcast: Optional[Broadcast] = None):
        self._broadcast = broadcast

    @property
    def broadcast(self) -> Broadcast:
        return self._broadcast or get_broadcast()

    async def publish(self, room: str, event: Dict[str, Any]) -> None:
        await self.broadcast.publish(channel=room, message=json.dumps(event))
        REALTIME_EVENTS_PUBLISHED_TOTAL.labels(event=event.get("event", "unknown")).inc()
        logger.debug(
            "[PUBLISHER] Published event",
            extra={"room": room, "event_type": event.get("event")},
        )

