# backend/app/services/messaging/outbox.py
"""
Post-commit outbox for realtime side effects.

Services record the events a state change should produce while they run
(on a worker thread, inside the transaction). The caller dispatches them
on the event loop once the write has committed. A failed publish is logged
and counted; it never turns a committed write into an error.
"""

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ...core.metrics import REALTIME_PUBLISH_FAILURES_TOTAL
from .publisher import RealtimePublisher

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutboundEvent:
    rooms: Tuple[str, ...]
    event: Dict[str, Any]

    @property
    def name(self) -> str:
        return str(self.event.get("event", "unknown"))


@dataclass
class RealtimeOutbox:
    """Collects events during an operation, publishes them afterwards."""

    publisher: Optional[RealtimePublisher] = None
    _pending: List[OutboundEvent] = field(default_factory=list)

    def add(self, rooms: Iterable[str], event: Dict[str, Any]) -> None:
        self._pending.append(OutboundEvent(rooms=tuple(rooms), event=event))

    @property
    def pending(self) -> List[OutboundEvent]:
        return list(self._pending)

    def discard(self) -> None:
        """Drop queued events, e.g. after the write they describe failed."""
        self._pending.clear()

    async def dispatch(self) -> int:
        """
        Publish every queued event to its rooms.

        Returns:
            Number of room deliveries that succeeded
        """
        publisher = self.publisher or RealtimePublisher()
        pending, self._pending = self._pending, []
        delivered = 0
        for outbound in pending:
            for room in dict.fromkeys(outbound.rooms):
                try:
                    await publisher.publish(room, outbound.event)
                    delivered += 1
                except Exception as exc:
                    REALTIME_PUBLISH_FAILURES_TOTAL.labels(event=outbound.name).inc()
                    logger.error(
                        f"[OUTBOX] Failed to publish {outbound.name} to {room}: {exc}",
                        extra={"room": room, "event_type": outbound.name},
                    )
        return delivered
