# backend/app/services/messaging/socket_session.py
"""
Per-connection session of the live transport.

Lifecycle:
    CONNECTING -> AUTHENTICATED -> ACTIVE -> DISCONNECTED

The transport layer authenticates the socket and joins its rooms; this
class owns everything after that: presence bookkeeping and the handlers
for client events. Handlers re-check participancy on every event and
never raise: invalid, unauthorized or failing events are logged, counted
and dropped without a reply to the socket.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from pydantic import ValidationError
from sqlalchemy.orm import Session

from ...core.enums import ConnectionState
from ...core.exceptions import (
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from ...core.metrics import REALTIME_CONNECTIONS, REALTIME_EVENTS_RECEIVED_TOTAL
from ...models.conversation import Conversation
from ...principal import Participant
from ...schemas.realtime import ReadEvent, SendMessageEvent, TypingEvent
from ..conversation_service import ConversationService
from ..message_service import MessageService
from .events import ClientEvent, build_presence_event, build_typing_event
from .outbox import RealtimeOutbox
from .presence import PresenceRegistry
from .publisher import RealtimePublisher
from .rooms import PRESENCE_ROOM, conversation_rooms, role_room, user_room

logger = logging.getLogger(__name__)

T = TypeVar("T")

SessionFactory = Callable[[], Session]


class ChatSocketSession:
    """State and event handlers for one authenticated connection."""

    def __init__(
        self,
        participant: Participant,
        session_factory: SessionFactory,
        presence: PresenceRegistry,
        publisher: Optional[RealtimePublisher] = None,
    ):
        self.participant = participant
        self.session_factory = session_factory
        self.presence = presence
        self.publisher = publisher or RealtimePublisher()
        self.state = ConnectionState.CONNECTING
        self._handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[None]]] = {
            ClientEvent.TYPING_START.value: self._on_typing_start,
            ClientEvent.TYPING_STOP.value: self._on_typing_stop,
            ClientEvent.MESSAGE_SEND.value: self._on_message_send,
            ClientEvent.MESSAGE_READ.value: self._on_message_read,
        }

    @property
    def rooms(self) -> list[str]:
        """Rooms this connection listens on."""
        return [
            user_room(self.participant.user_id),
            role_room(self.participant.role),
            PRESENCE_ROOM,
        ]

    def mark_authenticated(self) -> None:
        self.state = ConnectionState.AUTHENTICATED

    async def open(self) -> None:
        """Register presence and announce the user as online."""
        if self.state == ConnectionState.CONNECTING:
            self.mark_authenticated()
        if self.state != ConnectionState.AUTHENTICATED:
            return
        count = self.presence.connect(self.participant.user_id)
        REALTIME_CONNECTIONS.inc()
        self.state = ConnectionState.ACTIVE
        logger.info(
            f"[REALTIME] {self.participant.role.value} {self.participant.user_id} connected",
            extra={"connections": count},
        )
        await self._publish(PRESENCE_ROOM, build_presence_event(self.participant.user_id, True))

    async def close(self) -> None:
        """Unregister presence; announce offline when the last connection closes."""
        if self.state == ConnectionState.DISCONNECTED:
            return
        was_active = self.state == ConnectionState.ACTIVE
        self.state = ConnectionState.DISCONNECTED
        if not was_active:
            return
        REALTIME_CONNECTIONS.dec()
        if self.presence.disconnect(self.participant.user_id):
            await self._publish(
                PRESENCE_ROOM, build_presence_event(self.participant.user_id, False)
            )
        logger.info(f"[REALTIME] {self.participant.user_id} disconnected")

    async def handle(self, frame: Any) -> None:
        """
        Dispatch one client frame ``{"event": ..., "data": {...}}``.

        Never raises.
        """
        if self.state != ConnectionState.ACTIVE or not isinstance(frame, dict):
            return
        name = frame.get("event")
        handler = self._handlers.get(name) if isinstance(name, str) else None
        if handler is None:
            REALTIME_EVENTS_RECEIVED_TOTAL.labels(event="unknown", outcome="dropped").inc()
            logger.debug(f"[REALTIME] Ignoring unknown event {name!r}")
            return

        data = frame.get("data")
        outcome = "handled"
        try:
            await handler(data if isinstance(data, dict) else {})
        except (ValidationError, ValidationException, NotFoundException) as exc:
            outcome = "dropped"
            logger.debug(f"[REALTIME] Dropped {name} from {self.participant.user_id}: {exc}")
        except ForbiddenException:
            outcome = "unauthorized"
            logger.warning(
                f"[REALTIME] Unauthorized {name} from {self.participant.user_id}",
                extra={"conversation_id": data.get("conversationId") if isinstance(data, dict) else None},
            )
        except Exception:
            outcome = "error"
            logger.exception(f"[REALTIME] {name} handler failed for {self.participant.user_id}")
        REALTIME_EVENTS_RECEIVED_TOTAL.labels(event=name, outcome=outcome).inc()

    # Handlers

    async def _on_typing_start(self, data: Dict[str, Any]) -> None:
        await self._broadcast_typing(data, True)

    async def _on_typing_stop(self, data: Dict[str, Any]) -> None:
        await self._broadcast_typing(data, False)

    async def _broadcast_typing(self, data: Dict[str, Any], is_typing: bool) -> None:
        payload = TypingEvent.model_validate(data)
        conversation: Conversation = await self._run(
            lambda db: ConversationService(db).get_conversation_for_participant(
                payload.conversation_id, self.participant
            )
        )
        outbox = RealtimeOutbox(self.publisher)
        outbox.add(
            conversation_rooms(conversation),
            build_typing_event(conversation.id, self.participant.user_id, is_typing),
        )
        await outbox.dispatch()

    async def _on_message_send(self, data: Dict[str, Any]) -> None:
        payload = SendMessageEvent.model_validate(data)
        outbox = RealtimeOutbox(self.publisher)
        await self._run(
            lambda db: MessageService(db).send_message(
                payload.conversation_id,
                self.participant,
                body=payload.body,
                attachments=payload.attachments,
                client_temp_id=payload.client_temp_id,
                requirement_id=payload.requirement_id,
                ai_design_id=payload.ai_design_id,
                outbox=outbox,
            )
        )
        await outbox.dispatch()

    async def _on_message_read(self, data: Dict[str, Any]) -> None:
        payload = ReadEvent.model_validate(data)
        outbox = RealtimeOutbox(self.publisher)
        await self._run(
            lambda db: MessageService(db).mark_read(
                payload.conversation_id,
                self.participant,
                up_to=payload.up_to,
                message_id=payload.message_id,
                outbox=outbox,
            )
        )
        await outbox.dispatch()

    # Helpers

    async def _run(self, operation: Callable[[Session], T]) -> T:
        """Run a blocking service call on a worker thread with its own session."""
        return await asyncio.to_thread(self._run_in_session, operation)

    def _run_in_session(self, operation: Callable[[Session], T]) -> T:
        db = self.session_factory()
        try:
            return operation(db)
        finally:
            db.close()

    async def _publish(self, room: str, event: Dict[str, Any]) -> None:
        try:
            await self.publisher.publish(room, event)
        except Exception as exc:
            logger.error(f"[REALTIME] Publish to {room} failed: {exc}")
