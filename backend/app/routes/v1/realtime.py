# backend/app/routes/v1/realtime.py
"""
Realtime WebSocket endpoint - API v1.

One socket per client tab/device at /api/v1/ws. Outbound frames arrive via
the shared Broadcaster (one Redis pub/sub connection per worker) on the
connection's rooms: ``user:<id>``, ``role:<role>`` and ``presence``.

Flow:
    1. Authenticate from the Authorization header or ``?token=`` (close 4401)
    2. Subscribe to rooms, then accept
    3. Reader task per room -> bounded queue -> single sender task
    4. Client frames handled sequentially by ChatSocketSession
"""

import asyncio
from contextlib import AsyncExitStack
import json
import logging
from typing import Any, Callable, List, Optional, Tuple

from broadcaster import Broadcast
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session

from ...api.dependencies.services import get_presence_registry
from ...auth import extract_bearer_token, participant_from_token
from ...core.broadcast import get_broadcast
from ...core.config import settings
from ...core.constants import WS_CLOSE_INTERNAL_ERROR, WS_CLOSE_UNAUTHORIZED
from ...core.exceptions import UnauthorizedException
from ...database import get_session_factory
from ...services.messaging.presence import PresenceRegistry
from ...services.messaging.socket_session import ChatSocketSession

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime-v1"])


def _handshake_token(websocket: WebSocket) -> Optional[str]:
    return extract_bearer_token(websocket.headers.get("authorization")) or (
        websocket.query_params.get("token")
    )


async def _pump_room(
    subscriber: Any, room: str, queue: "asyncio.Queue[Tuple[str, Any]]", user_id: str
) -> None:
    """Forward one room's Broadcaster events into the connection's queue."""
    try:
        async for event in subscriber:
            try:
                queue.put_nowait(("message", event.message))
            except asyncio.QueueFull:
                logger.warning(
                    f"[WS] Outbound queue full for user {user_id}, dropping event",
                    extra={"room": room},
                )
    except asyncio.CancelledError:
        raise
    except Exception as e:
        logger.error(f"[WS] Reader error on {room} for user {user_id}: {e}")
        await queue.put(("error", e))


async def _send_loop(
    websocket: WebSocket, queue: "asyncio.Queue[Tuple[str, Any]]", user_id: str
) -> None:
    """Drain the queue to the socket; delivery is serialized per connection."""
    while True:
        kind, payload = await queue.get()
        if kind == "error":
            await websocket.close(code=WS_CLOSE_INTERNAL_ERROR)
            return
        try:
            text = payload if isinstance(payload, str) else json.dumps(payload)
            await websocket.send_text(text)
        except (WebSocketDisconnect, RuntimeError):
            logger.debug(f"[WS] Send failed for user {user_id}; socket closing")
            return


async def _cancel(tasks: List["asyncio.Task[None]"]) -> None:
    for task in tasks:
        task.cancel()
    for task in tasks:
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.debug(f"[WS] Task ended with {e!r} during teardown")


@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    presence: PresenceRegistry = Depends(get_presence_registry),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
) -> None:
    """Authenticated live channel for chat, typing and presence events."""
    try:
        participant = participant_from_token(_handshake_token(websocket))
    except UnauthorizedException as e:
        logger.info(f"[WS] Rejected handshake: {e.code}")
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED)
        return

    try:
        broadcast: Broadcast = get_broadcast()
    except RuntimeError as e:
        logger.error(f"[WS] Broadcast unavailable: {e}")
        await websocket.close(code=WS_CLOSE_INTERNAL_ERROR)
        return

    session = ChatSocketSession(participant, session_factory, presence)
    session.mark_authenticated()
    queue: "asyncio.Queue[Tuple[str, Any]]" = asyncio.Queue(maxsize=settings.realtime_queue_size)
    tasks: List["asyncio.Task[None]"] = []

    async with AsyncExitStack() as stack:
        for room in session.rooms:
            subscriber = await stack.enter_async_context(broadcast.subscribe(channel=room))
            tasks.append(
                asyncio.create_task(_pump_room(subscriber, room, queue, participant.user_id))
            )

        await websocket.accept()
        tasks.append(asyncio.create_task(_send_loop(websocket, queue, participant.user_id)))
        await session.open()

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    raise WebSocketDisconnect(message.get("code", 1000))
                text = message.get("text")
                if text is None:
                    logger.debug(f"[WS] Ignoring binary frame from {participant.user_id}")
                    continue
                try:
                    frame = json.loads(text)
                except (TypeError, ValueError):
                    logger.debug(f"[WS] Ignoring non-JSON frame from {participant.user_id}")
                    continue
                await session.handle(frame)
        except WebSocketDisconnect:
            logger.info(f"[WS] Client disconnected: {participant.user_id}")
        except RuntimeError as e:
            # Raised by Starlette when the socket was closed from our side
            logger.debug(f"[WS] Receive loop ended for {participant.user_id}: {e}")
        finally:
            await session.close()
            await _cancel(tasks)
