# backend/app/core/broadcast.py
"""
Shared broadcast manager for realtime room fan-out.

One Broadcaster instance per worker process. Every live connection
subscribes to its rooms through this instance, so N sockets share a
single Redis PubSub connection and fan out through Broadcaster's
internal asyncio queues:

    Redis -> Broadcaster -> N asyncio queues -> N WebSocket senders

With ``memory://`` the same topology runs in-process (single worker,
tests).
"""
import logging
from typing import Optional

from broadcaster import Broadcast

from .config import settings

logger = logging.getLogger(__name__)

_broadcast: Optional[Broadcast] = None


def get_broadcast() -> Broadcast:
    """
    Get the shared broadcast instance.

    Raises:
        RuntimeError: If broadcast is not initialized (call connect_broadcast first)
    """
    if _broadcast is None:
        raise RuntimeError("Broadcast not initialized. Call connect_broadcast() during startup.")
    return _broadcast


def is_broadcast_initialized() -> bool:
    """Used by the health check to report whether fan-out is available."""
    return _broadcast is not None


async def connect_broadcast(url: Optional[str] = None) -> None:
    """
    Connect the shared broadcaster.

    Call during application startup (in lifespan manager).
    """
    global _broadcast

    broadcast_url = url or settings.broadcast_url
    _broadcast = Broadcast(broadcast_url)
    await _broadcast.connect()
    logger.info("[BROADCAST] Connected for realtime fan-out: %s", broadcast_url.split("@")[-1])


async def disconnect_broadcast() -> None:
    """Call during application shutdown."""
    global _broadcast

    if _broadcast is not None:
        await _broadcast.disconnect()
        _broadcast = None
        logger.info("[BROADCAST] Disconnected")
