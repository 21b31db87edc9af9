# backend/app/services/messaging/presence.py
"""
Process-local presence registry.

Counts open connections per user so that a user with several tabs or
devices goes "offline" only when the last one closes. State is ephemeral:
it starts empty and is rebuilt as clients reconnect after a restart.
"""

import logging
from typing import Dict, List

logger = logging.getLogger(__name__)


class PresenceRegistry:
    """
    Connection counter per user id.

    Mutated only from the event loop, inside a single synchronous call, so
    no lock is needed.
    """

    def __init__(self) -> None:
        self._connections: Dict[str, int] = {}

    def connect(self, user_id: str) -> int:
        """Register a connection; returns the user's open connection count."""
        count = self._connections.get(user_id, 0) + 1
        self._connections[user_id] = count
        return count

    def disconnect(self, user_id: str) -> bool:
        """
        Unregister a connection.

        Returns:
            True when this was the user's last connection (user is now offline)
        """
        count = self._connections.get(user_id, 0)
        if count == 0:
            logger.warning(f"[PRESENCE] Disconnect for untracked user {user_id}")
            return False
        if count == 1:
            del self._connections[user_id]
            return True
        self._connections[user_id] = count - 1
        return False

    def is_online(self, user_id: str) -> bool:
        return self._connections.get(user_id, 0) > 0

    def connection_count(self, user_id: str) -> int:
        return self._connections.get(user_id, 0)

    def online_users(self) -> List[str]:
        return list(self._connections)

    def clear(self) -> None:
        """Drop all state; called at shutdown."""
        if self._connections:
            logger.info(f"[PRESENCE] Clearing {len(self._connections)} tracked users")
        self._connections.clear()
