# backend/app/services/messaging/rooms.py
"""
Room (broadcast channel) naming.

Every connection joins its own ``user:<id>`` room, the shared
``role:<role>`` room, and the global presence room. Conversation events go
to exactly the two participants' user rooms.
"""

from typing import List

from ...core.enums import ParticipantRole
from ...models.conversation import Conversation

PRESENCE_ROOM = "presence"


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


def role_room(role: ParticipantRole) -> str:
    return f"role:{ParticipantRole(role).value}"


def conversation_rooms(conversation: Conversation) -> List[str]:
    """The buyer's and the manufacturer's personal rooms."""
    return [user_room(user_id) for user_id in conversation.participant_ids()]
