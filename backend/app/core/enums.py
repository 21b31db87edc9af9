# backend/app/core/enums.py
"""
Core enums for the Groupo messaging backend.
"""

from enum import Enum


class ParticipantRole(str, Enum):
    """The two kinds of identity that can take part in a conversation."""

    BUYER = "buyer"
    MANUFACTURER = "manufacturer"

    @property
    def counterpart(self) -> "ParticipantRole":
        return ParticipantRole.MANUFACTURER if self is ParticipantRole.BUYER else ParticipantRole.BUYER


class ThreadContextType(str, Enum):
    """Negotiation sub-thread a message can be tagged with."""

    REQUIREMENT = "requirement"
    AI_DESIGN = "ai_design"


class FileType(str, Enum):
    """Coarse attachment classification."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"

    @classmethod
    def from_mime(cls, mime_type: str | None) -> "FileType":
        prefix = (mime_type or "").split("/", 1)[0].lower()
        if prefix == "image":
            return cls.IMAGE
        if prefix == "video":
            return cls.VIDEO
        if prefix == "audio":
            return cls.AUDIO
        return cls.DOCUMENT


class ConnectionState(str, Enum):
    """Lifecycle of one live connection."""

    CONNECTING = "connecting"
    AUTHENTICATED = "authenticated"
    ACTIVE = "active"
    DISCONNECTED = "disconnected"
