"""Principal for authenticated marketplace participants."""

from __future__ import annotations

from dataclasses import dataclass

from .core.enums import ParticipantRole


@dataclass(frozen=True)
class Participant:
    """A buyer or manufacturer identity taken from a verified access token."""

    user_id: str
    role: ParticipantRole
