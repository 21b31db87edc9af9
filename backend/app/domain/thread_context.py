"""Thread context tag shared across repositories, services, and schemas."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import ThreadContextType
from ..core.exceptions import ValidationException


@dataclass(frozen=True)
class ThreadContext:
    """
    A message's negotiation sub-thread: a requirement or an AI design.

    "No context" is represented by ``None`` rather than an empty instance.
    """

    type: ThreadContextType
    id: str

    @classmethod
    def requirement(cls, requirement_id: str) -> "ThreadContext":
        return cls(ThreadContextType.REQUIREMENT, requirement_id)

    @classmethod
    def ai_design(cls, ai_design_id: str) -> "ThreadContext":
        return cls(ThreadContextType.AI_DESIGN, ai_design_id)

    @classmethod
    def from_ids(
        cls, requirement_id: Optional[str] = None, ai_design_id: Optional[str] = None
    ) -> Optional["ThreadContext"]:
        """
        Build a context from the two wire-level ids.

        Raises:
            ValidationException: If both ids are given
        """
        if requirement_id and ai_design_id:
            raise ValidationException(
                "A message can reference a requirement or an AI design, not both",
                code="AMBIGUOUS_THREAD_CONTEXT",
            )
        if requirement_id:
            return cls.requirement(requirement_id)
        if ai_design_id:
            return cls.ai_design(ai_design_id)
        return None

    @property
    def requirement_id(self) -> Optional[str]:
        return self.id if self.type == ThreadContextType.REQUIREMENT else None

    @property
    def ai_design_id(self) -> Optional[str]:
        return self.id if self.type == ThreadContextType.AI_DESIGN else None
