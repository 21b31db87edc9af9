# backend/app/schemas/message.py
"""
Pydantic schemas for messages and attachments.

``AttachmentIn`` is the single place where the different attachment key
spellings clients send (``url``/``file_url``, ``mimeType``/``mime_type``,
...) are folded into one shape.
"""

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, Field, computed_field, field_validator, model_validator

from ..core.constants import CLIENT_TEMP_ID_MAX_LENGTH, MAX_ATTACHMENTS_PER_MESSAGE
from ..core.enums import FileType, ThreadContextType
from .base import RequestModel, StandardizedModel, UtcDatetime


class AttachmentIn(RequestModel):
    """Attachment metadata as uploaded by the client (file already in object storage)."""

    file_url: str = Field(
        min_length=1, validation_alias=AliasChoices("url", "file_url", "fileUrl")
    )
    mime_type: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("mimeType", "mime_type")
    )
    size_bytes: Optional[int] = Field(
        default=None, ge=0, validation_alias=AliasChoices("sizeBytes", "size_bytes", "size")
    )
    file_type: Optional[FileType] = Field(
        default=None, validation_alias=AliasChoices("fileType", "file_type")
    )
    original_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("originalName", "original_name", "name")
    )
    public_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("publicId", "public_id")
    )
    thumbnail_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("thumbnail", "thumbnail_url", "thumbnailUrl"),
    )
    width: Optional[int] = Field(default=None, ge=0)
    height: Optional[int] = Field(default=None, ge=0)
    duration: Optional[float] = Field(default=None, ge=0)

    @field_validator("file_type", mode="before")
    @classmethod
    def _normalize_file_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            if value not in {member.value for member in FileType}:
                # Unknown labels fall back to the MIME-derived type
                return None
        return value or None

    @model_validator(mode="after")
    def _derive_file_type(self) -> "AttachmentIn":
        if self.file_type is None:
            self.file_type = FileType.from_mime(self.mime_type)
        return self

    def to_record(self) -> Dict[str, Any]:
        """Column values for ``MessageAttachment``."""
        record = self.model_dump()
        record["file_type"] = self.file_type.value if self.file_type else None
        return record


class SendMessageRequest(RequestModel):
    """Send a message; a body or at least one attachment is required."""

    body: Optional[str] = Field(default=None, description="Plain-text body; HTML is stripped")
    attachments: List[AttachmentIn] = Field(
        default_factory=list, max_length=MAX_ATTACHMENTS_PER_MESSAGE
    )
    client_temp_id: Optional[str] = Field(
        default=None,
        max_length=CLIENT_TEMP_ID_MAX_LENGTH,
        validation_alias=AliasChoices("clientTempId", "client_temp_id"),
        description="Client-generated id echoed back for optimistic UI reconciliation",
    )
    requirement_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("requirementId", "requirement_id")
    )
    ai_design_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("aiDesignId", "ai_design_id")
    )

    @field_validator("attachments", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return value or []


class MarkReadRequest(RequestModel):
    """Mark the other party's messages read, up to now or a given time."""

    up_to: Optional[UtcDatetime] = Field(
        default=None, validation_alias=AliasChoices("upTo", "up_to")
    )


class AttachmentResponse(StandardizedModel):
    id: str
    file_url: str
    mime_type: Optional[str] = None
    size_bytes: Optional[int] = None
    file_type: Optional[str] = None
    original_name: Optional[str] = None
    public_id: Optional[str] = None
    thumbnail_url: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[float] = None
    created_at: UtcDatetime


class ThreadContextResponse(StandardizedModel):
    type: str
    id: str


class MessageResponse(StandardizedModel):
    """A message with its attachments, as stored."""

    id: str
    conversation_id: str
    sender_role: str
    sender_id: str
    body: str
    requirement_id: Optional[str] = None
    ai_design_id: Optional[str] = None
    client_temp_id: Optional[str] = None
    is_read: bool
    created_at: UtcDatetime
    attachments: List[AttachmentResponse] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def thread(self) -> Optional[ThreadContextResponse]:
        if self.requirement_id:
            return ThreadContextResponse(type=ThreadContextType.REQUIREMENT.value, id=self.requirement_id)
        if self.ai_design_id:
            return ThreadContextResponse(type=ThreadContextType.AI_DESIGN.value, id=self.ai_design_id)
        return None


class MessagesResponse(StandardizedModel):
    """One ascending page of history."""

    messages: List[MessageResponse]
    has_more: bool = Field(description="A full page was returned; older messages may exist")


class MarkReadResponse(StandardizedModel):
    updated: int
