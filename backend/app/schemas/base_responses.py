"""
Base response schemas for standardized API responses.

Every HTTP response is an envelope: ``{"success": true, "data": ...}`` on
success and ``{"success": false, "message": ...}`` on failure.
"""

from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class SuccessResponse(BaseModel, Generic[T]):
    """Standard success envelope."""

    success: bool = Field(default=True, description="Operation success status")
    data: T

    model_config = ConfigDict(
        json_schema_extra={"example": {"success": True, "data": {"updated": 3}}}
    )


class ErrorDetail(BaseModel):
    """One field-level validation problem."""

    field: Optional[str] = Field(default=None, description="Field that caused the error")
    message: str = Field(description="Human-readable error message")


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    success: bool = False
    message: str
    code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    errors: Optional[List[ErrorDetail]] = None
