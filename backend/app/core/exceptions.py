# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the Groupo messaging backend.

Services raise these; the API layer renders them as the
``{"success": false, "message": ...}`` envelope. The live transport
never surfaces them to the socket, it logs and drops the event instead.
"""

from typing import Any, Dict, Optional

from fastapi import status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_envelope(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "message": self.message, "code": self.code}
        if self.details:
            body["details"] = self.details
        return body


class ValidationException(DomainException):
    """Raised when a payload is malformed or misses required fields."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a conversation or message does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class UnauthorizedException(DomainException):
    """Raised when the caller is not authenticated."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(DomainException):
    """Raised when the caller is not a participant of the conversation."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails on storage."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def to_envelope(self) -> Dict[str, Any]:
        # Storage details never leave the process
        return {
            "success": False,
            "message": "An error occurred processing your request",
            "code": self.code,
        }


# Specific messaging exceptions


class EmptyMessageException(ValidationException):
    """Raised when a message has neither a body nor attachments."""

    def __init__(self) -> None:
        super().__init__(
            message="Message must have a body or at least one attachment",
            code="EMPTY_MESSAGE",
        )


class NotParticipantException(ForbiddenException):
    def __init__(self, conversation_id: Optional[str] = None) -> None:
        super().__init__(
            message="You are not a participant of this conversation",
            code="NOT_PARTICIPANT",
            details={"conversation_id": conversation_id} if conversation_id else None,
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
