"""
Access-token verification.

Tokens are issued by the identity service (phone OTP login); this backend
only verifies them. Claims used: ``sub`` (user id) and ``role``.
"""

from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict, Optional, cast

import jwt
from jwt import PyJWTError

from .core.config import settings
from .core.enums import ParticipantRole
from .core.exceptions import UnauthorizedException
from .principal import Participant

logger = logging.getLogger(__name__)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and verify a JWT access token (signature and expiry)."""
    payload_raw = jwt.decode(
        token,
        settings.secret_key.get_secret_value(),
        algorithms=[settings.algorithm],
        options={"verify_aud": False},
    )
    return cast(Dict[str, Any], payload_raw)


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Used by tests and local tooling; production tokens come from the
    identity service signed with the same secret.
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.access_token_expire_minutes
        )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key.get_secret_value(), algorithm=settings.algorithm)


def participant_from_token(token: Optional[str]) -> Participant:
    """
    Resolve the participant a bearer token belongs to.

    Raises:
        UnauthorizedException: If the token is missing, invalid, expired, or
            does not carry a buyer/manufacturer role
    """
    if not token:
        raise UnauthorizedException("Not authenticated", code="NOT_AUTHENTICATED")
    try:
        payload = decode_access_token(token)
    except PyJWTError as e:
        logger.warning(f"JWT validation error: {str(e)}")
        raise UnauthorizedException("Could not validate credentials", code="INVALID_TOKEN")

    user_id = payload.get("sub") or payload.get("userId")
    if not isinstance(user_id, str) or not user_id:
        logger.warning("Token payload missing 'sub' field")
        raise UnauthorizedException("Could not validate credentials", code="INVALID_TOKEN")
    try:
        role = ParticipantRole(payload.get("role"))
    except ValueError:
        raise UnauthorizedException(
            "Only buyers and manufacturers can use messaging", code="INVALID_ROLE"
        )
    return Participant(user_id=user_id, role=role)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() != "bearer" or not credentials.strip():
        return None
    return credentials.strip()
