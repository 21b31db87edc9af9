# backend/app/api/dependencies/auth.py
"""
Authentication dependencies for the HTTP surface.
"""

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ...auth import participant_from_token
from ...principal import Participant

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_participant(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Participant:
    """
    Authenticated buyer or manufacturer for this request.

    Raises:
        UnauthorizedException: rendered as a 401 envelope
    """
    token = credentials.credentials if credentials else None
    return participant_from_token(token)
