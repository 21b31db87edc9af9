# backend/app/routes/v1/health.py
"""
Health check endpoint for monitoring and load balancer probes.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends

from app.api.dependencies.services import get_presence_registry
from app.core.broadcast import is_broadcast_initialized
from app.core.config import settings
from app.core.constants import API_VERSION, BRAND_NAME
from app.schemas.main_responses import HealthResponse
from app.services.messaging.presence import PresenceRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("", response_model=HealthResponse)
def health_check(presence: PresenceRegistry = Depends(get_presence_registry)) -> HealthResponse:
    """
    Health check endpoint.

    Does not touch the database; reports whether realtime fan-out is up.
    """
    return HealthResponse(
        status="healthy",
        service=f"{BRAND_NAME.lower()}-api",
        version=API_VERSION,
        environment=settings.environment,
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        realtime=is_broadcast_initialized(),
        online_users=len(presence.online_users()),
    )
