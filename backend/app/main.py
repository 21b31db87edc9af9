# backend/app/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.broadcast import connect_broadcast, disconnect_broadcast
from .core.config import is_running_tests, settings
from .core.constants import API_TITLE, API_V1_PREFIX, API_VERSION, BRAND_NAME
from .errors import register_error_handlers
from .routes import prometheus
from .routes.v1 import (
    conversations as conversations_v1,
    health as health_v1,
    realtime as realtime_v1,
)
from .schemas.base_responses import ErrorResponse
from .services.messaging.presence import PresenceRegistry

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown without deprecated events."""
    # Startup
    logger.info(f"{BRAND_NAME} API starting up...")
    logger.info(f"Environment: {settings.environment}")
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")

    app.state.presence = PresenceRegistry()

    # Shared Broadcaster for realtime room fan-out
    try:
        await connect_broadcast()
    except Exception as e:
        # HTTP keeps working; sockets close with 1011 until fan-out is back
        logger.error(f"[BROADCAST] Failed to connect broadcaster: {e}")

    yield

    # Shutdown
    logger.info(f"{BRAND_NAME} API shutting down...")

    try:
        await disconnect_broadcast()
    except Exception as e:
        logger.error(f"[BROADCAST] Error disconnecting broadcaster: {e}")

    app.state.presence.clear()


app = FastAPI(
    title=API_TITLE,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)

# Register unified error envelope handlers
register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)
logger.info("CORS allow_origins=%s allow_credentials=%s", settings.cors_origin_list, True)

# API v1 router
api_v1 = APIRouter(
    prefix=API_V1_PREFIX,
    responses={
        400: {"model": ErrorResponse, "description": "Validation failed"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not a participant"},
        404: {"model": ErrorResponse, "description": "Not found"},
    },
)
api_v1.include_router(conversations_v1.router, prefix="/conversations")
api_v1.include_router(health_v1.router, prefix="/health")
api_v1.include_router(realtime_v1.router)

app.include_router(api_v1)

# Infrastructure (unversioned)
app.include_router(prometheus.router)
