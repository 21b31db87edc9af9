"""Application-wide constants for the Groupo messaging backend."""

from __future__ import annotations

BRAND_NAME = "Groupo"

API_V1_PREFIX = "/api/v1"
REALTIME_PATH = f"{API_V1_PREFIX}/ws"

# ULID path parameters (Crockford base32)
ULID_PATH_PATTERN = r"^[0-9A-HJKMNP-TV-Z]{26}$"

# Message constraints
CLIENT_TEMP_ID_MAX_LENGTH = 64
MAX_ATTACHMENTS_PER_MESSAGE = 20
HTML_TAG_PATTERN = r"<[^>]*>"

# Fallback display names when a profile has no name
DEFAULT_BUYER_DISPLAY_NAME = "Buyer"
DEFAULT_MANUFACTURER_DISPLAY_NAME = "Manufacturer"

# WebSocket close codes (4000-4999 are application defined)
WS_CLOSE_UNAUTHORIZED = 4401
WS_CLOSE_INTERNAL_ERROR = 1011

API_TITLE = f"{BRAND_NAME} Messaging API"
API_VERSION = "1.0.0"
