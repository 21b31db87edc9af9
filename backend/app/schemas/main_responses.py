"""Response schemas for infrastructure endpoints."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status")
    service: str
    version: str
    environment: str
    timestamp: str
    realtime: bool = Field(description="Whether the broadcast transport is connected")
    online_users: int = Field(description="Users with a live connection on this worker")
