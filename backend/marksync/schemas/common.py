"""
MarkSync Backend — Shared Response Schemas
============================================

What:  Error envelope and health check response used across all routers.
Why:   The browser extension checks `success` on every response; error
       responses add a machine-readable code and a request ID for support.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "success": false,
            "error": "invalid_payload",
            "message": "Invalid payload",
            "details": {"field": "bookmarks"},
            "request_id": "a1b2c3d4"
        }
    """
    success: bool = Field(default=False, description="Always false for errors")
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
