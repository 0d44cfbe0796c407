"""
FridgeMind API — Shared Response Schemas
==========================================

What:  Error, health and acknowledgement models used by every router.
Why:   Clients parse one error shape everywhere; OpenAPI docs list it once.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "Invalid location",
            "code": "validation_error",
            "details": {"field": "location"},
            "request_id": "1f2e3d4c"
        }
    """
    error: str = Field(description="Human-readable error message")
    code: str = Field(description="Machine-readable error code")
    details: Optional[dict] = Field(default=None, description="Additional context (400s only)")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class SuccessResponse(BaseModel):
    success: bool = True


class HealthResponse(BaseModel):
    """
    Service and dependency status for load balancer probes.

    status is "healthy", "degraded" (AI unreachable or circuit open) or
    "unhealthy" (database unreachable).
    """
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    gemini: str = Field(description="Gemini API status: available, unavailable, circuit_open")
    fatsecret: str = Field(description="FatSecret credentials: configured, not_configured")
    uptime_seconds: float = Field(description="Seconds since service started")
