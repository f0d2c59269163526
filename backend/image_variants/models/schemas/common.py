"""Common Pydantic schemas for API responses."""

from datetime import datetime

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Failure class")
    details: str = Field(..., description="Human readable detail")


class HealthResponse(BaseModel):
    """Basic health check response."""

    status: str = Field(..., description="Health status: ok, degraded, error")


class ServiceHealth(BaseModel):
    """Individual service health."""

    status: str
    latency_ms: float | None = None
    error: str | None = None


class DetailedHealthResponse(BaseModel):
    """Detailed health check response with service statuses."""

    status: str
    services: dict[str, ServiceHealth]
    timestamp: datetime = Field(default_factory=datetime.utcnow)
