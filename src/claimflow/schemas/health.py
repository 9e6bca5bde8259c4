"""Health check schemas."""

from datetime import datetime

from pydantic import Field

from ..models.base import BaseModelConfig


class ComponentStatus(BaseModelConfig):
    """Individual component health status."""

    status: str = Field(..., pattern=r"^(healthy|unhealthy|disabled)$")
    latency_ms: float = Field(..., ge=0, description="Response latency in milliseconds")
    message: str = Field(default="", description="Status message")


class HealthComponents(BaseModelConfig):
    """Health status for the service's backing components."""

    database: ComponentStatus = Field(..., description="Database health")
    redis: ComponentStatus = Field(..., description="Redis health")


class HealthResponse(BaseModelConfig):
    """Overall service health."""

    status: str = Field(..., pattern=r"^(healthy|unhealthy)$")
    timestamp: datetime = Field(..., description="Health check timestamp")
    version: str = Field(..., description="Application version")
    environment: str = Field(..., description="Environment name")
    components: HealthComponents | None = Field(
        default=None, description="Component statuses, readiness checks only"
    )
