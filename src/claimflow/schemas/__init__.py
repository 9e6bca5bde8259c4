"""API request/response schemas."""

from .claim import ClaimCountResponse, ClaimStatusUpdate, NextStatusesResponse
from .common import APIInfo
from .health import ComponentStatus, HealthComponents, HealthResponse

__all__ = [
    "APIInfo",
    "ClaimCountResponse",
    "ClaimStatusUpdate",
    "NextStatusesResponse",
    "ComponentStatus",
    "HealthComponents",
    "HealthResponse",
]
