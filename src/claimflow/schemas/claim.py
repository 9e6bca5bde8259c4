"""Claim endpoint payloads that are not domain models."""

from uuid import UUID

from pydantic import Field

from ..models.base import BaseModelConfig
from ..models.claim import ClaimStatus


class ClaimStatusUpdate(BaseModelConfig):
    """Request body for a status transition."""

    status: ClaimStatus = Field(..., description="Requested next status")


class ClaimCountResponse(BaseModelConfig):
    """Number of claims in one status."""

    status: ClaimStatus = Field(..., description="Counted status")
    count: int = Field(..., ge=0, description="Claims currently in the status")


class NextStatusesResponse(BaseModelConfig):
    """Statuses a claim may move to next."""

    claim_id: UUID = Field(..., description="Claim the transitions apply to")
    next_statuses: list[ClaimStatus] = Field(
        ..., description="Legal next statuses, empty for final statuses"
    )
