"""Claim domain models with strict validation.

This module defines all claim-related models including creation,
partial updates, and the core claim entity itself.

Shape rules (lengths, email and phone formats, decimal precision) live on
the models. Business rules (positive amount, incident window) are applied by
:mod:`claimflow.services.claim_rules` so that every mutation path reports
them the same way.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any

from beartype import beartype
from pydantic import EmailStr, Field, field_validator

from .base import BaseModelConfig, IdentifiableModel

CLAIM_NUMBER_PATTERN = r"^CLM-[0-9]{4}-[0-9]{6}$"
PHONE_PATTERN = r"^[+]?[0-9\s\-()]{10,20}$"
MAX_CLAIM_AMOUNT = Decimal("1000000.00")


class ClaimStatus(str, Enum):
    """Enumeration of claim processing states."""

    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PAID = "PAID"
    CANCELLED = "CANCELLED"

    @property
    def description(self) -> str:
        """Human-readable description of the status."""
        return _STATUS_DESCRIPTIONS[self]


_STATUS_DESCRIPTIONS = {
    ClaimStatus.SUBMITTED: "Claim has been submitted and is awaiting initial review",
    ClaimStatus.UNDER_REVIEW: "Claim is under review by claims department",
    ClaimStatus.APPROVED: "Claim has been approved for payment",
    ClaimStatus.REJECTED: "Claim has been rejected",
    ClaimStatus.PAID: "Claim has been paid",
    ClaimStatus.CANCELLED: "Claim has been cancelled",
}


@beartype
def utcnow() -> datetime:
    """Current time as an aware UTC timestamp."""
    return datetime.now(timezone.utc)


@beartype
def as_utc(value: datetime) -> datetime:
    """Interpret naive timestamps as UTC and normalise aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@beartype
class ClaimBase(BaseModelConfig):
    """Base claim attributes shared across all claim operations."""

    policy_number: str = Field(
        ...,
        min_length=5,
        max_length=50,
        description="Policy number associated with the claim",
    )

    claimant_name: str = Field(
        ...,
        min_length=2,
        max_length=100,
        description="Full name of the person filing the claim",
    )

    claimant_email: EmailStr = Field(
        ..., max_length=100, description="Contact email of the claimant"
    )

    claimant_phone: str | None = Field(
        None, pattern=PHONE_PATTERN, description="Contact phone of the claimant"
    )

    description: str = Field(
        ...,
        min_length=10,
        max_length=1000,
        description="Detailed description of the incident",
    )

    claim_amount: Decimal = Field(
        ...,
        max_digits=10,
        decimal_places=2,
        le=MAX_CLAIM_AMOUNT,
        description="Amount being claimed",
    )

    incident_date: datetime = Field(
        ..., description="When the incident occurred"
    )

    @field_validator("incident_date")
    @classmethod
    def normalise_incident_date(cls, v: datetime) -> datetime:
        """Store incident timestamps in UTC."""
        return as_utc(v)


@beartype
class ClaimCreate(ClaimBase):
    """Model for creating a new claim.

    ``status`` is optional; the lifecycle engine assigns the initial status
    when it is omitted.
    """

    status: ClaimStatus | None = Field(
        None, description="Starting status, defaults to SUBMITTED"
    )


@beartype
class ClaimUpdate(BaseModelConfig):
    """Model for updating an existing claim.

    All fields are optional to support partial updates. A field left as
    ``None`` keeps the stored value.
    """

    policy_number: str | None = Field(None, min_length=5, max_length=50)
    claimant_name: str | None = Field(None, min_length=2, max_length=100)
    claimant_email: EmailStr | None = Field(None, max_length=100)
    claimant_phone: str | None = Field(None, pattern=PHONE_PATTERN)
    description: str | None = Field(None, min_length=10, max_length=1000)
    claim_amount: Decimal | None = Field(
        None, max_digits=10, decimal_places=2, le=MAX_CLAIM_AMOUNT
    )
    incident_date: datetime | None = None
    status: ClaimStatus | None = Field(None, description="Requested next status")

    @field_validator("incident_date")
    @classmethod
    def normalise_incident_date(cls, v: datetime | None) -> datetime | None:
        """Store incident timestamps in UTC."""
        return as_utc(v) if v is not None else None

    @beartype
    def changes(self) -> dict[str, Any]:
        """Fields the caller actually supplied."""
        return self.model_dump(exclude_none=True)


@beartype
class NewClaim(ClaimBase):
    """Validated claim ready for insertion, before the store assigns identity."""

    claim_number: str = Field(
        ..., pattern=CLAIM_NUMBER_PATTERN, description="Unique claim number"
    )
    status: ClaimStatus = Field(..., description="Starting claim status")


@beartype
class Claim(ClaimBase, IdentifiableModel):
    """Complete claim entity with all attributes."""

    claim_number: str = Field(
        ..., pattern=CLAIM_NUMBER_PATTERN, description="Unique claim number"
    )

    status: ClaimStatus = Field(..., description="Current claim status")
