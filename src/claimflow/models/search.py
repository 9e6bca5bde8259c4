"""Search criteria, pagination and page models for claim queries."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from math import ceil

from beartype import beartype
from pydantic import Field, computed_field

from .base import BaseModelConfig
from .claim import Claim, ClaimStatus


class ClaimSortField(str, Enum):
    """Claim fields a page may be ordered by."""

    ID = "id"
    CLAIM_NUMBER = "claim_number"
    POLICY_NUMBER = "policy_number"
    CLAIMANT_NAME = "claimant_name"
    CLAIMANT_EMAIL = "claimant_email"
    CLAIMANT_PHONE = "claimant_phone"
    DESCRIPTION = "description"
    CLAIM_AMOUNT = "claim_amount"
    STATUS = "status"
    INCIDENT_DATE = "incident_date"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class SortDirection(str, Enum):
    """Sort order."""

    ASC = "asc"
    DESC = "desc"


@beartype
class ClaimSearchCriteria(BaseModelConfig):
    """Optional claim filters, combined with AND.

    A filter left as ``None`` does not restrict the result.
    """

    policy_number: str | None = Field(None, description="Exact policy number")
    status: ClaimStatus | None = Field(None, description="Exact claim status")
    claimant_email: str | None = Field(
        None, max_length=100, description="Claimant email, compared case-insensitively"
    )
    min_amount: Decimal | None = Field(
        None, description="Only claims whose amount is strictly greater"
    )
    created_from: datetime | None = Field(
        None, description="Earliest creation timestamp (inclusive)"
    )
    created_to: datetime | None = Field(
        None, description="Latest creation timestamp (inclusive)"
    )
    claimant_name: str | None = Field(
        None, description="Case-insensitive fragment of the claimant name"
    )


@beartype
class PageRequest(BaseModelConfig):
    """Zero-based page request with ordering."""

    page: int = Field(default=0, ge=0, description="Zero-based page index")
    size: int = Field(default=10, ge=1, le=100, description="Items per page")
    sort_by: ClaimSortField = Field(default=ClaimSortField.CREATED_AT)
    direction: SortDirection = Field(default=SortDirection.DESC)

    @property
    def offset(self) -> int:
        """Rows to skip before this page."""
        return self.page * self.size


@beartype
class ClaimPage(BaseModelConfig):
    """One page of claims plus totals."""

    items: list[Claim] = Field(..., description="Claims on this page")
    total: int = Field(..., ge=0, description="Claims matching the query")
    page: int = Field(..., ge=0, description="Zero-based page index")
    size: int = Field(..., ge=1, description="Requested page size")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_pages(self) -> int:
        """Number of pages for ``total`` at this page size."""
        return ceil(self.total / self.size) if self.total else 0
