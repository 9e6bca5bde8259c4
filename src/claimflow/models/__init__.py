"""Domain models package for the claim lifecycle service.

This package exports all Pydantic domain models with strict validation
and immutability.
"""

from .base import BaseModelConfig, IdentifiableModel, TimestampedModel
from .claim import (
    Claim,
    ClaimBase,
    ClaimCreate,
    ClaimStatus,
    ClaimUpdate,
    NewClaim,
)
from .search import (
    ClaimPage,
    ClaimSearchCriteria,
    ClaimSortField,
    PageRequest,
    SortDirection,
)

__all__ = [
    # Base models
    "BaseModelConfig",
    "TimestampedModel",
    "IdentifiableModel",
    # Claim models
    "ClaimBase",
    "Claim",
    "ClaimCreate",
    "ClaimUpdate",
    "ClaimStatus",
    "NewClaim",
    # Search models
    "ClaimPage",
    "ClaimSearchCriteria",
    "ClaimSortField",
    "PageRequest",
    "SortDirection",
]
