"""Claim endpoints with workflow management.

This module provides RESTful endpoints for creating, amending, progressing
and retiring insurance claims, plus the search endpoints over the claim
collection. Static paths are declared before ``/{claim_id}`` so they are
matched first.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated
from uuid import UUID

from beartype import beartype
from fastapi import APIRouter, Depends, Query, Response, status

from ...core.result_types import Err, Ok
from ...models.claim import Claim, ClaimCreate, ClaimStatus, ClaimUpdate
from ...models.search import ClaimPage, ClaimSearchCriteria
from ...schemas.claim import (
    ClaimCountResponse,
    ClaimStatusUpdate,
    NextStatusesResponse,
)
from ...services.claim_search import HIGH_VALUE_THRESHOLD, ClaimSearchService
from ...services.claim_service import ClaimService
from ..dependencies import PaginationParams, get_claim_service, get_search_service
from ..response_patterns import ErrorResponse, handle_result

router = APIRouter()


class ClaimFilterParams:
    """Query parameters accepted by the search endpoint."""

    def __init__(
        self,
        policy_number: str | None = Query(None, max_length=50),
        status: ClaimStatus | None = None,
        claimant_email: str | None = Query(None, max_length=100),
        min_amount: Decimal | None = None,
        created_from: datetime | None = None,
        created_to: datetime | None = None,
        claimant_name: str | None = Query(None, max_length=100),
    ) -> None:
        self.criteria = ClaimSearchCriteria(
            policy_number=policy_number,
            status=status,
            claimant_email=claimant_email,
            min_amount=min_amount,
            created_from=created_from,
            created_to=created_to,
            claimant_name=claimant_name,
        )


@router.post("/", status_code=status.HTTP_201_CREATED)
@beartype
async def create_claim(
    claim_data: ClaimCreate,
    response: Response,
    service: Annotated[ClaimService, Depends(get_claim_service)],
) -> Claim | ErrorResponse:
    """Create a new insurance claim.

    Args:
        claim_data: Claim creation data
        response: Response whose status code is set from the result
        service: Claim lifecycle service

    Returns:
        Claim: Created claim with its claim number, or the error
    """
    result = await service.create(claim_data)
    return handle_result(result, response, success_status=status.HTTP_201_CREATED)


@router.get("/")
@beartype
async def list_claims(
    response: Response,
    pagination: Annotated[PaginationParams, Depends()],
    search: Annotated[ClaimSearchService, Depends(get_search_service)],
) -> ClaimPage | ErrorResponse:
    """List all claims, one page at a time."""
    result = await search.search(ClaimSearchCriteria(), pagination.to_page_request())
    return handle_result(result, response)


@router.get("/search")
@beartype
async def search_claims(
    response: Response,
    filters: Annotated[ClaimFilterParams, Depends()],
    pagination: Annotated[PaginationParams, Depends()],
    search: Annotated[ClaimSearchService, Depends(get_search_service)],
) -> ClaimPage | ErrorResponse:
    """Search claims; every supplied filter must match."""
    result = await search.search(filters.criteria, pagination.to_page_request())
    return handle_result(result, response)


@router.get("/number/{claim_number}")
@beartype
async def get_claim_by_number(
    claim_number: str,
    response: Response,
    service: Annotated[ClaimService, Depends(get_claim_service)],
) -> Claim | ErrorResponse:
    """Get a claim by its claim number."""
    result = await service.get_by_claim_number(claim_number)
    return handle_result(result, response)


@router.get("/policy/{policy_number}")
@beartype
async def list_claims_by_policy(
    policy_number: str,
    response: Response,
    pagination: Annotated[PaginationParams, Depends()],
    search: Annotated[ClaimSearchService, Depends(get_search_service)],
) -> ClaimPage | ErrorResponse:
    """Claims filed against one policy."""
    result = await search.by_policy_number(
        policy_number, pagination.to_page_request()
    )
    return handle_result(result, response)


@router.get("/claimant/{email}")
@beartype
async def list_claims_by_claimant(
    email: str,
    response: Response,
    pagination: Annotated[PaginationParams, Depends()],
    search: Annotated[ClaimSearchService, Depends(get_search_service)],
) -> ClaimPage | ErrorResponse:
    """Claims filed by one claimant email, ignoring case."""
    result = await search.by_claimant_email(email, pagination.to_page_request())
    return handle_result(result, response)


@router.get("/high-value")
@beartype
async def list_high_value_claims(
    response: Response,
    pagination: Annotated[PaginationParams, Depends()],
    search: Annotated[ClaimSearchService, Depends(get_search_service)],
    min_amount: Annotated[Decimal, Query(ge=0)] = HIGH_VALUE_THRESHOLD,
) -> ClaimPage | ErrorResponse:
    """Claims whose amount exceeds ``min_amount``."""
    result = await search.high_value(min_amount, pagination.to_page_request())
    return handle_result(result, response)


@router.get("/date-range")
@beartype
async def list_claims_created_between(
    response: Response,
    start: Annotated[datetime, Query(description="Earliest creation time")],
    end: Annotated[datetime, Query(description="Latest creation time")],
    pagination: Annotated[PaginationParams, Depends()],
    search: Annotated[ClaimSearchService, Depends(get_search_service)],
) -> ClaimPage | ErrorResponse:
    """Claims created within ``[start, end]``."""
    result = await search.created_between(start, end, pagination.to_page_request())
    return handle_result(result, response)


@router.get("/search-by-name")
@beartype
async def search_claims_by_name(
    response: Response,
    name: Annotated[str, Query(min_length=1, max_length=100)],
    pagination: Annotated[PaginationParams, Depends()],
    search: Annotated[ClaimSearchService, Depends(get_search_service)],
) -> ClaimPage | ErrorResponse:
    """Claims whose claimant name contains ``name``, ignoring case."""
    result = await search.by_claimant_name(name, pagination.to_page_request())
    return handle_result(result, response)


@router.get("/count")
@beartype
async def count_claims_by_status(
    response: Response,
    claim_status: Annotated[ClaimStatus, Query(alias="status")],
    search: Annotated[ClaimSearchService, Depends(get_search_service)],
) -> ClaimCountResponse | ErrorResponse:
    """Number of claims currently in ``status``."""
    result = await search.count_by_status(claim_status)
    if isinstance(result, Ok):
        result = Ok(ClaimCountResponse(status=claim_status, count=result.unwrap()))
    return handle_result(result, response)


@router.get("/{claim_id}")
@beartype
async def get_claim(
    claim_id: UUID,
    response: Response,
    service: Annotated[ClaimService, Depends(get_claim_service)],
) -> Claim | ErrorResponse:
    """Get a claim by ID."""
    result = await service.get(claim_id)
    return handle_result(result, response)


@router.get("/{claim_id}/next-statuses")
@beartype
async def get_next_statuses(
    claim_id: UUID,
    response: Response,
    service: Annotated[ClaimService, Depends(get_claim_service)],
) -> NextStatusesResponse | ErrorResponse:
    """Statuses the claim may move to next, in workflow order."""
    result = await service.valid_next_statuses(claim_id)
    if isinstance(result, Err):
        return handle_result(result, response)

    allowed = result.unwrap()
    return NextStatusesResponse(
        claim_id=claim_id,
        next_statuses=[s for s in ClaimStatus if s in allowed],
    )


@router.put("/{claim_id}")
@beartype
async def update_claim(
    claim_id: UUID,
    claim_update: ClaimUpdate,
    response: Response,
    service: Annotated[ClaimService, Depends(get_claim_service)],
) -> Claim | ErrorResponse:
    """Partially update a claim; omitted fields keep their values."""
    result = await service.update(claim_id, claim_update)
    return handle_result(result, response)


@router.patch("/{claim_id}/status")
@beartype
async def transition_claim_status(
    claim_id: UUID,
    status_update: ClaimStatusUpdate,
    response: Response,
    service: Annotated[ClaimService, Depends(get_claim_service)],
) -> Claim | ErrorResponse:
    """Move a claim to its next status."""
    result = await service.transition_status(claim_id, status_update.status)
    return handle_result(result, response)


@router.delete("/{claim_id}", response_model=None)
@beartype
async def delete_claim(
    claim_id: UUID,
    response: Response,
    service: Annotated[ClaimService, Depends(get_claim_service)],
) -> Response | ErrorResponse:
    """Delete a claim that is still SUBMITTED."""
    result = await service.delete(claim_id)
    if isinstance(result, Err):
        return handle_result(result, response)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
