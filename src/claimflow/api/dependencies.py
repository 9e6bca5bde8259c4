"""FastAPI dependencies for the claim store, caching and services.

This module provides reusable dependencies that can be injected into
API endpoints for cross-cutting concerns. Tests replace
:func:`get_claim_store` and :func:`get_claim_cache` through
``app.dependency_overrides``.
"""

from beartype import beartype
from fastapi import Depends, HTTPException, Query, status

from ..core.cache import Cache, get_cache
from ..core.config import Settings, get_settings
from ..core.database import Database, get_database
from ..models.search import ClaimSortField, PageRequest, SortDirection
from ..services.claim_number import ClaimNumberGenerator
from ..services.claim_search import ClaimSearchService
from ..services.claim_service import ClaimService
from ..services.claim_store import ClaimStore
from ..services.claim_store_postgres import PostgresClaimStore

MAX_PAGE_SIZE = 100


@beartype
def get_db() -> Database:
    """Provide the shared database pool manager."""
    return get_database()


def get_claim_store(db: Database = Depends(get_db)) -> ClaimStore:
    """Provide the PostgreSQL claim store."""
    return PostgresClaimStore(db)


def get_claim_cache(settings: Settings = Depends(get_settings)) -> Cache | None:
    """Provide the Redis cache, or ``None`` when caching is off or unavailable."""
    if not settings.cache_enabled:
        return None
    cache = get_cache()
    return cache if cache.is_connected else None


def get_claim_service(
    store: ClaimStore = Depends(get_claim_store),
    cache: Cache | None = Depends(get_claim_cache),
    settings: Settings = Depends(get_settings),
) -> ClaimService:
    """Provide the claim lifecycle service."""
    numbers = ClaimNumberGenerator(
        store, max_attempts=settings.claim_number_max_attempts
    )
    return ClaimService(
        store,
        numbers,
        cache=cache,
        lookback_years=settings.incident_lookback_years,
        cache_ttl=settings.redis_ttl_seconds,
    )


def get_search_service(
    store: ClaimStore = Depends(get_claim_store),
) -> ClaimSearchService:
    """Provide the claim search service."""
    return ClaimSearchService(store)


class PaginationParams:
    """Common pagination parameters for list endpoints."""

    def __init__(
        self,
        page: int = 0,
        size: int | None = None,
        sort_by: ClaimSortField = ClaimSortField.CREATED_AT,
        direction: SortDirection = Query(
            default=SortDirection.DESC, alias="sort_dir"
        ),
    ) -> None:
        """Initialize pagination parameters.

        Args:
            page: Zero-based page index
            size: Items per page, defaults to the configured page size
            sort_by: Claim field to order by
            direction: ``asc`` or ``desc``

        Raises:
            HTTPException: If parameters are invalid
        """
        if page < 0:
            # Dependency classes report bad parameters through HTTPException
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Page index cannot be negative",
            )

        if size is None:
            size = get_settings().default_page_size
        if size < 1:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Page size must be at least 1",
            )
        if size > MAX_PAGE_SIZE:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Page size cannot exceed {MAX_PAGE_SIZE}",
            )

        self.page = page
        self.size = size
        self.sort_by = sort_by
        self.direction = direction

    @beartype
    def to_page_request(self) -> PageRequest:
        """Page request for the search service."""
        return PageRequest(
            page=self.page,
            size=self.size,
            sort_by=self.sort_by,
            direction=self.direction,
        )
