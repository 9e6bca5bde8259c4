"""Claim lifecycle service.

The only entry point that mutates claims. Every mutation runs inside one store
transaction and performs all of its checks before the first write, so a
rejected operation leaves the store untouched. Business failures are returned
as ``Err`` values carrying a :class:`~.claim_errors.ClaimError`.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Any
from uuid import UUID

import redis.asyncio as redis
from beartype import beartype

from ..core.cache import Cache
from ..core.logging_utils import get_logger
from ..core.result_types import Err, Ok, Result
from ..models.claim import (
    Claim,
    ClaimCreate,
    ClaimStatus,
    ClaimUpdate,
    NewClaim,
    utcnow,
)
from .cache_keys import CacheKeys
from .claim_errors import (
    ClaimError,
    IdentifierGenerationExhausted,
    InvalidTransition,
    NotFound,
    OperationNotAllowed,
    StoreFailure,
    TerminalStateViolation,
)
from .claim_number import ClaimNumberGenerator
from .claim_rules import DEFAULT_LOOKBACK_YEARS, validate_claim
from .claim_status import INITIAL_STATUS, can_transition, is_terminal, valid_next_states
from .claim_store import ClaimStore, ClaimStoreError, DuplicateClaimNumberError
from .performance_monitor import performance_monitor

logger = get_logger(__name__)


@beartype
def store_failure(error: ClaimStoreError) -> StoreFailure:
    """Wrap a store exception into the typed error returned to callers."""
    logger.error("Claim store failure during %s: %s", error.operation, error.detail)
    return StoreFailure(operation=error.operation, detail=error.detail)


class ClaimService:
    """Service for claim lifecycle business logic."""

    def __init__(
        self,
        store: ClaimStore,
        number_generator: ClaimNumberGenerator,
        *,
        cache: Cache | None = None,
        clock: Callable[[], datetime] = utcnow,
        lookback_years: int = DEFAULT_LOOKBACK_YEARS,
        cache_ttl: int | None = None,
    ) -> None:
        """Initialize claim service with its collaborators."""
        if store is None or not hasattr(store, "transaction"):
            raise ValueError("Claim store required")

        self._store = store
        self._numbers = number_generator
        self._cache = cache
        self._clock = clock
        self._lookback_years = lookback_years
        self._cache_ttl = cache_ttl

    # Mutations

    @beartype
    @performance_monitor("create_claim")
    async def create(self, claim_data: ClaimCreate) -> Result[Claim, ClaimError]:
        """Create a new claim.

        The status defaults to SUBMITTED. Rules are checked before a claim
        number is drawn; a number that turns out to be taken at insert time
        counts as another collision and a fresh one is drawn.
        """
        status = claim_data.status or INITIAL_STATUS
        validation = validate_claim(claim_data, self._clock(), self._lookback_years)
        if isinstance(validation, Err):
            logger.warning(
                "Rejected new claim for policy %s: %s",
                claim_data.policy_number,
                validation.error.reason,
            )
            return validation

        fields = claim_data.model_dump(exclude={"status"})
        try:
            async with self._store.transaction() as store:
                for attempt in range(1, self._numbers.max_attempts + 1):
                    generated = await self._numbers.generate(store)
                    if isinstance(generated, Err):
                        return generated

                    candidate = NewClaim(
                        **fields, claim_number=generated.unwrap(), status=status
                    )
                    try:
                        claim = await store.insert(candidate)
                    except DuplicateClaimNumberError:
                        logger.debug(
                            "Claim number %s taken at insert (attempt %d)",
                            candidate.claim_number,
                            attempt,
                        )
                        continue

                    logger.info(
                        "Created claim %s with status %s",
                        claim.claim_number,
                        claim.status.value,
                    )
                    return Ok(claim)
        except ClaimStoreError as e:
            return Err(store_failure(e))

        logger.error(
            "Unable to insert claim after %d claim number attempts",
            self._numbers.max_attempts,
        )
        return Err(IdentifierGenerationExhausted(attempts=self._numbers.max_attempts))

    @beartype
    @performance_monitor("update_claim")
    async def update(
        self, claim_id: UUID, claim_update: ClaimUpdate
    ) -> Result[Claim, ClaimError]:
        """Apply a partial update.

        Terminal claims cannot be updated. A supplied status must be a legal
        transition. The merged claim is checked against every business rule,
        including fields the update did not touch.
        """
        changes = claim_update.changes()
        try:
            async with self._store.transaction() as store:
                existing = await store.find_by_id(claim_id)
                if existing is None:
                    return Err(NotFound(claim_id=claim_id))

                if is_terminal(existing.status):
                    logger.warning(
                        "Rejected update of %s in final status %s",
                        existing.claim_number,
                        existing.status.value,
                    )
                    return Err(
                        TerminalStateViolation(
                            claim_id=claim_id, status=existing.status
                        )
                    )

                requested = changes.get("status")
                if requested is not None and not can_transition(
                    existing.status, requested
                ):
                    return Err(self._invalid_transition(existing, requested))

                merged = _merge(existing, changes)
                validation = validate_claim(merged, self._clock(), self._lookback_years)
                if isinstance(validation, Err):
                    logger.warning(
                        "Rejected update of %s: %s",
                        existing.claim_number,
                        validation.error.reason,
                    )
                    return validation

                claim = await store.save(merged)
        except ClaimStoreError as e:
            return Err(store_failure(e))

        await self._invalidate(claim)
        logger.info("Updated claim %s", claim.claim_number)
        return Ok(claim)

    @beartype
    @performance_monitor("transition_claim_status")
    async def transition_status(
        self, claim_id: UUID, new_status: ClaimStatus
    ) -> Result[Claim, ClaimError]:
        """Move a claim along one edge of the status workflow."""
        try:
            async with self._store.transaction() as store:
                existing = await store.find_by_id(claim_id)
                if existing is None:
                    return Err(NotFound(claim_id=claim_id))

                if not can_transition(existing.status, new_status):
                    return Err(self._invalid_transition(existing, new_status))

                claim = await store.save(
                    _merge(existing, {"status": new_status})
                )
        except ClaimStoreError as e:
            return Err(store_failure(e))

        await self._invalidate(claim)
        logger.info(
            "Claim %s moved from %s to %s",
            claim.claim_number,
            existing.status.value,
            claim.status.value,
        )
        return Ok(claim)

    @beartype
    @performance_monitor("delete_claim")
    async def delete(self, claim_id: UUID) -> Result[Claim, ClaimError]:
        """Delete a claim that is still SUBMITTED and return it.

        Claims that have progressed must be cancelled through the workflow.
        """
        try:
            async with self._store.transaction() as store:
                existing = await store.find_by_id(claim_id)
                if existing is None:
                    return Err(NotFound(claim_id=claim_id))

                if existing.status is not ClaimStatus.SUBMITTED:
                    logger.warning(
                        "Rejected delete of %s in status %s",
                        existing.claim_number,
                        existing.status.value,
                    )
                    return Err(
                        OperationNotAllowed(
                            claim_id=claim_id,
                            operation="delete",
                            status=existing.status,
                            required=ClaimStatus.SUBMITTED,
                        )
                    )

                await store.delete(existing)
        except ClaimStoreError as e:
            return Err(store_failure(e))

        await self._invalidate(existing)
        logger.info("Deleted claim %s", existing.claim_number)
        return Ok(existing)

    # Reads

    @beartype
    @performance_monitor("get_claim")
    async def get(self, claim_id: UUID) -> Result[Claim, ClaimError]:
        """Get claim by ID, through the cache when one is configured."""
        cached = await self._cache_get(CacheKeys.claim_by_id(claim_id))
        if cached is not None:
            return Ok(cached)

        marker = await self._write_marker()
        try:
            claim = await self._store.find_by_id(claim_id)
        except ClaimStoreError as e:
            return Err(store_failure(e))

        if claim is None:
            logger.debug("Claim %s not found", claim_id)
            return Err(NotFound(claim_id=claim_id))

        await self._cache_fill(claim, marker)
        return Ok(claim)

    @beartype
    @performance_monitor("get_claim_by_number")
    async def get_by_claim_number(self, claim_number: str) -> Result[Claim, ClaimError]:
        """Get claim by its claim number."""
        cached = await self._cache_get(CacheKeys.claim_by_number(claim_number))
        if cached is not None:
            return Ok(cached)

        marker = await self._write_marker()
        try:
            claim = await self._store.find_by_claim_number(claim_number)
        except ClaimStoreError as e:
            return Err(store_failure(e))

        if claim is None:
            logger.debug("Claim number %s not found", claim_number)
            return Err(NotFound(claim_number=claim_number))

        await self._cache_fill(claim, marker)
        return Ok(claim)

    @beartype
    async def exists_by_claim_number(
        self, claim_number: str
    ) -> Result[bool, ClaimError]:
        """Whether a claim with this number exists."""
        try:
            return Ok(await self._store.exists_by_claim_number(claim_number))
        except ClaimStoreError as e:
            return Err(store_failure(e))

    @beartype
    async def valid_next_statuses(
        self, claim_id: UUID
    ) -> Result[frozenset[ClaimStatus], ClaimError]:
        """Statuses the claim may move to next."""
        result = await self.get(claim_id)
        if isinstance(result, Err):
            return result
        return Ok(valid_next_states(result.unwrap().status))

    # Helpers

    @staticmethod
    def _invalid_transition(
        existing: Claim, requested: ClaimStatus
    ) -> InvalidTransition:
        logger.warning(
            "Rejected transition of %s from %s to %s",
            existing.claim_number,
            existing.status.value,
            requested.value,
        )
        return InvalidTransition(
            claim_id=existing.id, current=existing.status, requested=requested
        )

    async def _cache_get(self, key: str) -> Claim | None:
        if self._cache is None:
            return None
        try:
            cached = await self._cache.get(key)
        except redis.RedisError as e:
            logger.warning("Cache read failed for %s: %s", key, e)
            return None
        return Claim.model_validate(cached) if cached else None

    async def _write_marker(self) -> int | None:
        """Current value of the mutation counter, ``None`` when unknown."""
        if self._cache is None:
            return None
        try:
            return int(await self._cache.get(CacheKeys.claim_writes()) or 0)
        except redis.RedisError as e:
            logger.warning("Cache read failed for write counter: %s", e)
            return None

    async def _cache_fill(self, claim: Claim, marker: int | None) -> None:
        """Cache a claim read from the store.

        ``marker`` is the mutation counter seen before the store read. If any
        mutation committed since, the claim may be stale and the entries just
        written are dropped again.
        """
        if self._cache is None or marker is None:
            return
        keys = CacheKeys.claim_keys(claim.id, claim.claim_number)
        payload = claim.model_dump(mode="json")
        try:
            for key in keys:
                await self._cache.set(key, payload, self._cache_ttl)
            if await self._write_marker() != marker:
                logger.debug("Dropping cache fill for %s", claim.claim_number)
                await self._cache.delete(*keys)
        except redis.RedisError as e:
            logger.warning("Cache write failed for %s: %s", claim.claim_number, e)

    async def _invalidate(self, claim: Claim) -> None:
        if self._cache is None:
            return
        # The counter moves before the delete so in-flight fills notice.
        try:
            await self._cache.incr(CacheKeys.claim_writes())
        except redis.RedisError as e:
            logger.warning("Cache write counter update failed: %s", e)
        try:
            await self._cache.delete(
                *CacheKeys.claim_keys(claim.id, claim.claim_number)
            )
        except redis.RedisError as e:
            logger.warning(
                "Cache invalidation failed for %s: %s", claim.claim_number, e
            )


@beartype
def _merge(existing: Claim, changes: dict[str, Any]) -> Claim:
    """Overlay ``changes`` on ``existing``; identity and timestamps are kept."""
    data = existing.model_dump()
    data.update(changes)
    data.update(
        id=existing.id,
        claim_number=existing.claim_number,
        created_at=existing.created_at,
        updated_at=existing.updated_at,
    )
    return Claim.model_validate(data)
