"""In-process claim store.

Keeps claims in a dict and evaluates predicates in Python. Transactions are
serialised by an ``asyncio.Lock`` and roll back by restoring a snapshot, so a
failed unit of work leaves no trace. Used by the test suite and local runs
without PostgreSQL.
"""

import asyncio
import contextlib
from collections.abc import AsyncIterator, Callable
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from beartype import beartype

from ..core.logging_utils import get_logger
from ..models.claim import Claim, NewClaim, utcnow
from ..models.search import ClaimPage, PageRequest, SortDirection
from .claim_store import (
    ClaimPredicate,
    ClaimStoreError,
    Condition,
    DuplicateClaimNumberError,
    Operator,
)

logger = get_logger(__name__)


@beartype
def matches(claim: Claim, condition: Condition) -> bool:
    """Evaluate one condition against a claim."""
    actual = getattr(claim, condition.field)
    expected = condition.value
    if actual is None:
        return condition.operator is Operator.EQ and expected is None

    if condition.operator is Operator.EQ:
        return bool(actual == expected)
    if condition.operator is Operator.IEQ:
        return str(actual).casefold() == str(expected).casefold()
    if condition.operator is Operator.GT:
        return bool(actual > expected)
    if condition.operator is Operator.GTE:
        return bool(actual >= expected)
    if condition.operator is Operator.LTE:
        return bool(actual <= expected)
    return str(expected).casefold() in str(actual).casefold()


def _sort_key(field_name: str) -> Callable[[Claim], tuple[bool, Any]]:
    def key(claim: Claim) -> tuple[bool, Any]:
        value = getattr(claim, field_name)
        return (value is None, value if value is not None else "")

    return key


class InMemoryClaimStore:
    """Dict-backed :class:`~.claim_store.ClaimStore`."""

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._claims: dict[UUID, Claim] = {}
        self._clock = clock
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._claims)

    @beartype
    async def find_by_id(self, claim_id: UUID) -> Claim | None:
        return self._claims.get(claim_id)

    @beartype
    async def find_by_claim_number(self, claim_number: str) -> Claim | None:
        for claim in self._claims.values():
            if claim.claim_number == claim_number:
                return claim
        return None

    @beartype
    async def exists_by_claim_number(self, claim_number: str) -> bool:
        return await self.find_by_claim_number(claim_number) is not None

    @beartype
    async def insert(self, claim: NewClaim) -> Claim:
        if await self.exists_by_claim_number(claim.claim_number):
            raise DuplicateClaimNumberError(claim.claim_number)

        now = self._clock()
        stored = Claim(
            **claim.model_dump(),
            id=uuid4(),
            created_at=now,
            updated_at=now,
        )
        self._claims[stored.id] = stored
        return stored

    @beartype
    async def save(self, claim: Claim) -> Claim:
        existing = self._claims.get(claim.id)
        if existing is None:
            raise ClaimStoreError("save", f"claim {claim.id} does not exist")

        stored = claim.model_copy(
            update={"created_at": existing.created_at, "updated_at": self._clock()}
        )
        self._claims[stored.id] = stored
        return stored

    @beartype
    async def delete(self, claim: Claim) -> None:
        if self._claims.pop(claim.id, None) is None:
            raise ClaimStoreError("delete", f"claim {claim.id} does not exist")

    def _select(self, predicate: ClaimPredicate) -> list[Claim]:
        return [
            claim
            for claim in self._claims.values()
            if all(matches(claim, condition) for condition in predicate)
        ]

    @beartype
    async def query(self, predicate: ClaimPredicate, page: PageRequest) -> ClaimPage:
        selected = sorted(self._select(predicate), key=lambda claim: claim.id)
        selected.sort(
            key=_sort_key(page.sort_by.value),
            reverse=page.direction is SortDirection.DESC,
        )
        return ClaimPage(
            items=selected[page.offset : page.offset + page.size],
            total=len(selected),
            page=page.page,
            size=page.size,
        )

    @beartype
    async def count(self, predicate: ClaimPredicate) -> int:
        return len(self._select(predicate))

    @contextlib.asynccontextmanager
    async def transaction(self) -> AsyncIterator["InMemoryClaimStore"]:
        """Serialise the unit of work and roll back on any exception."""
        async with self._lock:
            snapshot = dict(self._claims)
            try:
                yield self
            except BaseException:
                self._claims = snapshot
                logger.debug("In-memory transaction rolled back")
                raise
