"""Claim store contract and the query predicate shared by its implementations.

The lifecycle services only talk to persistence through :class:`ClaimStore`.
Two implementations ship with the package: PostgreSQL
(:mod:`.claim_store_postgres`) and an in-process store
(:mod:`.claim_store_memory`) used by tests and local runs.
"""

from contextlib import AbstractAsyncContextManager
from enum import Enum
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

import attrs
from attrs import frozen
from beartype import beartype

from ..models.claim import Claim, NewClaim
from ..models.search import ClaimPage, ClaimSortField, PageRequest

CLAIM_FIELDS = frozenset(f.value for f in ClaimSortField)


class ClaimStoreError(Exception):
    """The store could not complete an operation."""

    def __init__(self, operation: str, detail: str) -> None:
        super().__init__(f"{operation}: {detail}")
        self.operation = operation
        self.detail = detail


class DuplicateClaimNumberError(ClaimStoreError):
    """Insert rejected because the claim number is already taken."""

    def __init__(self, claim_number: str) -> None:
        super().__init__("insert", f"claim number {claim_number} already exists")
        self.claim_number = claim_number


class Operator(str, Enum):
    """Comparison applied by a :class:`Condition`."""

    EQ = "eq"
    IEQ = "ieq"
    GT = "gt"
    GTE = "gte"
    LTE = "lte"
    ICONTAINS = "icontains"


def _known_field(_inst: Any, _attribute: Any, value: str) -> None:
    if value not in CLAIM_FIELDS:
        raise ValueError(f"Unknown claim field: {value}")


@frozen
class Condition:
    """``<claim field> <operator> <value>``."""

    field: str = attrs.field(validator=_known_field)
    operator: Operator = attrs.field(converter=Operator)
    value: Any = attrs.field()


@frozen
class ClaimPredicate:
    """Conjunction of conditions. No conditions matches every claim."""

    conditions: tuple[Condition, ...] = attrs.field(default=(), converter=tuple)

    @beartype
    def where(
        self, field_name: str, operator: Operator, value: Any
    ) -> "ClaimPredicate":
        """Return a new predicate with one more condition."""
        condition = Condition(field_name, operator, value)
        return ClaimPredicate((*self.conditions, condition))

    def __bool__(self) -> bool:
        return bool(self.conditions)

    def __iter__(self):
        return iter(self.conditions)


MATCH_ALL = ClaimPredicate()


@runtime_checkable
class ClaimStore(Protocol):
    """Persistence collaborator for claims.

    Failures outside the caller's control raise :class:`ClaimStoreError`.
    ``created_at`` and ``updated_at`` are always set by the store.
    """

    async def find_by_id(self, claim_id: UUID) -> Claim | None: ...

    async def find_by_claim_number(self, claim_number: str) -> Claim | None: ...

    async def exists_by_claim_number(self, claim_number: str) -> bool: ...

    async def insert(self, claim: NewClaim) -> Claim:
        """Persist a new claim, assigning id and timestamps.

        Raises:
            DuplicateClaimNumberError: The claim number is already stored.
        """
        ...

    async def save(self, claim: Claim) -> Claim:
        """Overwrite an existing claim and refresh ``updated_at``."""
        ...

    async def delete(self, claim: Claim) -> None: ...

    async def query(
        self, predicate: ClaimPredicate, page: PageRequest
    ) -> ClaimPage: ...

    async def count(self, predicate: ClaimPredicate) -> int: ...

    def transaction(self) -> AbstractAsyncContextManager["ClaimStore"]:
        """Unit of work; the yielded store runs every call inside it."""
        ...
