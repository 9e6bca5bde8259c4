"""PostgreSQL claim store on top of the asyncpg pool."""

import contextlib
from collections.abc import AsyncIterator
from enum import Enum
from typing import Any
from uuid import UUID

import asyncpg
from beartype import beartype

from ..core.database import CONNECTION_ERRORS, Database
from ..core.logging_utils import get_logger
from ..models.claim import Claim, NewClaim
from ..models.search import ClaimPage, PageRequest
from .claim_store import (
    ClaimPredicate,
    ClaimStoreError,
    Condition,
    DuplicateClaimNumberError,
    Operator,
)

logger = get_logger(__name__)

CLAIM_COLUMNS = """
    id, claim_number, policy_number, claimant_name, claimant_email,
    claimant_phone, description, claim_amount, status, incident_date,
    created_at, updated_at
"""

_COMPARISONS = {
    Operator.EQ: "{column} = {param}",
    Operator.IEQ: "LOWER({column}) = LOWER({param})",
    Operator.GT: "{column} > {param}",
    Operator.GTE: "{column} >= {param}",
    Operator.LTE: "{column} <= {param}",
    Operator.ICONTAINS: "{column} ILIKE '%' || {param} || '%' ESCAPE '\\'",
}


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _sql_value(condition: Condition) -> Any:
    value = condition.value
    if isinstance(value, Enum):
        value = value.value
    if condition.operator is Operator.ICONTAINS:
        value = _escape_like(str(value))
    return value


@beartype
def compile_predicate(
    predicate: ClaimPredicate, start: int = 1
) -> tuple[str, list[Any]]:
    """Translate a predicate into a ``WHERE`` clause and its parameters.

    Column names come from the :class:`~.claim_store.Condition` field
    whitelist; values are always bound parameters.
    """
    clauses: list[str] = []
    params: list[Any] = []
    for offset, condition in enumerate(predicate):
        template = _COMPARISONS[condition.operator]
        clauses.append(
            template.format(column=condition.field, param=f"${start + offset}")
        )
        params.append(_sql_value(condition))

    if not clauses:
        return "", params
    return "WHERE " + " AND ".join(clauses), params


@beartype
def row_to_claim(row: Any) -> Claim:
    """Convert a ``claims`` row to the domain model."""
    return Claim(**dict(row))


@contextlib.contextmanager
def _store_errors(operation: str):
    try:
        yield
    except asyncpg.UniqueViolationError:
        raise
    except CONNECTION_ERRORS as e:
        logger.error("Claim store %s failed", operation, exc_info=True)
        raise ClaimStoreError(operation, str(e)) from e


class PostgresClaimStore:
    """:class:`~.claim_store.ClaimStore` backed by the ``claims`` table.

    An instance created with a ``connection`` is bound to that connection's
    transaction; one created without acquires a pooled connection per call.
    """

    def __init__(
        self, db: Database, connection: asyncpg.Connection | None = None
    ) -> None:
        self._db = db
        self._conn = connection

    def _require_pool(self) -> None:
        if not self._db.is_connected:
            raise ClaimStoreError("connect", "database pool not initialized")

    @contextlib.asynccontextmanager
    async def _connection(self) -> AsyncIterator[asyncpg.Connection]:
        if self._conn is not None:
            yield self._conn
        else:
            self._require_pool()
            async with self._db.acquire() as conn:
                yield conn

    async def _fetchrow(self, operation: str, query: str, *args: Any) -> Any:
        with _store_errors(operation):
            async with self._connection() as conn:
                return await conn.fetchrow(query, *args)

    async def _fetchval(self, operation: str, query: str, *args: Any) -> Any:
        with _store_errors(operation):
            async with self._connection() as conn:
                return await conn.fetchval(query, *args)

    @beartype
    async def find_by_id(self, claim_id: UUID) -> Claim | None:
        row = await self._fetchrow(
            "find_by_id",
            f"SELECT {CLAIM_COLUMNS} FROM claims WHERE id = $1",  # nosec B608
            claim_id,
        )
        return row_to_claim(row) if row else None

    @beartype
    async def find_by_claim_number(self, claim_number: str) -> Claim | None:
        row = await self._fetchrow(
            "find_by_claim_number",
            f"SELECT {CLAIM_COLUMNS} FROM claims WHERE claim_number = $1",  # nosec B608
            claim_number,
        )
        return row_to_claim(row) if row else None

    @beartype
    async def exists_by_claim_number(self, claim_number: str) -> bool:
        return bool(
            await self._fetchval(
                "exists_by_claim_number",
                "SELECT EXISTS(SELECT 1 FROM claims WHERE claim_number = $1)",
                claim_number,
            )
        )

    @beartype
    async def insert(self, claim: NewClaim) -> Claim:
        query = f"""
            INSERT INTO claims (
                claim_number, policy_number, claimant_name, claimant_email,
                claimant_phone, description, claim_amount, status, incident_date
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
            RETURNING {CLAIM_COLUMNS}
        """  # nosec B608 - column list is a constant
        try:
            with _store_errors("insert"):
                async with self._connection() as conn:
                    # Savepoint, so a duplicate key does not abort the outer transaction
                    async with conn.transaction():
                        row = await conn.fetchrow(
                            query,
                            claim.claim_number,
                            claim.policy_number,
                            claim.claimant_name,
                            str(claim.claimant_email),
                            claim.claimant_phone,
                            claim.description,
                            claim.claim_amount,
                            claim.status.value,
                            claim.incident_date,
                        )
        except asyncpg.UniqueViolationError as e:
            raise DuplicateClaimNumberError(claim.claim_number) from e
        return row_to_claim(row)

    @beartype
    async def save(self, claim: Claim) -> Claim:
        query = f"""
            UPDATE claims
            SET policy_number = $2,
                claimant_name = $3,
                claimant_email = $4,
                claimant_phone = $5,
                description = $6,
                claim_amount = $7,
                status = $8,
                incident_date = $9,
                updated_at = NOW()
            WHERE id = $1
            RETURNING {CLAIM_COLUMNS}
        """  # nosec B608 - column list is a constant
        row = await self._fetchrow(
            "save",
            query,
            claim.id,
            claim.policy_number,
            claim.claimant_name,
            str(claim.claimant_email),
            claim.claimant_phone,
            claim.description,
            claim.claim_amount,
            claim.status.value,
            claim.incident_date,
        )
        if not row:
            raise ClaimStoreError("save", f"claim {claim.id} does not exist")
        return row_to_claim(row)

    @beartype
    async def delete(self, claim: Claim) -> None:
        with _store_errors("delete"):
            async with self._connection() as conn:
                result = await conn.execute(
                    "DELETE FROM claims WHERE id = $1", claim.id
                )
        if result.split()[-1] == "0":
            raise ClaimStoreError("delete", f"claim {claim.id} does not exist")

    @beartype
    async def query(self, predicate: ClaimPredicate, page: PageRequest) -> ClaimPage:
        where, params = compile_predicate(predicate)
        n = len(params)
        # sort_by and direction are enums, never caller text
        order = f"{page.sort_by.value} {page.direction.value.upper()}, id ASC"
        query = f"""
            SELECT {CLAIM_COLUMNS}, COUNT(*) OVER () AS total_count
            FROM claims
            {where}
            ORDER BY {order}
            LIMIT ${n + 1} OFFSET ${n + 2}
        """  # nosec B608 - identifiers are whitelisted, values are bound

        with _store_errors("query"):
            async with self._connection() as conn:
                rows = await conn.fetch(query, *params, page.size, page.offset)
                if rows:
                    total = rows[0]["total_count"]
                else:
                    total = await conn.fetchval(
                        f"SELECT COUNT(*) FROM claims {where}", *params  # nosec B608
                    )

        items = []
        for row in rows:
            data = dict(row)
            data.pop("total_count")
            items.append(Claim(**data))
        return ClaimPage(items=items, total=total, page=page.page, size=page.size)

    @beartype
    async def count(self, predicate: ClaimPredicate) -> int:
        where, params = compile_predicate(predicate)
        return int(
            await self._fetchval(
                "count", f"SELECT COUNT(*) FROM claims {where}", *params  # nosec B608
            )
        )

    @contextlib.asynccontextmanager
    async def transaction(self) -> AsyncIterator["PostgresClaimStore"]:
        """Bind one connection and run the unit of work in a transaction."""
        if self._conn is not None:
            with _store_errors("transaction"):
                async with self._conn.transaction():
                    yield self
            return

        self._require_pool()
        with _store_errors("transaction"):
            async with self._db.transaction() as conn:
                yield PostgresClaimStore(self._db, conn)
