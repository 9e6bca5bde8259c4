"""Claim search facade.

Turns optional filter criteria into a :class:`~.claim_store.ClaimPredicate`
and runs it against the store. Filters combine with AND and an absent filter
matches everything, so no combination is ever rejected.
"""

from datetime import datetime
from decimal import Decimal

from beartype import beartype

from ..core.logging_utils import get_logger
from ..core.result_types import Err, Ok, Result
from ..models.claim import ClaimStatus, as_utc
from ..models.search import ClaimPage, ClaimSearchCriteria, PageRequest
from .claim_errors import StoreFailure
from .claim_service import store_failure
from .claim_store import ClaimPredicate, ClaimStore, ClaimStoreError, Operator
from .performance_monitor import performance_monitor

logger = get_logger(__name__)

HIGH_VALUE_THRESHOLD = Decimal("10000")


@beartype
def build_predicate(criteria: ClaimSearchCriteria) -> ClaimPredicate:
    """Translate search criteria into a store predicate."""
    predicate = ClaimPredicate()
    if criteria.policy_number is not None:
        predicate = predicate.where(
            "policy_number", Operator.EQ, criteria.policy_number
        )
    if criteria.status is not None:
        predicate = predicate.where("status", Operator.EQ, criteria.status)
    if criteria.claimant_email is not None:
        predicate = predicate.where(
            "claimant_email", Operator.IEQ, str(criteria.claimant_email)
        )
    if criteria.min_amount is not None:
        predicate = predicate.where("claim_amount", Operator.GT, criteria.min_amount)
    if criteria.created_from is not None:
        predicate = predicate.where(
            "created_at", Operator.GTE, as_utc(criteria.created_from)
        )
    if criteria.created_to is not None:
        predicate = predicate.where(
            "created_at", Operator.LTE, as_utc(criteria.created_to)
        )
    if criteria.claimant_name:
        predicate = predicate.where(
            "claimant_name", Operator.ICONTAINS, criteria.claimant_name
        )
    return predicate


class ClaimSearchService:
    """Read-only queries over the claim collection."""

    def __init__(self, store: ClaimStore) -> None:
        self._store = store

    @beartype
    @performance_monitor("search_claims")
    async def search(
        self,
        criteria: ClaimSearchCriteria,
        page: PageRequest | None = None,
    ) -> Result[ClaimPage, StoreFailure]:
        """Page through claims matching every supplied filter."""
        if page is None:
            page = PageRequest()
        predicate = build_predicate(criteria)
        logger.debug(
            "Searching claims with %d filter(s), page %d",
            len(predicate.conditions),
            page.page,
        )
        try:
            return Ok(await self._store.query(predicate, page))
        except ClaimStoreError as e:
            return Err(store_failure(e))

    @beartype
    async def by_policy_number(
        self, policy_number: str, page: PageRequest | None = None
    ) -> Result[ClaimPage, StoreFailure]:
        return await self.search(ClaimSearchCriteria(policy_number=policy_number), page)

    @beartype
    async def by_claimant_email(
        self, email: str, page: PageRequest | None = None
    ) -> Result[ClaimPage, StoreFailure]:
        return await self.search(ClaimSearchCriteria(claimant_email=email), page)

    @beartype
    async def by_status(
        self, status: ClaimStatus, page: PageRequest | None = None
    ) -> Result[ClaimPage, StoreFailure]:
        return await self.search(ClaimSearchCriteria(status=status), page)

    @beartype
    async def high_value(
        self,
        min_amount: Decimal = HIGH_VALUE_THRESHOLD,
        page: PageRequest | None = None,
    ) -> Result[ClaimPage, StoreFailure]:
        """Claims whose amount is strictly greater than ``min_amount``."""
        return await self.search(ClaimSearchCriteria(min_amount=min_amount), page)

    @beartype
    async def created_between(
        self,
        start: datetime,
        end: datetime,
        page: PageRequest | None = None,
    ) -> Result[ClaimPage, StoreFailure]:
        """Claims created in ``[start, end]``."""
        return await self.search(
            ClaimSearchCriteria(created_from=start, created_to=end), page
        )

    @beartype
    async def by_claimant_name(
        self, fragment: str, page: PageRequest | None = None
    ) -> Result[ClaimPage, StoreFailure]:
        """Claims whose claimant name contains ``fragment``, ignoring case."""
        return await self.search(ClaimSearchCriteria(claimant_name=fragment), page)

    @beartype
    async def count_by_status(self, status: ClaimStatus) -> Result[int, StoreFailure]:
        predicate = build_predicate(ClaimSearchCriteria(status=status))
        try:
            return Ok(await self._store.count(predicate))
        except ClaimStoreError as e:
            return Err(store_failure(e))
