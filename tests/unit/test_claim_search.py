"""Unit tests for the claim search facade."""

from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from claimflow.core.result_types import Err, Ok
from claimflow.models.claim import Claim, ClaimStatus
from claimflow.models.search import (
    ClaimSearchCriteria,
    ClaimSortField,
    PageRequest,
    SortDirection,
)
from claimflow.services.claim_errors import StoreFailure
from claimflow.services.claim_search import ClaimSearchService, build_predicate
from claimflow.services.claim_store import ClaimStoreError, Operator
from claimflow.services.claim_store_memory import InMemoryClaimStore
from tests.fixtures.test_data import FIXED_NOW, ClaimDataFactory, SteppingClock

ALL = PageRequest(
    size=100, sort_by=ClaimSortField.CREATED_AT, direction=SortDirection.ASC
)


@pytest.fixture
def store() -> InMemoryClaimStore:
    """Store whose claims are created one hour apart."""
    return InMemoryClaimStore(clock=SteppingClock(FIXED_NOW, timedelta(hours=1)))


@pytest.fixture
def search(store: InMemoryClaimStore) -> ClaimSearchService:
    """Search service over the stepping store."""
    return ClaimSearchService(store)


@pytest.fixture
async def claims(
    store: InMemoryClaimStore, claim_factory: ClaimDataFactory
) -> list[Claim]:
    """Five claims with distinct policies, claimants, amounts and statuses."""
    rows = [
        ("POL-A-0001", "Jane Doe", "jane.doe@example.com", "500.00", "SUBMITTED"),
        ("POL-A-0001", "John Doe", "John.Doe@Example.com", "10000.00", "UNDER_REVIEW"),
        ("POL-B-0002", "Ana Silva", "ana@example.com", "10000.01", "APPROVED"),
        ("POL-B-0002", "Bob Stone", "bob@example.com", "75000.00", "PAID"),
        ("POL-C-0003", "Dora Smith", "dora@example.com", "1200.00", "SUBMITTED"),
    ]
    inserted = []
    for policy, name, email, amount, status in rows:
        inserted.append(
            await store.insert(
                claim_factory.create_new_claim(
                    status=ClaimStatus(status),
                    policy_number=policy,
                    claimant_name=name,
                    claimant_email=email,
                    claim_amount=Decimal(amount),
                )
            )
        )
    return inserted


def names(result: Ok) -> list[str]:
    """Claimant names on a page, in page order."""
    return [claim.claimant_name for claim in result.unwrap().items]


class TestBuildPredicate:
    """Test criteria translation."""

    def test_empty_criteria_match_everything(self) -> None:
        """No filters gives an empty predicate."""
        assert not build_predicate(ClaimSearchCriteria())

    def test_every_filter_becomes_a_condition(self) -> None:
        """Each supplied filter adds exactly one condition."""
        predicate = build_predicate(
            ClaimSearchCriteria(
                policy_number="POL-A-0001",
                status=ClaimStatus.PAID,
                claimant_email="a@example.com",
                min_amount=Decimal("10"),
                created_from=FIXED_NOW,
                created_to=FIXED_NOW,
                claimant_name="doe",
            )
        )

        assert [(c.field, c.operator) for c in predicate] == [
            ("policy_number", Operator.EQ),
            ("status", Operator.EQ),
            ("claimant_email", Operator.IEQ),
            ("claim_amount", Operator.GT),
            ("created_at", Operator.GTE),
            ("created_at", Operator.LTE),
            ("claimant_name", Operator.ICONTAINS),
        ]

    def test_blank_name_is_ignored(self) -> None:
        """An empty name fragment does not filter."""
        assert not build_predicate(ClaimSearchCriteria(claimant_name=""))

    def test_naive_dates_become_utc(self) -> None:
        """Date bounds are compared as UTC."""
        predicate = build_predicate(
            ClaimSearchCriteria(created_from=datetime(2025, 6, 15, 12, 0))
        )
        assert next(iter(predicate)).value == FIXED_NOW


class TestSearch:
    """Test filtered searches."""

    async def test_no_filters_returns_all(
        self, search: ClaimSearchService, claims: list[Claim]
    ) -> None:
        """An empty criteria object returns every claim."""
        result = await search.search(ClaimSearchCriteria(), ALL)

        assert result.unwrap().total == 5

    async def test_default_page(
        self, search: ClaimSearchService, claims: list[Claim]
    ) -> None:
        """Without a page request the newest claims come first."""
        result = await search.search(ClaimSearchCriteria())

        assert names(result)[0] == "Dora Smith"

    async def test_by_policy_number(
        self, search: ClaimSearchService, claims: list[Claim]
    ) -> None:
        """Policy numbers match exactly."""
        result = await search.by_policy_number("POL-B-0002", ALL)

        assert names(result) == ["Ana Silva", "Bob Stone"]

    async def test_by_claimant_email_ignores_case(
        self, search: ClaimSearchService, claims: list[Claim]
    ) -> None:
        """Email comparison is case-insensitive."""
        result = await search.by_claimant_email("JOHN.DOE@EXAMPLE.COM", ALL)

        assert names(result) == ["John Doe"]

    async def test_by_status(
        self, search: ClaimSearchService, claims: list[Claim]
    ) -> None:
        """Status filter matches exactly."""
        result = await search.by_status(ClaimStatus.SUBMITTED, ALL)

        assert names(result) == ["Jane Doe", "Dora Smith"]

    async def test_high_value_is_strictly_greater(
        self, search: ClaimSearchService, claims: list[Claim]
    ) -> None:
        """Claims of exactly 10000 are not high value."""
        result = await search.high_value(page=ALL)

        assert names(result) == ["Ana Silva", "Bob Stone"]

    async def test_high_value_custom_threshold(
        self, search: ClaimSearchService, claims: list[Claim]
    ) -> None:
        """The threshold can be lowered."""
        result = await search.high_value(Decimal("1000"), ALL)

        assert len(names(result)) == 4

    async def test_created_between_is_inclusive(
        self, search: ClaimSearchService, claims: list[Claim]
    ) -> None:
        """Both range bounds are included."""
        result = await search.created_between(
            claims[1].created_at, claims[3].created_at, ALL
        )

        assert names(result) == ["John Doe", "Ana Silva", "Bob Stone"]

    async def test_by_claimant_name_fragment(
        self, search: ClaimSearchService, claims: list[Claim]
    ) -> None:
        """Name fragments match anywhere, ignoring case."""
        result = await search.by_claimant_name("DOE", ALL)

        assert names(result) == ["Jane Doe", "John Doe"]

    async def test_filters_combine_with_and(
        self, search: ClaimSearchService, claims: list[Claim]
    ) -> None:
        """Every supplied filter must match."""
        result = await search.search(
            ClaimSearchCriteria(policy_number="POL-A-0001", min_amount=Decimal("1000")),
            ALL,
        )

        assert names(result) == ["John Doe"]

    async def test_no_match_is_an_empty_page(
        self, search: ClaimSearchService, claims: list[Claim]
    ) -> None:
        """Unmatched searches are not errors."""
        result = await search.by_policy_number("POL-Z-9999", ALL)

        assert isinstance(result, Ok)
        assert result.unwrap().items == []
        assert result.unwrap().total == 0
        assert result.unwrap().total_pages == 0

    async def test_paging(
        self, search: ClaimSearchService, claims: list[Claim]
    ) -> None:
        """Page size and index slice the sorted result."""
        page = PageRequest(
            page=1,
            size=2,
            sort_by=ClaimSortField.CLAIM_AMOUNT,
            direction=SortDirection.DESC,
        )
        result = await search.search(ClaimSearchCriteria(), page)

        claim_page = result.unwrap()
        assert [c.claimant_name for c in claim_page.items] == ["John Doe", "Dora Smith"]
        assert claim_page.total == 5
        assert claim_page.total_pages == 3

    async def test_count_by_status(
        self, search: ClaimSearchService, claims: list[Claim]
    ) -> None:
        """Counts reflect current statuses."""
        assert await search.count_by_status(ClaimStatus.SUBMITTED) == Ok(2)
        assert await search.count_by_status(ClaimStatus.CANCELLED) == Ok(0)


class TestSearchFailures:
    """Test store failures during search."""

    async def test_query_failure(self, mock_store: MagicMock) -> None:
        """A failing query comes back as StoreFailure."""
        mock_store.query.side_effect = ClaimStoreError("query", "statement timeout")
        search = ClaimSearchService(mock_store)

        result = await search.search(ClaimSearchCriteria())

        assert result == Err(
            StoreFailure(operation="query", detail="statement timeout")
        )

    async def test_count_failure(self, mock_store: MagicMock) -> None:
        """A failing count comes back as StoreFailure."""
        mock_store.count.side_effect = ClaimStoreError("count", "connection reset")
        search = ClaimSearchService(mock_store)

        result = await search.count_by_status(ClaimStatus.PAID)

        assert isinstance(result, Err)
        assert result.error.operation == "count"
