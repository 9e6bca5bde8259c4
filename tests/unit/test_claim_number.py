"""Unit tests for claim number generation."""

import random
import re
from collections.abc import Callable
from datetime import datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from claimflow.core.result_types import Err, Ok
from claimflow.models.claim import CLAIM_NUMBER_PATTERN
from claimflow.services.claim_errors import (
    IdentifierGenerationExhausted,
    StoreFailure,
)
from claimflow.services.claim_number import (
    ClaimNumberGenerator,
    format_claim_number,
)
from claimflow.services.claim_store import ClaimStoreError
from claimflow.services.claim_store_memory import InMemoryClaimStore


def store_with_taken(answers: list[bool]) -> MagicMock:
    """Store whose ``exists_by_claim_number`` returns ``answers`` in order."""
    store = MagicMock()
    store.exists_by_claim_number = AsyncMock(side_effect=answers)
    return store


class TestFormat:
    """Test claim number formatting."""

    def test_zero_pads_to_six_digits(self) -> None:
        """Numbers are always six digits."""
        assert format_claim_number(2025, 42) == "CLM-2025-000042"

    def test_matches_pattern(self) -> None:
        """Formatted numbers satisfy the model pattern."""
        assert re.fullmatch(CLAIM_NUMBER_PATTERN, format_claim_number(2025, 483920))


class TestCandidate:
    """Test unchecked draws."""

    def test_uses_clock_year(
        self,
        memory_store: InMemoryClaimStore,
        fixed_clock: Callable[[], datetime],
    ) -> None:
        """The year part comes from the injected clock."""
        generator = ClaimNumberGenerator(memory_store, clock=fixed_clock)
        assert generator.candidate().startswith("CLM-2025-")

    def test_seeded_draws_are_reproducible(
        self,
        memory_store: InMemoryClaimStore,
        fixed_clock: Callable[[], datetime],
    ) -> None:
        """Equal seeds give equal sequences."""
        first = ClaimNumberGenerator(
            memory_store, rng=random.Random(7), clock=fixed_clock
        )
        second = ClaimNumberGenerator(
            memory_store, rng=random.Random(7), clock=fixed_clock
        )
        assert [first.candidate() for _ in range(5)] == [
            second.candidate() for _ in range(5)
        ]

    def test_number_range(
        self,
        memory_store: InMemoryClaimStore,
        rng: random.Random,
        fixed_clock: Callable[[], datetime],
    ) -> None:
        """The numeric part stays within 100000..999999."""
        generator = ClaimNumberGenerator(memory_store, rng=rng, clock=fixed_clock)
        for _ in range(200):
            number = int(generator.candidate().rsplit("-", 1)[1])
            assert 100000 <= number <= 999999

    def test_max_attempts_must_be_positive(
        self, memory_store: InMemoryClaimStore
    ) -> None:
        """A generator needs at least one attempt."""
        with pytest.raises(ValueError, match="max_attempts"):
            ClaimNumberGenerator(memory_store, max_attempts=0)


class TestGenerate:
    """Test collision-checked generation."""

    async def test_returns_unused_number(
        self, number_generator: ClaimNumberGenerator
    ) -> None:
        """An empty store accepts the first draw."""
        result = await number_generator.generate()

        assert isinstance(result, Ok)
        assert re.fullmatch(CLAIM_NUMBER_PATTERN, result.unwrap())

    async def test_retries_on_collision(
        self, rng: random.Random, fixed_clock: Callable[[], datetime]
    ) -> None:
        """Taken numbers are redrawn until a free one turns up."""
        store = store_with_taken([True, True, False])
        generator = ClaimNumberGenerator(store, rng=rng, clock=fixed_clock)

        result = await generator.generate()

        assert isinstance(result, Ok)
        assert store.exists_by_claim_number.await_count == 3
        assert result.unwrap() == store.exists_by_claim_number.await_args.args[0]

    async def test_exhaustion_after_max_attempts(
        self, rng: random.Random, fixed_clock: Callable[[], datetime]
    ) -> None:
        """Every draw colliding ends in IdentifierGenerationExhausted."""
        store = store_with_taken([True] * 3)
        generator = ClaimNumberGenerator(
            store, rng=rng, clock=fixed_clock, max_attempts=3
        )

        result = await generator.generate()

        assert isinstance(result, Err)
        assert result.error == IdentifierGenerationExhausted(attempts=3)
        assert store.exists_by_claim_number.await_count == 3
        assert result.error.message == (
            "Unable to generate unique claim number after 3 attempts"
        )

    async def test_default_attempt_cap_is_ten(
        self, rng: random.Random, fixed_clock: Callable[[], datetime]
    ) -> None:
        """Ten draws are tried by default."""
        store = store_with_taken([True] * 10)
        generator = ClaimNumberGenerator(store, rng=rng, clock=fixed_clock)

        result = await generator.generate()

        assert isinstance(result, Err)
        assert store.exists_by_claim_number.await_count == 10

    async def test_store_failure_is_returned(
        self, rng: random.Random, fixed_clock: Callable[[], datetime]
    ) -> None:
        """A store error becomes a StoreFailure value."""
        store = MagicMock()
        store.exists_by_claim_number = AsyncMock(
            side_effect=ClaimStoreError("exists_by_claim_number", "connection reset")
        )
        generator = ClaimNumberGenerator(store, rng=rng, clock=fixed_clock)

        result = await generator.generate()

        assert isinstance(result, Err)
        assert result.error == StoreFailure(
            operation="exists_by_claim_number", detail="connection reset"
        )

    async def test_checks_against_given_store(
        self, rng: random.Random, fixed_clock: Callable[[], datetime]
    ) -> None:
        """A store passed to ``generate`` replaces the default one."""
        default_store = store_with_taken([])
        bound_store = store_with_taken([False])
        generator = ClaimNumberGenerator(default_store, rng=rng, clock=fixed_clock)

        result = await generator.generate(bound_store)

        assert isinstance(result, Ok)
        default_store.exists_by_claim_number.assert_not_awaited()
        bound_store.exists_by_claim_number.assert_awaited_once()
