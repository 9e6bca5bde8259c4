"""Claim number generation.

Claim numbers look like ``CLM-2025-483920``: the current year followed by a
random six digit number. Random draws avoid a shared counter; a collision with
an existing number is simply drawn again, up to a fixed number of attempts.
"""

import random
from collections.abc import Callable
from datetime import datetime

from beartype import beartype

from ..core.logging_utils import get_logger
from ..core.result_types import Err, Ok, Result
from ..models.claim import utcnow
from .claim_errors import IdentifierGenerationExhausted, StoreFailure
from .claim_store import ClaimStore, ClaimStoreError

logger = get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 10
NUMBER_MIN = 100000
NUMBER_MAX = 999999


@beartype
def format_claim_number(year: int, number: int) -> str:
    """Render ``CLM-<year>-<NNNNNN>``."""
    return f"CLM-{year}-{number:06d}"


class ClaimNumberGenerator:
    """Draws claim numbers that are unused at the moment of the check.

    The random source and clock are injected so callers can make generation
    deterministic.
    """

    def __init__(
        self,
        store: ClaimStore,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utcnow,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._store = store
        self._rng = rng or random.Random()  # nosec B311 - not a secret
        self._clock = clock
        self.max_attempts = max_attempts

    @beartype
    def candidate(self) -> str:
        """Draw one claim number without checking the store."""
        return format_claim_number(
            self._clock().year, self._rng.randint(NUMBER_MIN, NUMBER_MAX)
        )

    async def generate(
        self, store: ClaimStore | None = None
    ) -> Result[str, IdentifierGenerationExhausted | StoreFailure]:
        """Return a claim number the store does not know yet.

        Args:
            store: Store to check against, defaults to the one given at
                construction (pass a transaction-bound store here)

        Returns:
            Result containing the claim number, ``IdentifierGenerationExhausted``
            after ``max_attempts`` collisions, or ``StoreFailure``
        """
        if store is None:
            store = self._store
        for attempt in range(1, self.max_attempts + 1):
            claim_number = self.candidate()
            try:
                taken = await store.exists_by_claim_number(claim_number)
            except ClaimStoreError as e:
                return Err(StoreFailure(operation=e.operation, detail=e.detail))

            if not taken:
                return Ok(claim_number)
            logger.debug(
                "Claim number collision on %s (attempt %d/%d)",
                claim_number,
                attempt,
                self.max_attempts,
            )

        logger.error(
            "Unable to generate unique claim number after %d attempts",
            self.max_attempts,
        )
        return Err(IdentifierGenerationExhausted(attempts=self.max_attempts))
