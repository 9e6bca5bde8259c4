"""Centralized cache key management for consistency and type safety.

This module provides a single source of truth for cache key patterns
used by the claim services, preventing key collisions.
"""

from uuid import UUID

from beartype import beartype


class CacheKeys:
    """Centralized cache key management."""

    # Cache key prefixes
    CLAIM_PREFIX = "claim"

    @staticmethod
    @beartype
    def claim_by_id(claim_id: UUID) -> str:
        """Cache key for claim by ID."""
        return f"{CacheKeys.CLAIM_PREFIX}:id:{claim_id}"

    @staticmethod
    @beartype
    def claim_by_number(claim_number: str) -> str:
        """Cache key for claim by claim number."""
        return f"{CacheKeys.CLAIM_PREFIX}:number:{claim_number}"

    @staticmethod
    @beartype
    def claim_writes() -> str:
        """Counter bumped by every committed claim mutation."""
        return f"{CacheKeys.CLAIM_PREFIX}:writes"

    @staticmethod
    @beartype
    def claim_keys(claim_id: UUID, claim_number: str) -> tuple[str, str]:
        """Every key under which a single claim may be cached."""
        return (
            CacheKeys.claim_by_id(claim_id),
            CacheKeys.claim_by_number(claim_number),
        )
