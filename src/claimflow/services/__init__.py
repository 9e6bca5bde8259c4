"""Service layer for claim lifecycle business logic.

Services return ``Result`` values; business failures are
:class:`~.claim_errors.ClaimError` instances, never exceptions.
"""

from .claim_errors import (
    ClaimError,
    IdentifierGenerationExhausted,
    InvalidTransition,
    NotFound,
    OperationNotAllowed,
    StoreFailure,
    TerminalStateViolation,
    ValidationFailed,
)
from .claim_number import ClaimNumberGenerator
from .claim_search import ClaimSearchService
from .claim_service import ClaimService
from .claim_store import (
    ClaimPredicate,
    ClaimStore,
    ClaimStoreError,
    Condition,
    DuplicateClaimNumberError,
    Operator,
)
from .claim_store_memory import InMemoryClaimStore
from .claim_store_postgres import PostgresClaimStore

__all__ = [
    # Services
    "ClaimService",
    "ClaimSearchService",
    "ClaimNumberGenerator",
    # Stores
    "ClaimStore",
    "ClaimStoreError",
    "DuplicateClaimNumberError",
    "InMemoryClaimStore",
    "PostgresClaimStore",
    "ClaimPredicate",
    "Condition",
    "Operator",
    # Errors
    "ClaimError",
    "NotFound",
    "ValidationFailed",
    "InvalidTransition",
    "TerminalStateViolation",
    "OperationNotAllowed",
    "IdentifierGenerationExhausted",
    "StoreFailure",
]
