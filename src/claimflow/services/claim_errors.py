"""Typed errors returned by the claim lifecycle services.

Services return these inside ``Err`` rather than raising them. Each error
carries the structured context the transport layer needs to build a response
(ids, statuses, field names) and a stable ``code``.
"""

from enum import Enum
from typing import Any, ClassVar
from uuid import UUID

import attrs
from attrs import frozen
from beartype import beartype

from ..models.claim import ClaimStatus


def _jsonable(_inst: Any, _field: Any, value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    return value


@frozen
class ClaimError:
    """Base class of every claim lifecycle error."""

    code: ClassVar[str] = "CLAIM_ERROR"

    @property
    def message(self) -> str:
        return self.code

    @beartype
    def details(self) -> dict[str, Any]:
        """Structured fields of the error, JSON-ready."""
        return attrs.asdict(self, value_serializer=_jsonable)

    def __str__(self) -> str:
        return self.message


@frozen
class NotFound(ClaimError):
    """No claim exists for the given id or claim number."""

    code: ClassVar[str] = "CLAIM_NOT_FOUND"

    claim_id: UUID | None = None
    claim_number: str | None = None

    @property
    def message(self) -> str:
        if self.claim_number is not None:
            return f"Claim not found with claim number: {self.claim_number}"
        return f"Claim not found with id: {self.claim_id}"


@frozen
class ValidationFailed(ClaimError):
    """A business rule rejected the claim."""

    code: ClassVar[str] = "VALIDATION_FAILED"

    field: str
    reason: str
    rule: str

    @property
    def message(self) -> str:
        return self.reason


@frozen
class InvalidTransition(ClaimError):
    """The requested status is not reachable from the current one."""

    code: ClassVar[str] = "INVALID_STATUS_TRANSITION"

    claim_id: UUID
    current: ClaimStatus
    requested: ClaimStatus

    @property
    def message(self) -> str:
        return (
            f"Invalid status transition from {self.current.value} "
            f"to {self.requested.value}"
        )


@frozen
class TerminalStateViolation(ClaimError):
    """An update targeted a claim that has reached a terminal status."""

    code: ClassVar[str] = "TERMINAL_STATE"

    claim_id: UUID
    status: ClaimStatus

    @property
    def message(self) -> str:
        return f"Cannot update claim in final status: {self.status.value}"


@frozen
class OperationNotAllowed(ClaimError):
    """The operation requires a status the claim is not in."""

    code: ClassVar[str] = "OPERATION_NOT_ALLOWED"

    claim_id: UUID
    operation: str
    status: ClaimStatus
    required: ClaimStatus

    @property
    def message(self) -> str:
        return (
            f"Cannot {self.operation} claim in status {self.status.value}; "
            f"only {self.required.value} claims allow it"
        )


@frozen
class IdentifierGenerationExhausted(ClaimError):
    """Every claim number drawn collided with an existing one."""

    code: ClassVar[str] = "CLAIM_NUMBER_EXHAUSTED"

    attempts: int

    @property
    def message(self) -> str:
        return f"Unable to generate unique claim number after {self.attempts} attempts"


@frozen
class StoreFailure(ClaimError):
    """The claim store failed for reasons outside the service's control."""

    code: ClassVar[str] = "STORE_FAILURE"

    operation: str
    detail: str

    @property
    def message(self) -> str:
        return f"Claim store failed during {self.operation}: {self.detail}"
