"""API response patterns following Result[T, E] + HTTP semantics.

Services return ``Ok``/``Err``; this module is the single place that turns a
typed :class:`~claimflow.services.claim_errors.ClaimError` into a status code
and an :class:`ErrorResponse` body.
"""

from typing import Any, TypeVar

from beartype import beartype
from fastapi import Response, status
from pydantic import Field

from ..core.result_types import Result
from ..models.base import BaseModelConfig
from ..services.claim_errors import (
    ClaimError,
    IdentifierGenerationExhausted,
    InvalidTransition,
    NotFound,
    OperationNotAllowed,
    StoreFailure,
    TerminalStateViolation,
    ValidationFailed,
)

T = TypeVar("T")


@beartype
class ErrorResponse(BaseModelConfig):
    """Standardized error response for business logic failures."""

    success: bool = Field(default=False, description="Always false for error responses")
    error: str = Field(..., description="Human-readable error message")
    error_code: str | None = Field(
        default=None, description="Machine-readable error code"
    )
    details: dict[str, Any] | None = Field(
        default=None, description="Additional error context"
    )


ERROR_STATUS: dict[type[ClaimError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    ValidationFailed: status.HTTP_400_BAD_REQUEST,
    InvalidTransition: status.HTTP_400_BAD_REQUEST,
    TerminalStateViolation: status.HTTP_400_BAD_REQUEST,
    OperationNotAllowed: status.HTTP_400_BAD_REQUEST,
    IdentifierGenerationExhausted: status.HTTP_500_INTERNAL_SERVER_ERROR,
    StoreFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
}


class APIResponseHandler:
    """Maps service results onto HTTP responses."""

    @staticmethod
    @beartype
    def map_error_to_status(error: ClaimError) -> int:
        """HTTP status code for a claim error.

        Args:
            error: Business logic error

        Returns:
            HTTP status code following RESTful conventions
        """
        return ERROR_STATUS.get(type(error), status.HTTP_500_INTERNAL_SERVER_ERROR)

    @staticmethod
    @beartype
    def error_response(error: ClaimError) -> ErrorResponse:
        """Body describing ``error``."""
        return ErrorResponse(
            error=error.message,
            error_code=error.code,
            details=error.details() or None,
        )

    @staticmethod
    @beartype
    def from_result(
        result: Result[T, ClaimError],
        response: Response,
        success_status: int = 200,
    ) -> Any:
        """Convert Result[T, E] to a response payload with the right status.

        Args:
            result: Service layer Result
            response: FastAPI Response object to set status code
            success_status: HTTP status for successful operations (default 200)

        Returns:
            Either the unwrapped success value or ErrorResponse
        """
        if result.is_err():
            error = result.unwrap_err()
            response.status_code = APIResponseHandler.map_error_to_status(error)
            return APIResponseHandler.error_response(error)

        response.status_code = success_status
        return result.unwrap()


@beartype
def handle_result(
    result: Result[T, ClaimError],
    response: Response,
    success_status: int = 200,
) -> Any:
    """Convenience function for standard result handling."""
    return APIResponseHandler.from_result(result, response, success_status)
