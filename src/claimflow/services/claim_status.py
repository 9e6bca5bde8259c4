"""Claim status workflow.

The transition table below is the only place that decides which status may
follow which. Everything else asks these functions.

    SUBMITTED    -> UNDER_REVIEW, CANCELLED
    UNDER_REVIEW -> APPROVED, REJECTED, CANCELLED
    APPROVED     -> PAID, CANCELLED
    REJECTED, PAID, CANCELLED are terminal.
"""

from types import MappingProxyType
from typing import Final

from beartype import beartype

from ..models.claim import ClaimStatus

INITIAL_STATUS: Final = ClaimStatus.SUBMITTED

TRANSITIONS: Final = MappingProxyType(
    {
        ClaimStatus.SUBMITTED: frozenset(
            {ClaimStatus.UNDER_REVIEW, ClaimStatus.CANCELLED}
        ),
        ClaimStatus.UNDER_REVIEW: frozenset(
            {ClaimStatus.APPROVED, ClaimStatus.REJECTED, ClaimStatus.CANCELLED}
        ),
        ClaimStatus.APPROVED: frozenset({ClaimStatus.PAID, ClaimStatus.CANCELLED}),
        ClaimStatus.REJECTED: frozenset(),
        ClaimStatus.PAID: frozenset(),
        ClaimStatus.CANCELLED: frozenset(),
    }
)

_SUCCESSFUL: Final = frozenset({ClaimStatus.PAID})


@beartype
def valid_next_states(status: ClaimStatus) -> frozenset[ClaimStatus]:
    """Statuses reachable from ``status`` in one step."""
    return TRANSITIONS[status]


@beartype
def can_transition(current: ClaimStatus, target: ClaimStatus) -> bool:
    """Whether ``current -> target`` is an edge of the workflow.

    A status never transitions to itself.
    """
    return target in TRANSITIONS[current]


@beartype
def is_terminal(status: ClaimStatus) -> bool:
    """Terminal statuses have no outgoing transitions."""
    return not TRANSITIONS[status]


@beartype
def is_successful(status: ClaimStatus) -> bool:
    """Only a paid claim counts as successfully processed."""
    return status in _SUCCESSFUL
