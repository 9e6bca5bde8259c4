"""Unit tests for the claim status workflow."""

import pytest

from claimflow.models.claim import ClaimStatus
from claimflow.services.claim_status import (
    INITIAL_STATUS,
    TRANSITIONS,
    can_transition,
    is_successful,
    is_terminal,
    valid_next_states,
)

LEGAL_EDGES = {
    (ClaimStatus.SUBMITTED, ClaimStatus.UNDER_REVIEW),
    (ClaimStatus.SUBMITTED, ClaimStatus.CANCELLED),
    (ClaimStatus.UNDER_REVIEW, ClaimStatus.APPROVED),
    (ClaimStatus.UNDER_REVIEW, ClaimStatus.REJECTED),
    (ClaimStatus.UNDER_REVIEW, ClaimStatus.CANCELLED),
    (ClaimStatus.APPROVED, ClaimStatus.PAID),
    (ClaimStatus.APPROVED, ClaimStatus.CANCELLED),
}


class TestTransitionTable:
    """Test the transition table itself."""

    def test_initial_status_is_submitted(self) -> None:
        """New claims start as SUBMITTED."""
        assert INITIAL_STATUS is ClaimStatus.SUBMITTED

    def test_every_status_has_an_entry(self) -> None:
        """The table covers every status."""
        assert set(TRANSITIONS) == set(ClaimStatus)

    def test_table_is_read_only(self) -> None:
        """The table cannot be mutated at runtime."""
        with pytest.raises(TypeError):
            TRANSITIONS[ClaimStatus.PAID] = frozenset()  # type: ignore[index]

    def test_valid_next_states(self) -> None:
        """Next states follow the workflow."""
        assert valid_next_states(ClaimStatus.SUBMITTED) == {
            ClaimStatus.UNDER_REVIEW,
            ClaimStatus.CANCELLED,
        }
        assert valid_next_states(ClaimStatus.UNDER_REVIEW) == {
            ClaimStatus.APPROVED,
            ClaimStatus.REJECTED,
            ClaimStatus.CANCELLED,
        }
        assert valid_next_states(ClaimStatus.APPROVED) == {
            ClaimStatus.PAID,
            ClaimStatus.CANCELLED,
        }
        for status in (ClaimStatus.REJECTED, ClaimStatus.PAID, ClaimStatus.CANCELLED):
            assert valid_next_states(status) == frozenset()


class TestCanTransition:
    """Test pairwise transition checks."""

    @pytest.mark.parametrize("current", list(ClaimStatus))
    @pytest.mark.parametrize("target", list(ClaimStatus))
    def test_matches_legal_edges(
        self, current: ClaimStatus, target: ClaimStatus
    ) -> None:
        """Exactly the seven workflow edges are allowed."""
        assert can_transition(current, target) == ((current, target) in LEGAL_EDGES)

    @pytest.mark.parametrize("status", list(ClaimStatus))
    def test_no_self_transition(self, status: ClaimStatus) -> None:
        """A status never transitions to itself."""
        assert not can_transition(status, status)

    @pytest.mark.parametrize("status", list(ClaimStatus))
    def test_nothing_returns_to_submitted(self, status: ClaimStatus) -> None:
        """SUBMITTED is only ever an initial status."""
        assert not can_transition(status, ClaimStatus.SUBMITTED)


class TestStatusClassification:
    """Test terminal and success classification."""

    def test_terminal_statuses(self) -> None:
        """REJECTED, PAID and CANCELLED are terminal."""
        terminal = {s for s in ClaimStatus if is_terminal(s)}
        assert terminal == {
            ClaimStatus.REJECTED,
            ClaimStatus.PAID,
            ClaimStatus.CANCELLED,
        }

    def test_terminal_iff_no_outgoing_edges(self) -> None:
        """Terminal statuses are exactly those with no next state."""
        for status in ClaimStatus:
            assert is_terminal(status) == (not valid_next_states(status))

    def test_only_paid_is_successful(self) -> None:
        """A paid claim is the only successful outcome."""
        assert [s for s in ClaimStatus if is_successful(s)] == [ClaimStatus.PAID]

    def test_status_descriptions(self) -> None:
        """Every status carries a readable description."""
        assert ClaimStatus.PAID.description == "Claim has been paid"
        assert all(status.description for status in ClaimStatus)
