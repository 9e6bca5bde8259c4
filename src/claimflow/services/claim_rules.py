"""Business rules applied to a claim before any write.

Rules run in a fixed order and the first failure wins:

1. the claim amount must be strictly positive;
2. the incident must not lie in the future;
3. the incident must not be older than the look-back window (two years).

The rules only look at amount and incident date. Status and claim number are
checked elsewhere.
"""

from datetime import datetime
from decimal import Decimal
from typing import TypeVar

from beartype import beartype

from ..core.result_types import Err, Ok, Result
from ..models.claim import ClaimBase, as_utc
from .claim_errors import ValidationFailed

DEFAULT_LOOKBACK_YEARS = 2

ClaimT = TypeVar("ClaimT", bound=ClaimBase)


@beartype
def years_before(moment: datetime, years: int) -> datetime:
    """Same calendar instant ``years`` earlier; 29 February falls back to the 28th."""
    try:
        return moment.replace(year=moment.year - years)
    except ValueError:
        return moment.replace(year=moment.year - years, day=28)


@beartype
def check_amount(amount: Decimal) -> ValidationFailed | None:
    if amount <= 0:
        return ValidationFailed(
            field="claim_amount",
            reason="Claim amount must be greater than zero",
            rule="positive_amount",
        )
    return None


@beartype
def check_incident_date(
    incident_date: datetime,
    now: datetime,
    lookback_years: int = DEFAULT_LOOKBACK_YEARS,
) -> ValidationFailed | None:
    incident = as_utc(incident_date)
    now = as_utc(now)
    if incident > now:
        return ValidationFailed(
            field="incident_date",
            reason="Incident date cannot be in the future",
            rule="incident_not_future",
        )
    if incident < years_before(now, lookback_years):
        return ValidationFailed(
            field="incident_date",
            reason=f"Incident date cannot be more than {lookback_years} years old",
            rule="incident_within_lookback",
        )
    return None


@beartype
def validate_claim(
    claim: ClaimT,
    now: datetime,
    lookback_years: int = DEFAULT_LOOKBACK_YEARS,
) -> Result[ClaimT, ValidationFailed]:
    """Run every rule against ``claim`` as of ``now``.

    Args:
        claim: Candidate claim, before or after a merge
        now: The instant the mutation happens
        lookback_years: How far back an incident may lie

    Returns:
        Result containing the unchanged claim or the first rule violation
    """
    failure = check_amount(claim.claim_amount) or check_incident_date(
        claim.incident_date, now, lookback_years
    )
    if failure is not None:
        return Err(failure)
    return Ok(claim)
