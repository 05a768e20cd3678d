"""Payout calculator — pure functions over order attributes and tier rates.

No clock, randomness or I/O: identical inputs always give identical
breakdowns, so quotes can be recomputed for audit at any time.

Worked example (3 ordinary units, tier rate 150, client pays 900):
    writer   = 3 * 150            = 450
    assign   = 10
    submit   = 10 + 5 * (3 - 1)   = 20
    platform = 900 - 450 - 10 - 20 = 420
"""

from src.fm_common.enums import WorkType
from src.fm_common.errors import InvariantViolationError
from src.fm_common.money import non_negative
from src.fm_payout.domain.models import FeeSchedule, PayoutBreakdown, TierRates

_TECHNICAL_KEYWORDS = (
    "excel",
    "spss",
    "stata",
    "python",
    "data analysis",
    "data-analysis",
    "programming",
    "coding",
    "powerpoint",
    "presentation",
    "technical",
    "jasp",
    "jamovi",
    "web-development",
    "software",
    "system-design",
)

# Client minimum price per unit
_CLIENT_MIN_PER_PAGE = {WorkType.ORDINARY: 240, WorkType.TECHNICAL: 270}
_CLIENT_MIN_PER_SLIDE = 150


def classify_work_type(label: str | None) -> WorkType:
    """Map a free-text work type ("SPSS analysis", "Essay") onto the classifier."""
    if not label:
        return WorkType.ORDINARY
    text = label.lower()
    if text in (WorkType.TECHNICAL.value, WorkType.ORDINARY.value):
        return WorkType(text)
    # "r" is a technical tool too, but only as a standalone word
    if any(k in text for k in _TECHNICAL_KEYWORDS) or "r" in text.split():
        return WorkType.TECHNICAL
    return WorkType.ORDINARY


def submission_fee(units: int, fees: FeeSchedule) -> int:
    """base + per_unit * max(units - 1, 0); nothing to submit means no fee."""
    if units <= 0:
        return 0
    return fees.submit_base_fee + fees.submit_per_unit_fee * max(units - 1, 0)


def calculate(
    units: int,
    work_type: WorkType | str,
    tier_rates: TierRates,
    total_amount: int,
    fees: FeeSchedule,
) -> PayoutBreakdown:
    """Split total_amount between writer, manager and platform.

    The platform margin is the remainder. When the remainder would be
    negative it is clamped to zero and the gap is returned as
    pricing_shortfall; callers must surface it, never absorb it.
    """
    if units < 0:
        raise ValueError(f"units must be >= 0, got {units}")
    writer_amount = units * tier_rates.rate_for(work_type)
    assign_fee = fees.assign_fee
    submit_fee = submission_fee(units, fees)
    remainder = total_amount - writer_amount - assign_fee - submit_fee
    return PayoutBreakdown(
        writer_amount=writer_amount,
        manager_assign_fee=assign_fee,
        manager_submit_fee=submit_fee,
        platform_margin=non_negative(remainder),
        pricing_shortfall=non_negative(-remainder),
    )


def minimum_client_amount(
    pages: int, slides: int, problems: int, work_type: WorkType | str
) -> int:
    """Lowest total a client may be quoted. Problems are priced as technical pages."""
    per_page = _CLIENT_MIN_PER_PAGE[WorkType(work_type)]
    return (
        pages * per_page
        + slides * _CLIENT_MIN_PER_SLIDE
        + problems * _CLIENT_MIN_PER_PAGE[WorkType.TECHNICAL]
    )


def verify_conservation(breakdown: PayoutBreakdown, total_amount: int) -> None:
    """writer + manager + platform must equal what the client paid.

    A clamped breakdown over-allocates by exactly its shortfall; that case is
    flagged for review upstream and is checked against the shortfall here.
    """
    expected = total_amount + breakdown.pricing_shortfall
    if breakdown.total != expected:
        raise InvariantViolationError(
            f"distribution {breakdown.writer_amount} + {breakdown.manager_amount} + "
            f"{breakdown.platform_margin} = {breakdown.total} != {expected}"
        )
