"""Integer money helpers.

All amounts, fees and balances are int whole shillings (the smallest unit
the marketplace charges in). No float, no Decimal, so "within one currency
unit" is plain equality.
"""


def amount_to_display(amount: int, currency: str = "KSh") -> str:
    """Format whole units for display: 900 -> 'KSh 900', -4500 -> '-KSh 4,500'."""
    sign = "-" if amount < 0 else ""
    abs_amount = -amount if amount < 0 else amount
    return f"{sign}{currency} {abs_amount:,}"


def non_negative(value: int) -> int:
    """Clamp to zero from below."""
    return value if value > 0 else 0
