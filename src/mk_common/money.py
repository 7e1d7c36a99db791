"""Fixed-point money utilities.

All prices, amounts and balances are Decimal with two fractional digits.
Never float: binary floating point drifts on repeated additions.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Decimal | int | str) -> Decimal:
    """Coerce to a Decimal quantised to cents (ROUND_HALF_UP).

    Floats are rejected outright; pass a string instead.
    """
    if isinstance(value, float):
        raise TypeError("Monetary values must not be floats")
    try:
        amount = Decimal(value)
    except InvalidOperation as exc:
        raise ValueError(f"Not a monetary value: {value!r}") from exc
    if not amount.is_finite():
        raise ValueError(f"Not a monetary value: {value!r}")
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount: Decimal, fraction: Decimal) -> Decimal:
    """Return amount * fraction rounded to cents, e.g. percent_of(20, 0.14) -> 2.80."""
    return to_money(amount * fraction)


def money_to_display(amount: Decimal) -> str:
    """Convert to display string: Decimal('6500') -> '$6,500.00', Decimal('-12') -> '-$12.00'."""
    amount = to_money(amount)
    if amount < 0:
        return f"-${-amount:,.2f}"
    return f"${amount:,.2f}"
