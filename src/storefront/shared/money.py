"""Fixed-point money helpers.

Amounts are persisted as integer minor units (hundredths of the currency
unit) and exchanged with the outside world as ``Decimal``. Percentages use
the same scale: 12.5% is stored as 1250.
"""

from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal("0.01")
MINOR_PER_UNIT = 100


def to_minor(amount) -> int:
    """Convert a currency amount into integer minor units, rounding half-up."""
    if amount is None:
        raise ValueError("amount is required")
    value = Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP)
    return int(value * MINOR_PER_UNIT)


def to_minor_or_none(amount) -> int | None:
    return None if amount is None else to_minor(amount)


def to_amount(minor: int | None) -> Decimal | None:
    """Convert integer minor units back into a two-place ``Decimal``."""
    if minor is None:
        return None
    return (Decimal(minor) / MINOR_PER_UNIT).quantize(CENTS)


def percentage_of(minor_amount: int, rate: int) -> int:
    """Return ``rate`` percent of ``minor_amount``, both on the hundredths scale.

    >>> percentage_of(123456, 1000)  # 10% of 1234.56
    12346
    """
    raw = Decimal(minor_amount) * Decimal(rate) / Decimal(MINOR_PER_UNIT * MINOR_PER_UNIT)
    return int(raw.quantize(Decimal(1), rounding=ROUND_HALF_UP))
