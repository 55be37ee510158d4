"""Money helpers for the financial core.

Persisted amounts are int cents. Intermediate math (fees, waterfall pro-rating,
FX conversion) uses Decimal and is rounded half-up to a whole cent at the end.
Never float.
"""

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal

ONE_CENT = Decimal("0.01")


def to_decimal(value: int | float | str | Decimal | None) -> Decimal:
    """Coerce a DB/JSON numeric to Decimal. None → 0."""
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # JSON numbers from the processor arrive as float; go through str to keep the printed value
        return Decimal(str(value))
    return Decimal(value)


def round_half_up(value: Decimal) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def round_cents(amount: Decimal) -> int:
    """Round a Decimal cent amount to the nearest whole cent (half-up)."""
    return round_half_up(amount)


def quantize_cents(amount: Decimal) -> Decimal:
    """Keep two decimal places of a cent amount for NUMERIC(20, 2) columns."""
    return amount.quantize(ONE_CENT, rounding=ROUND_HALF_UP)


def allocate_cents(amounts: list[Decimal]) -> list[int]:
    """Round non-negative cent amounts so they sum to round_cents(sum(amounts)).

    Largest remainder: every amount is floored, then the leftover cents go one
    each to the largest fractional parts, earlier positions first on ties.
    """
    floors = [int(a.to_integral_value(rounding=ROUND_FLOOR)) for a in amounts]
    leftover = round_cents(sum(amounts, Decimal(0))) - sum(floors)
    by_fraction = sorted(range(len(amounts)), key=lambda i: -(amounts[i] - floors[i]))
    for i in by_fraction[:leftover]:
        floors[i] += 1
    return floors


def cents_to_usd(cents: int) -> Decimal:
    """6500 -> Decimal('65.00')."""
    return (Decimal(cents) / 100).quantize(ONE_CENT)


def cents_to_display(cents: int) -> str:
    """Convert cents to display string: 6500 -> '$65.00', -1200 -> '-$12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-${abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"${cents // 100:,}.{cents % 100:02d}"
