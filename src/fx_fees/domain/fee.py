"""Platform fee calculation.

fee = min(round(base + total * percent / 100), max), rounded half-up to a cent.
"""

from dataclasses import dataclass
from decimal import Decimal

from src.fx_common.cents import round_cents


@dataclass(frozen=True)
class FeeSchedule:
    base_cents: int
    percent: Decimal
    max_cents: int


INVOICE_FEE_SCHEDULE = FeeSchedule(base_cents=50, percent=Decimal("1.5"), max_cents=1500)
DIVIDEND_FEE_SCHEDULE = FeeSchedule(base_cents=30, percent=Decimal("2.9"), max_cents=3000)

FEE_SCHEDULES: dict[str, FeeSchedule] = {
    "invoice": INVOICE_FEE_SCHEDULE,
    "dividend": DIVIDEND_FEE_SCHEDULE,
}


def calc_platform_fee(total_cents: int, schedule: FeeSchedule) -> int:
    """Return the capped platform fee in cents for `total_cents`.

    Negative or non-integer amounts raise ValueError.
    """
    if isinstance(total_cents, bool) or not isinstance(total_cents, int):
        raise ValueError(f"total_cents must be an integer, got {total_cents!r}")
    if total_cents < 0:
        raise ValueError(f"total_cents must be non-negative, got {total_cents}")
    fee = round_cents(schedule.base_cents + Decimal(total_cents) * schedule.percent / 100)
    return min(fee, schedule.max_cents)


def invoice_fee(total_cents: int) -> int:
    return calc_platform_fee(total_cents, INVOICE_FEE_SCHEDULE)


def dividend_fee(total_cents: int) -> int:
    return calc_platform_fee(total_cents, DIVIDEND_FEE_SCHEDULE)
