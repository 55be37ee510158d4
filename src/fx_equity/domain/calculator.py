"""Cash/equity split of a contractor's service payment.

equity_cents = round(service_amount_cents * equity_percentage / 100)
equity_option_shares = round(equity_cents / (share_price_usd * 100))

A split that rounds to zero option shares is treated as no equity at all:
equity_cents and the effective percentage are forced to 0 so that cash is
never withheld for shares that are not issued.
"""

from dataclasses import dataclass
from decimal import Decimal

from src.fx_common.cents import round_cents, round_half_up, to_decimal
from src.fx_equity.domain.models import EquityGrant


@dataclass(frozen=True)
class EquitySplit:
    equity_cents: int
    equity_option_shares: int | None
    effective_equity_percentage: Decimal

    def cash_cents(self, service_amount_cents: int) -> int:
        return service_amount_cents - self.equity_cents


def calculate_equity_split(
    service_amount_cents: int,
    equity_percentage: Decimal | int,
    share_price_usd: Decimal | None,
    equity_enabled: bool,
) -> EquitySplit:
    if service_amount_cents < 0:
        raise ValueError(f"service_amount_cents must be non-negative, got {service_amount_cents}")
    percentage = to_decimal(equity_percentage)
    if not Decimal(0) <= percentage <= Decimal(100):
        raise ValueError(f"equity_percentage must be within 0..100, got {percentage}")

    if not equity_enabled:
        return EquitySplit(
            equity_cents=0, equity_option_shares=None, effective_equity_percentage=Decimal(0)
        )

    equity_cents = round_cents(Decimal(service_amount_cents) * percentage / 100)

    # Unknown price: no option count, no zeroing
    if share_price_usd is None or to_decimal(share_price_usd) == 0:
        return EquitySplit(
            equity_cents=equity_cents,
            equity_option_shares=None,
            effective_equity_percentage=percentage,
        )

    option_shares = round_half_up(Decimal(equity_cents) / (to_decimal(share_price_usd) * 100))
    if option_shares <= 0:
        return EquitySplit(
            equity_cents=0, equity_option_shares=0, effective_equity_percentage=Decimal(0)
        )
    return EquitySplit(
        equity_cents=equity_cents,
        equity_option_shares=option_shares,
        effective_equity_percentage=percentage,
    )


def grant_shortfall(
    split: EquitySplit, grant: EquityGrant | None, year: int
) -> str | None:
    """Reason the split cannot be issued from `grant`, or None when it can.

    A split with no effective equity needs no grant.
    """
    if split.effective_equity_percentage == 0:
        return None
    if grant is None:
        return f"Admin must create an equity grant for {year} before this invoice can be approved"
    options = split.equity_option_shares or 0
    if grant.unvested_shares < options:
        return (
            f"Admin must create an equity grant with enough unvested shares "
            f"({grant.unvested_shares} < {options})"
        )
    return None
