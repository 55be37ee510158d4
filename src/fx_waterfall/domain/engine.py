"""Liquidation waterfall: pure computation over a cap-table snapshot.

Equity portion:
  1. Classes ordered by seniority rank ascending, unranked last, ties by id.
  2. Each class in turn is paid its preference (issue price x multiple x shares)
     pro-rata across its holders, until nothing remains.
  3. What remains is split per share across common and participating-preferred
     holdings; participation is capped at cap_multiple x issue price x shares
     minus the preference already paid, when that cap is positive.

Convertible portion is valued against the full exit amount, independent of the
equity remainder: max(principal with interest, as-converted value). An exact
tie keeps the principal leg.

Equity legs are rounded to whole cents by largest remainder, so their sum is the
exact equity total rounded once.

Post-condition: sum of payout cents <= exit amount, else WaterfallInvariantError.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from src.fx_common.cents import allocate_cents, quantize_cents, round_cents, to_decimal
from src.fx_common.enums import SecurityType
from src.fx_common.errors import (
    InvalidExitAmountError,
    NoInvestorsError,
    WaterfallInvariantError,
)
from src.fx_waterfall.domain.models import (
    CapTableSnapshot,
    ConvertibleSecurity,
    HoldingAggregate,
    LiquidationPayout,
    ShareClass,
)

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = Decimal("365.25")

_ZERO = Decimal(0)


@dataclass
class _EquityLeg:
    shares: int = 0
    preference: Decimal = _ZERO
    participation: Decimal = _ZERO
    common: Decimal = _ZERO

    @property
    def total(self) -> Decimal:
        return self.preference + self.participation + self.common


def validate_inputs(company_id: str, exit_amount_cents: int, snapshot: CapTableSnapshot) -> None:
    if exit_amount_cents <= 0:
        raise InvalidExitAmountError(exit_amount_cents)
    if snapshot.is_empty:
        raise NoInvestorsError(company_id)


def compute_waterfall(
    company_id: str,
    exit_amount_cents: int,
    snapshot: CapTableSnapshot,
    as_of: date,
) -> list[LiquidationPayout]:
    """Return one payout per (investor, class) and one per convertible."""
    validate_inputs(company_id, exit_amount_cents, snapshot)

    payouts = _equity_payouts(exit_amount_cents, snapshot)
    payouts.extend(_convertible_payouts(exit_amount_cents, snapshot, as_of))

    check_total_payout(payouts, exit_amount_cents)
    return payouts


def check_total_payout(payouts: list[LiquidationPayout], exit_amount_cents: int) -> None:
    total = sum(p.payout_amount_cents for p in payouts)
    if total > exit_amount_cents:
        logger.error(
            "Waterfall invariant violated: payouts %d > exit %d", total, exit_amount_cents
        )
        raise WaterfallInvariantError(total, exit_amount_cents)
    logger.debug("Waterfall total %d <= exit %d", total, exit_amount_cents)


# ---------------------------------------------------------------------------
# Equity
# ---------------------------------------------------------------------------

def _equity_payouts(exit_amount_cents: int, snapshot: CapTableSnapshot) -> list[LiquidationPayout]:
    class_map = {sc.id: sc for sc in snapshot.share_classes}
    legs: dict[tuple[str, str], _EquityLeg] = {}
    by_class: dict[str, list[HoldingAggregate]] = defaultdict(list)
    for h in snapshot.holdings:
        legs[(h.company_investor_id, h.share_class_id)] = _EquityLeg(shares=h.total_shares)
        by_class[h.share_class_id].append(h)

    remaining = Decimal(exit_amount_cents)
    for share_class in sorted(snapshot.share_classes, key=lambda sc: sc.sort_key):
        holdings = by_class.get(share_class.id)
        if not holdings:
            continue
        remaining -= _pay_preference(share_class, holdings, remaining, legs)
        if remaining == 0:
            break

    _distribute_residual(remaining, snapshot.holdings, class_map, legs)

    amounts = allocate_cents([leg.total for leg in legs.values()])
    return [
        LiquidationPayout(
            company_investor_id=investor_id,
            share_class_name=class_map[class_id].name,
            security_type=SecurityType.EQUITY.value,
            number_of_shares=leg.shares,
            payout_amount_cents=amount,
            liquidation_preference_amount=quantize_cents(leg.preference),
            participation_amount=quantize_cents(leg.participation),
            common_proceeds_amount=quantize_cents(leg.common),
        )
        for ((investor_id, class_id), leg), amount in zip(legs.items(), amounts)
    ]


def _pay_preference(
    share_class: ShareClass,
    holdings: list[HoldingAggregate],
    remaining: Decimal,
    legs: dict[tuple[str, str], _EquityLeg],
) -> Decimal:
    """Pay one class's preference pro-rata; return the amount paid."""
    pref_per_share = share_class.issue_price_cents * to_decimal(
        share_class.liquidation_preference_multiple
    )
    total_pref = pref_per_share * sum(h.total_shares for h in holdings)
    amount_to_pay = min(total_pref, remaining)
    ratio = _ZERO if total_pref == 0 else amount_to_pay / total_pref
    for h in holdings:
        legs[(h.company_investor_id, h.share_class_id)].preference += (
            pref_per_share * h.total_shares * ratio
        )
    return amount_to_pay


def _distribute_residual(
    remaining: Decimal,
    holdings: list[HoldingAggregate],
    class_map: dict[str, ShareClass],
    legs: dict[tuple[str, str], _EquityLeg],
) -> None:
    eligible = [h for h in holdings if class_map[h.share_class_id].receives_residual]
    total_shares = sum(h.total_shares for h in eligible)
    per_share = _ZERO if total_shares == 0 else remaining / total_shares

    for h in eligible:
        share_class = class_map[h.share_class_id]
        leg = legs[(h.company_investor_id, h.share_class_id)]
        amount = per_share * h.total_shares
        if share_class.preferred and share_class.participating:
            cap = _participation_cap(share_class, h.total_shares, leg.preference)
            if cap is not None and cap > 0:
                amount = min(amount, cap)
            leg.participation += amount
        else:
            leg.common += amount


def _participation_cap(
    share_class: ShareClass, shares: int, preference_paid: Decimal
) -> Decimal | None:
    if share_class.participation_cap_multiple is None:
        return None
    return (
        share_class.issue_price_cents
        * to_decimal(share_class.participation_cap_multiple)
        * shares
        - preference_paid
    )


# ---------------------------------------------------------------------------
# Convertibles
# ---------------------------------------------------------------------------

def _convertible_payouts(
    exit_amount_cents: int, snapshot: CapTableSnapshot, as_of: date
) -> list[LiquidationPayout]:
    total_equity_shares = sum(h.total_shares for h in snapshot.holdings)
    total_implied_shares = sum(
        (to_decimal(c.implied_shares) for c in snapshot.convertibles), _ZERO
    )

    payouts = []
    for security in snapshot.convertibles:
        principal = principal_with_interest(security, as_of)
        conversion = conversion_value(
            security, exit_amount_cents, total_equity_shares, total_implied_shares
        )
        converted = conversion > principal
        payouts.append(
            LiquidationPayout(
                company_investor_id=security.company_investor_id,
                convertible_security_id=security.id,
                security_type=SecurityType.CONVERTIBLE.value,
                payout_amount_cents=round_cents(max(principal, conversion)),
                liquidation_preference_amount=_ZERO if converted else quantize_cents(principal),
                participation_amount=_ZERO,
                common_proceeds_amount=quantize_cents(conversion) if converted else _ZERO,
            )
        )
    return payouts


def principal_with_interest(security: ConvertibleSecurity, as_of: date) -> Decimal:
    """Simple interest accrues only when both a rate and a maturity date are set."""
    principal = Decimal(security.principal_value_in_cents)
    if security.interest_rate_percent is None or security.maturity_date is None:
        return principal
    days_outstanding = max((as_of - security.issued_at.date()).days, 0)
    years = Decimal(days_outstanding) / DAYS_PER_YEAR
    return principal + principal * (to_decimal(security.interest_rate_percent) / 100) * years


def conversion_value(
    security: ConvertibleSecurity,
    exit_amount_cents: int,
    total_equity_shares: int,
    total_implied_shares: Decimal,
) -> Decimal:
    if total_equity_shares == 0:
        return _ZERO

    share_price = Decimal(exit_amount_cents) / (total_equity_shares + total_implied_shares)
    if security.valuation_cap_cents is not None:
        share_price = min(share_price, Decimal(security.valuation_cap_cents) / total_equity_shares)
    if security.discount_rate_percent is not None:
        share_price *= 1 - to_decimal(security.discount_rate_percent) / 100
    return share_price * to_decimal(security.implied_shares)
