"""Tests for the liquidation waterfall computation (pure, no DB)."""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from src.fx_common.errors import InvalidExitAmountError, NoInvestorsError, WaterfallInvariantError
from src.fx_common.enums import SecurityType
from src.fx_waterfall.domain.engine import (
    check_total_payout,
    compute_waterfall,
    conversion_value,
    principal_with_interest,
)
from src.fx_waterfall.domain.models import (
    CapTableSnapshot,
    ConvertibleSecurity,
    HoldingAggregate,
    LiquidationPayout,
    ShareClass,
)

AS_OF = date(2026, 1, 1)


def _common(class_id: str = "common") -> ShareClass:
    return ShareClass(id=class_id, company_id="co-1", name="Common", is_default=True)


def _preferred(
    class_id: str,
    rank: int | None,
    price: str = "1.00",
    participating: bool = False,
    cap: str | None = None,
    multiple: str = "1",
) -> ShareClass:
    return ShareClass(
        id=class_id,
        company_id="co-1",
        name=f"Series {class_id}",
        seniority_rank=rank,
        original_issue_price_in_dollars=Decimal(price),
        liquidation_preference_multiple=Decimal(multiple),
        preferred=True,
        participating=participating,
        participation_cap_multiple=Decimal(cap) if cap is not None else None,
    )


def _holding(investor: str, class_id: str, shares: int) -> HoldingAggregate:
    return HoldingAggregate(company_investor_id=investor, share_class_id=class_id, total_shares=shares)


def _convertible(
    principal: int = 100_000,
    implied: str = "1000",
    rate: str | None = None,
    maturity: date | None = None,
    cap: int | None = None,
    discount: str | None = None,
) -> ConvertibleSecurity:
    return ConvertibleSecurity(
        id="safe-1",
        company_investor_id="inv-safe",
        principal_value_in_cents=principal,
        issued_at=datetime(2025, 1, 1, tzinfo=timezone.utc),
        implied_shares=Decimal(implied),
        interest_rate_percent=Decimal(rate) if rate is not None else None,
        maturity_date=maturity,
        valuation_cap_cents=cap,
        discount_rate_percent=Decimal(discount) if discount is not None else None,
    )


def _by_investor(payouts: list[LiquidationPayout]) -> dict[str, LiquidationPayout]:
    return {p.company_investor_id: p for p in payouts}


class TestEquityWaterfall:
    def test_common_split_pro_rata(self) -> None:
        snapshot = CapTableSnapshot(
            share_classes=[_common()],
            holdings=[_holding("inv-1", "common", 100), _holding("inv-2", "common", 100)],
        )

        payouts = _by_investor(compute_waterfall("co-1", 1_000_000, snapshot, AS_OF))

        assert payouts["inv-1"].payout_amount_cents == 500_000
        assert payouts["inv-2"].payout_amount_cents == 500_000
        assert payouts["inv-1"].common_proceeds_amount == Decimal("500000.00")
        assert payouts["inv-1"].security_type == SecurityType.EQUITY.value
        assert payouts["inv-1"].number_of_shares == 100

    def test_three_equal_holders_split_odd_exit_exactly(self) -> None:
        snapshot = CapTableSnapshot(
            share_classes=[_common()],
            holdings=[_holding(f"inv-{i}", "common", 1) for i in range(3)],
        )

        payouts = compute_waterfall("co-1", 200, snapshot, AS_OF)

        assert [p.payout_amount_cents for p in payouts] == [67, 67, 66]
        assert sum(p.payout_amount_cents for p in payouts) == 200

    def test_uneven_holders_sum_to_exit(self) -> None:
        for exit_amount in (1, 2, 100, 101, 12_345, 999_999):
            snapshot = CapTableSnapshot(
                share_classes=[_common()],
                holdings=[
                    _holding("inv-1", "common", 1),
                    _holding("inv-2", "common", 3),
                    _holding("inv-3", "common", 7),
                ],
            )

            payouts = compute_waterfall("co-1", exit_amount, snapshot, AS_OF)

            assert sum(p.payout_amount_cents for p in payouts) == exit_amount

    def test_senior_preference_paid_first(self) -> None:
        # A: 100 shares x $1.00 -> 10_000 cents preference. B is non-preferred, no price.
        snapshot = CapTableSnapshot(
            share_classes=[
                _preferred("A", rank=1),
                ShareClass(id="B", company_id="co-1", name="Series B", seniority_rank=2),
            ],
            holdings=[_holding("inv-a", "A", 100), _holding("inv-b", "B", 100)],
        )

        payouts = _by_investor(compute_waterfall("co-1", 15_000, snapshot, AS_OF))

        assert payouts["inv-a"].payout_amount_cents == 10_000
        assert payouts["inv-a"].liquidation_preference_amount == Decimal("10000.00")
        assert payouts["inv-b"].payout_amount_cents == 5_000
        assert payouts["inv-b"].common_proceeds_amount == Decimal("5000.00")

    def test_unranked_classes_paid_last(self) -> None:
        snapshot = CapTableSnapshot(
            share_classes=[_preferred("A", rank=None), _preferred("B", rank=5)],
            holdings=[_holding("inv-a", "A", 100), _holding("inv-b", "B", 100)],
        )

        payouts = _by_investor(compute_waterfall("co-1", 15_000, snapshot, AS_OF))

        assert payouts["inv-b"].payout_amount_cents == 10_000
        assert payouts["inv-a"].payout_amount_cents == 5_000

    def test_rank_ties_broken_by_class_id(self) -> None:
        snapshot = CapTableSnapshot(
            share_classes=[_preferred("Z", rank=1), _preferred("M", rank=1)],
            holdings=[_holding("inv-z", "Z", 100), _holding("inv-m", "M", 100)],
        )

        payouts = _by_investor(compute_waterfall("co-1", 12_000, snapshot, AS_OF))

        assert payouts["inv-m"].payout_amount_cents == 10_000
        assert payouts["inv-z"].payout_amount_cents == 2_000

    def test_partial_preference_shared_pro_rata_then_stops(self) -> None:
        snapshot = CapTableSnapshot(
            share_classes=[_preferred("A", rank=1), _common()],
            holdings=[
                _holding("inv-1", "A", 60),
                _holding("inv-2", "A", 40),
                _holding("inv-3", "common", 500),
            ],
        )

        payouts = _by_investor(compute_waterfall("co-1", 8_000, snapshot, AS_OF))

        assert payouts["inv-1"].payout_amount_cents == 4_800
        assert payouts["inv-2"].payout_amount_cents == 3_200
        # Zero-value rows are still emitted
        assert payouts["inv-3"].payout_amount_cents == 0
        assert payouts["inv-3"].number_of_shares == 500

    def test_preference_multiple(self) -> None:
        snapshot = CapTableSnapshot(
            share_classes=[_preferred("A", rank=1, multiple="2"), _common()],
            holdings=[_holding("inv-a", "A", 100), _holding("inv-c", "common", 100)],
        )

        payouts = _by_investor(compute_waterfall("co-1", 50_000, snapshot, AS_OF))

        assert payouts["inv-a"].payout_amount_cents == 20_000
        assert payouts["inv-c"].payout_amount_cents == 30_000

    def test_participating_preferred_shares_residual(self) -> None:
        snapshot = CapTableSnapshot(
            share_classes=[_preferred("P", rank=1, participating=True), _common()],
            holdings=[_holding("inv-p", "P", 100), _holding("inv-c", "common", 100)],
        )

        payouts = _by_investor(compute_waterfall("co-1", 100_000, snapshot, AS_OF))

        # 10_000 preference, then 90_000 split per share
        assert payouts["inv-p"].liquidation_preference_amount == Decimal("10000.00")
        assert payouts["inv-p"].participation_amount == Decimal("45000.00")
        assert payouts["inv-p"].payout_amount_cents == 55_000
        assert payouts["inv-c"].payout_amount_cents == 45_000

    def test_participation_cap(self) -> None:
        # Cap 2x: 100 shares x 100 cents x 2 - 10_000 preference = 10_000 participation max
        snapshot = CapTableSnapshot(
            share_classes=[_preferred("P", rank=1, participating=True, cap="2"), _common()],
            holdings=[_holding("inv-p", "P", 100), _holding("inv-c", "common", 100)],
        )

        payouts = _by_investor(compute_waterfall("co-1", 100_000, snapshot, AS_OF))

        assert payouts["inv-p"].participation_amount == Decimal("10000.00")
        assert payouts["inv-p"].payout_amount_cents == 20_000
        assert payouts["inv-c"].payout_amount_cents == 45_000

    def test_non_positive_cap_is_ignored(self) -> None:
        # Cap 1x equals the preference paid, so the cap is 0 and not applied
        snapshot = CapTableSnapshot(
            share_classes=[_preferred("P", rank=1, participating=True, cap="1"), _common()],
            holdings=[_holding("inv-p", "P", 100), _holding("inv-c", "common", 100)],
        )

        payouts = _by_investor(compute_waterfall("co-1", 100_000, snapshot, AS_OF))

        assert payouts["inv-p"].participation_amount == Decimal("45000.00")

    def test_conservation_with_single_holder_per_class(self) -> None:
        for exit_amount in (1, 999, 10_000, 25_001, 1_234_567):
            snapshot = CapTableSnapshot(
                share_classes=[
                    _preferred("A", rank=1, price="1.50"),
                    _preferred("B", rank=2, price="0.75", multiple="1.5"),
                    _common(),
                ],
                holdings=[
                    _holding("inv-a", "A", 70),
                    _holding("inv-b", "B", 130),
                    _holding("inv-c", "common", 1_000),
                ],
            )
            payouts = compute_waterfall("co-1", exit_amount, snapshot, AS_OF)
            assert sum(p.payout_amount_cents for p in payouts) == exit_amount


class TestConvertibles:
    def test_exact_tie_keeps_principal(self) -> None:
        # Price at exit = 1_000_000 / (9_000 + 1_000) = 100 cents -> 100_000 == principal
        snapshot = CapTableSnapshot(
            share_classes=[_preferred("X", rank=1, price="0")],
            holdings=[_holding("inv-x", "X", 9_000)],
            convertibles=[_convertible()],
        )

        payouts = _by_investor(compute_waterfall("co-1", 1_000_000, snapshot, AS_OF))

        safe = payouts["inv-safe"]
        assert safe.security_type == SecurityType.CONVERTIBLE.value
        assert safe.convertible_security_id == "safe-1"
        assert safe.payout_amount_cents == 100_000
        assert safe.liquidation_preference_amount == Decimal("100000.00")
        assert safe.common_proceeds_amount == 0
        assert payouts["inv-x"].payout_amount_cents == 0

    def test_converts_when_conversion_exceeds_principal(self) -> None:
        snapshot = CapTableSnapshot(
            share_classes=[_preferred("X", rank=1, price="0")],
            holdings=[_holding("inv-x", "X", 9_000)],
            convertibles=[_convertible()],
        )

        safe = _by_investor(compute_waterfall("co-1", 2_000_000, snapshot, AS_OF))["inv-safe"]

        assert safe.payout_amount_cents == 200_000
        assert safe.common_proceeds_amount == Decimal("200000.00")
        assert safe.liquidation_preference_amount == 0

    def test_no_equity_shares_means_no_conversion_value(self) -> None:
        snapshot = CapTableSnapshot(convertibles=[_convertible(principal=50_000)])

        safe = _by_investor(compute_waterfall("co-1", 1_000_000, snapshot, AS_OF))["inv-safe"]

        assert safe.payout_amount_cents == 50_000
        assert safe.liquidation_preference_amount == Decimal("50000.00")

    def test_mixed_common_and_convertible_can_exceed_exit(self) -> None:
        # Common absorbs the full exit and the note converts against it too
        snapshot = CapTableSnapshot(
            share_classes=[_common()],
            holdings=[_holding("inv-c", "common", 100)],
            convertibles=[_convertible(principal=1, implied="100")],
        )

        with pytest.raises(WaterfallInvariantError):
            compute_waterfall("co-1", 10_000, snapshot, AS_OF)


class TestPrincipalWithInterest:
    def test_simple_interest_over_one_year(self) -> None:
        security = _convertible(rate="10", maturity=date(2027, 1, 1))
        # 100_000 + 100_000 x 10% x 365 / 365.25
        amount = principal_with_interest(security, AS_OF)
        assert int(amount) == 109_993

    def test_no_interest_without_maturity_date(self) -> None:
        assert principal_with_interest(_convertible(rate="10"), AS_OF) == Decimal(100_000)

    def test_no_interest_before_issue(self) -> None:
        security = _convertible(rate="10", maturity=date(2027, 1, 1))
        assert principal_with_interest(security, date(2024, 6, 1)) == Decimal(100_000)


class TestConversionValue:
    def test_valuation_cap_and_discount(self) -> None:
        # Exit price 100; cap price 450_000 / 9_000 = 50; 20% discount -> 40 x 1_000
        security = _convertible(cap=450_000, discount="20")
        value = conversion_value(security, 1_000_000, 9_000, Decimal(1_000))
        assert value == Decimal(40_000)

    def test_cap_above_exit_price_ignored(self) -> None:
        security = _convertible(cap=10_000_000)
        assert conversion_value(security, 1_000_000, 9_000, Decimal(1_000)) == Decimal(100_000)


class TestPreconditions:
    def test_zero_exit_raises(self) -> None:
        snapshot = CapTableSnapshot(share_classes=[_common()], holdings=[_holding("i", "common", 1)])
        with pytest.raises(InvalidExitAmountError):
            compute_waterfall("co-1", 0, snapshot, AS_OF)

    def test_negative_exit_raises(self) -> None:
        snapshot = CapTableSnapshot(share_classes=[_common()], holdings=[_holding("i", "common", 1)])
        with pytest.raises(InvalidExitAmountError):
            compute_waterfall("co-1", -5, snapshot, AS_OF)

    def test_empty_cap_table_raises(self) -> None:
        with pytest.raises(NoInvestorsError):
            compute_waterfall("co-1", 1_000, CapTableSnapshot(), AS_OF)

    def test_total_check(self) -> None:
        payout = LiquidationPayout(
            company_investor_id="i",
            security_type="equity",
            payout_amount_cents=1_001,
            liquidation_preference_amount=Decimal(0),
            participation_amount=Decimal(0),
            common_proceeds_amount=Decimal(1_001),
        )
        check_total_payout([payout], 1_001)
        with pytest.raises(WaterfallInvariantError):
            check_total_payout([payout], 1_000)
