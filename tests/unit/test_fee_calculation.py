from decimal import Decimal

import pytest

from src.fx_fees.domain.fee import (
    DIVIDEND_FEE_SCHEDULE,
    INVOICE_FEE_SCHEDULE,
    FeeSchedule,
    calc_platform_fee,
    dividend_fee,
    invoice_fee,
)


class TestInvoiceFee:
    def test_zero_total_is_base_fee(self) -> None:
        assert invoice_fee(0) == 50

    def test_percentage_added_to_base(self) -> None:
        # 50 + 10000 * 1.5% = 200
        assert invoice_fee(10000) == 200

    def test_half_cent_rounds_up(self) -> None:
        # 50 + 100 * 1.5% = 51.5 -> 52
        assert invoice_fee(100) == 52

    def test_below_half_cent_rounds_down(self) -> None:
        # 50 + 33 * 1.5% = 50.495 -> 50
        assert invoice_fee(33) == 50

    def test_capped(self) -> None:
        # 50 + 100000 * 1.5% = 1550 -> 1500
        assert invoice_fee(100000) == 1500
        assert invoice_fee(10**12) == 1500

    def test_exactly_at_cap(self) -> None:
        # 50 + 96667 * 1.5% = 1500.005 -> 1500
        assert invoice_fee(96667) == 1500


class TestDividendFee:
    def test_zero_total_is_base_fee(self) -> None:
        assert dividend_fee(0) == 30

    def test_percentage_added_to_base(self) -> None:
        # 30 + 10000 * 2.9% = 320
        assert dividend_fee(10000) == 320

    def test_capped(self) -> None:
        assert dividend_fee(1_000_000) == 3000


class TestCalcPlatformFee:
    def test_never_exceeds_max(self) -> None:
        for schedule in (INVOICE_FEE_SCHEDULE, DIVIDEND_FEE_SCHEDULE):
            for total in (0, 1, 99, 12345, 999_999, 50_000_000):
                fee = calc_platform_fee(total, schedule)
                assert schedule.base_cents <= fee <= schedule.max_cents

    def test_monotonic_in_total(self) -> None:
        fees = [invoice_fee(total) for total in range(0, 200_000, 997)]
        assert fees == sorted(fees)

    def test_custom_schedule(self) -> None:
        schedule = FeeSchedule(base_cents=0, percent=Decimal("10"), max_cents=100)
        assert calc_platform_fee(5, schedule) == 1  # 0.5 -> 1
        assert calc_platform_fee(2000, schedule) == 100

    def test_negative_raises(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            invoice_fee(-1)

    def test_non_integer_raises(self) -> None:
        with pytest.raises(ValueError, match="integer"):
            invoice_fee(10.5)  # type: ignore[arg-type]

    def test_bool_rejected(self) -> None:
        with pytest.raises(ValueError):
            dividend_fee(True)  # type: ignore[arg-type]
