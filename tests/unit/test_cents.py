"""Tests for fx_common.cents: Decimal cent helpers."""

from decimal import Decimal

from src.fx_common.cents import (
    allocate_cents,
    cents_to_display,
    cents_to_usd,
    quantize_cents,
    round_cents,
    round_half_up,
    to_decimal,
)


class TestToDecimal:
    def test_none_is_zero(self) -> None:
        assert to_decimal(None) == Decimal(0)

    def test_float_keeps_printed_value(self) -> None:
        assert to_decimal(1.1) == Decimal("1.1")

    def test_passthrough(self) -> None:
        d = Decimal("3.14")
        assert to_decimal(d) is d

    def test_int_and_str(self) -> None:
        assert to_decimal(7) == Decimal(7)
        assert to_decimal("0.8543") == Decimal("0.8543")


class TestRounding:
    def test_half_rounds_up(self) -> None:
        assert round_half_up(Decimal("2.5")) == 3
        assert round_cents(Decimal("0.5")) == 1

    def test_below_half_rounds_down(self) -> None:
        assert round_cents(Decimal("2.4999")) == 2

    def test_negative_half_away_from_zero(self) -> None:
        assert round_half_up(Decimal("-2.5")) == -3

    def test_quantize_two_places(self) -> None:
        assert quantize_cents(Decimal("333333.333333")) == Decimal("333333.33")
        assert quantize_cents(Decimal("0.005")) == Decimal("0.01")


class TestAllocateCents:
    def test_thirds(self) -> None:
        third = Decimal(200) / 3
        assert allocate_cents([third, third, third]) == [67, 67, 66]

    def test_largest_fraction_gets_the_cent(self) -> None:
        assert allocate_cents([Decimal("10.2"), Decimal("10.7"), Decimal("10.1")]) == [10, 11, 10]

    def test_whole_amounts_unchanged(self) -> None:
        assert allocate_cents([Decimal(5), Decimal(0), Decimal(12)]) == [5, 0, 12]

    def test_empty(self) -> None:
        assert allocate_cents([]) == []


class TestCentsToUsd:
    def test_basic(self) -> None:
        assert cents_to_usd(6500) == Decimal("65.00")

    def test_odd_cents(self) -> None:
        assert cents_to_usd(1) == Decimal("0.01")


class TestCentsToDisplay:
    def test_basic(self) -> None:
        assert cents_to_display(6500) == "$65.00"

    def test_zero(self) -> None:
        assert cents_to_display(0) == "$0.00"

    def test_large(self) -> None:
        assert cents_to_display(150000) == "$1,500.00"

    def test_negative(self) -> None:
        assert cents_to_display(-1200) == "-$12.00"
