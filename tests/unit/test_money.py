"""Unit tests for integer money helpers."""

import pytest

from src.am_common.money import bps_to_rate, calculate_commission, cents_to_display


class TestCentsToDisplay:
    def test_formats_rupees_with_grouping(self) -> None:
        assert cents_to_display(550000) == "₹5,500.00"

    def test_pads_paise(self) -> None:
        assert cents_to_display(11005) == "₹110.05"

    def test_zero(self) -> None:
        assert cents_to_display(0) == "₹0.00"

    def test_negative(self) -> None:
        assert cents_to_display(-1200) == "-₹12.00"


class TestCalculateCommission:
    def test_default_rate_on_scenario_total(self) -> None:
        # 100 units × ₹55.00 = ₹5,500.00 → 2% = ₹110.00
        assert calculate_commission(550000, 200) == 11000

    def test_rounds_half_up(self) -> None:
        # 25 × 0.02 = 0.5 → 1
        assert calculate_commission(25, 200) == 1

    def test_rounds_down_below_half(self) -> None:
        # 24 × 0.02 = 0.48 → 0
        assert calculate_commission(24, 200) == 0

    def test_zero_rate(self) -> None:
        assert calculate_commission(999_999, 0) == 0

    def test_full_rate(self) -> None:
        assert calculate_commission(1234, 10000) == 1234

    @pytest.mark.parametrize("total", [1, 99, 12345, 550000, 987654321])
    def test_split_always_sums_to_total(self, total: int) -> None:
        commission = calculate_commission(total, 200)
        seller_net = total - commission
        assert commission + seller_net == total
        assert 0 <= commission <= total

    def test_negative_total_rejected(self) -> None:
        with pytest.raises(ValueError):
            calculate_commission(-1, 200)

    def test_rate_out_of_range_rejected(self) -> None:
        with pytest.raises(ValueError):
            calculate_commission(100, 10001)


def test_bps_to_rate() -> None:
    assert bps_to_rate(200) == 0.02
