"""Tests for checkout price calculation."""

from decimal import Decimal

import pytest

from storefront.models import DELIVERY, PICKUP, OrderItem
from storefront.pricing import calculate_totals, redemption_discount, subtotal_of

from .conftest import make_config

D = Decimal


def assert_total_invariant(quote):
    assert quote.total == quote.subtotal - quote.discount_amount + quote.shipping_fee + quote.tax_amount
    assert quote.total == quote.subtotal_after_discount + quote.shipping_fee + quote.tax_amount


class TestSubtotal:
    def test_sums_price_times_quantity(self):
        items = [
            OrderItem(product_id="a", name="A", price=D("3.33"), quantity=3),
            OrderItem(product_id="b", name="B", price=D("10.00"), quantity=2),
        ]
        assert subtotal_of(items) == D("29.99")

    def test_empty(self):
        assert subtotal_of([]) == D("0.00")


class TestCalculateTotals:
    def test_guest_delivery_below_threshold(self):
        quote = calculate_totals(D("100.00"), DELIVERY, make_config())

        assert quote.shipping_fee == D("17.99")
        assert quote.tax_amount == D("13.00")
        assert quote.total == D("130.99")
        assert quote.points_earned == 0
        assert_total_invariant(quote)

    def test_customer_earns_points(self):
        quote = calculate_totals(D("100.00"), DELIVERY, make_config(), available_points=0)

        assert quote.total == D("130.99")
        assert quote.points_earned == 1000

    def test_free_shipping_at_threshold(self):
        quote = calculate_totals(D("150.00"), DELIVERY, make_config())
        assert quote.shipping_fee == D("0.00")

    def test_flat_rate_one_cent_below_threshold(self):
        quote = calculate_totals(D("149.99"), DELIVERY, make_config())
        assert quote.shipping_fee == D("17.99")

    def test_threshold_applies_after_discount(self):
        # 120 points at 120/$ = $1.00 off, pushing 150.50 under the threshold
        quote = calculate_totals(
            D("150.50"), DELIVERY, make_config(), points_to_redeem=120, available_points=500
        )
        assert quote.subtotal_after_discount == D("149.50")
        assert quote.shipping_fee == D("17.99")

    @pytest.mark.parametrize("subtotal", ["0.01", "10.00", "149.99", "500.00"])
    def test_pickup_never_charges_shipping(self, subtotal):
        quote = calculate_totals(D(subtotal), PICKUP, make_config())
        assert quote.shipping_fee == D("0.00")
        assert_total_invariant(quote)

    def test_redemption_discount_is_pre_tax(self):
        quote = calculate_totals(
            D("50.00"), PICKUP, make_config(), points_to_redeem=120, available_points=500
        )

        assert quote.discount_amount == D("1.00")
        assert quote.subtotal_after_discount == D("49.00")
        assert quote.tax_amount == D("6.37")
        assert quote.points_used == 120
        assert quote.points_earned == 490
        assert quote.redemption_skipped is False
        assert_total_invariant(quote)

    def test_insufficient_balance_skips_redemption(self):
        quote = calculate_totals(
            D("50.00"), PICKUP, make_config(), points_to_redeem=10000, available_points=50
        )

        assert quote.discount_amount == D("0.00")
        assert quote.points_used == 0
        assert quote.redemption_skipped is True
        assert quote.points_earned == 500

    def test_exact_balance_can_be_redeemed(self):
        quote = calculate_totals(
            D("50.00"), PICKUP, make_config(), points_to_redeem=240, available_points=240
        )
        assert quote.points_used == 240
        assert quote.discount_amount == D("2.00")

    def test_guest_cannot_redeem(self):
        quote = calculate_totals(D("50.00"), PICKUP, make_config(), points_to_redeem=120)

        assert quote.discount_amount == D("0.00")
        assert quote.redemption_skipped is True
        assert quote.points_earned == 0

    def test_loyalty_disabled_neither_redeems_nor_earns(self):
        config = make_config(loyalty_enabled=False)
        quote = calculate_totals(
            D("50.00"), PICKUP, config, points_to_redeem=120, available_points=500
        )

        assert quote.discount_amount == D("0.00")
        assert quote.points_used == 0
        assert quote.points_earned == 0
        assert quote.redemption_skipped is True

    def test_discount_larger_than_cart_is_capped(self):
        # 1200 points = $10.00 against a $3.33 cart
        quote = calculate_totals(
            D("3.33"), PICKUP, make_config(), points_to_redeem=1200, available_points=5000
        )

        assert quote.points_used == 1200
        assert quote.discount_amount == D("3.33")
        assert quote.subtotal_after_discount == D("0.00")
        assert quote.tax_amount == D("0.00")
        assert quote.total == D("0.00")
        assert quote.points_earned == 0
        assert_total_invariant(quote)

    def test_points_earned_rounds_down(self):
        quote = calculate_totals(D("3.33"), PICKUP, make_config(), available_points=0)
        # 3.33 * 10 = 33.3
        assert quote.points_earned == 33

    def test_fractional_redemption_value_rounds_to_cents(self):
        # 100 / 120 = 0.8333...
        quote = calculate_totals(
            D("10.00"), PICKUP, make_config(), points_to_redeem=100, available_points=100
        )
        assert quote.discount_amount == D("0.83")
        assert_total_invariant(quote)

    def test_tax_rounds_half_up(self):
        config = make_config(tax_rate="5")
        # 0.05 * 10.10 = 0.505
        quote = calculate_totals(D("10.10"), PICKUP, config)
        assert quote.tax_amount == D("0.51")

    def test_zero_tax(self):
        quote = calculate_totals(D("42.00"), PICKUP, make_config(tax_rate="0"))
        assert quote.tax_amount == D("0.00")
        assert quote.total == D("42.00")


class TestRedemptionDiscount:
    def test_converts_points_to_dollars(self):
        assert redemption_discount(240, make_config()) == D("2.00")

    def test_zero_rate_does_not_divide(self):
        config = make_config(points_to_dollar_rate="0")
        assert redemption_discount(100, config) is None
