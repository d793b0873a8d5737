"""Tests for data models."""

from decimal import Decimal

import pytest

from storefront.errors import ValidationError
from storefront.models import ADMIN, CUSTOMER, CartLine, Order, Product, User
from storefront.seed import default_orders


class TestProduct:
    def test_create_quantizes_price(self):
        product = Product.create(name="Mug", price=12.5, stock=3, id="m1")

        assert product.price == Decimal("12.50")
        assert product.to_dict()["price"] == 12.5

    def test_create_generates_id(self):
        assert Product.create(name="Mug", price="1.00").id

    @pytest.mark.parametrize("price", ["-0.01", None, "free", True, 1e300])
    def test_bad_price(self, price):
        with pytest.raises(ValidationError):
            Product.create(name="Mug", price=price)

    @pytest.mark.parametrize("stock", [-1, 1.5, "3"])
    def test_bad_stock(self, stock):
        with pytest.raises(ValidationError):
            Product.create(name="Mug", price="1.00", stock=stock)


class TestUser:
    def test_create_customer(self):
        user = User.create(email="  ada@example.com ", name="Ada")

        assert user.email == "ada@example.com"
        assert user.role == CUSTOMER
        assert user.is_customer
        assert user.loyalty_points == 0

    def test_admin_is_not_customer(self):
        assert not User.create(email="ops@example.com", role=ADMIN).is_customer

    def test_invalid_email(self):
        with pytest.raises(ValidationError):
            User.create(email="not-an-email")

    def test_unknown_role(self):
        with pytest.raises(ValidationError):
            User.create(email="ada@example.com", role="owner")

    def test_to_dict_is_camel_case(self):
        data = User.create(email="ada@example.com").to_dict()
        assert set(data) == {"id", "email", "name", "role", "loyaltyPoints", "createdAt"}


class TestCartLine:
    def test_from_dict_accepts_client_shapes(self):
        line = CartLine.from_dict({"productId": "1", "quantity": 2, "price": 299.99})

        assert line.product_id == "1"
        assert line.quantity == 2
        assert line.unit_price == Decimal("299.99")

    def test_from_dict_without_price(self):
        assert CartLine.from_dict({"product_id": "2"}).unit_price is None


class TestOrder:
    def test_round_trip_through_dict(self):
        order = default_orders()[0]
        assert Order.from_dict(order.to_dict()) == order

    def test_seeded_order_totals_add_up(self):
        order = default_orders()[0]
        assert order.total == order.subtotal - order.discount_amount + order.shipping_fee + order.tax_amount

    def test_with_status_only_changes_status(self):
        order = default_orders()[0]
        cancelled = order.with_status("cancelled")

        assert cancelled.status == "cancelled"
        assert cancelled.total == order.total
        assert cancelled.id == order.id
