"""Pytest fixtures for storefront tests."""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from storefront.api import create_app
from storefront.models import LoyaltyConfig, Product, ShippingConfig, StorefrontConfig
from storefront.repositories import (
    InMemoryOrderRepository,
    InMemoryProductRepository,
    InMemoryUserRepository,
)
from storefront.service import Storefront
from storefront.settings import Settings

ADMIN_TOKEN = "test-admin-token"


def make_config(**overrides) -> StorefrontConfig:
    """Settings used across tests: $150 free shipping, $17.99 flat, 13% tax."""
    shipping = ShippingConfig(
        free_shipping_threshold=Decimal(str(overrides.get("threshold", "150.00"))),
        flat_rate=Decimal(str(overrides.get("flat_rate", "17.99"))),
        tax_rate=Decimal(str(overrides.get("tax_rate", "13"))),
        pickup_location="Test Studio",
        allow_pay_on_arrival=overrides.get("allow_pay_on_arrival", True),
    )
    loyalty = LoyaltyConfig(
        enabled=overrides.get("loyalty_enabled", True),
        points_per_dollar=Decimal(str(overrides.get("points_per_dollar", "10"))),
        points_to_dollar_rate=Decimal(str(overrides.get("points_to_dollar_rate", "120"))),
    )
    return StorefrontConfig(shipping=shipping, loyalty=loyalty, store_name="Test Store")


def make_products() -> list[Product]:
    return [
        Product.create(id="p100", name="Hundred", price="100.00", stock=10),
        Product.create(id="p50", name="Fifty", price="50.00", stock=10),
        Product.create(id="p150", name="Threshold", price="150.00", stock=10),
        Product.create(id="p149", name="Just Under", price="149.99", stock=10),
        Product.create(id="p10", name="Ten", price="10.00", stock=100),
        Product.create(id="p3", name="Odd", price="3.33", stock=100),
    ]


@pytest.fixture
def storefront():
    """Fresh in-memory storefront with a small test catalog and no users."""
    return Storefront(
        products=InMemoryProductRepository(make_products()),
        users=InMemoryUserRepository(),
        orders=InMemoryOrderRepository(),
        config=make_config(),
        settings=Settings(admin_token=ADMIN_TOKEN),
    )


@pytest.fixture
def make_customer(storefront):
    """Register a customer and optionally give them a starting balance."""
    counter = {"n": 0}

    def _make(points: int = 0, name: str = "Test Customer"):
        counter["n"] += 1
        user = storefront.register_customer(name=name, email=f"customer{counter['n']}@example.com")
        if points:
            user = storefront.users.set_loyalty_points(user.id, points)
        return user

    return _make


@pytest.fixture
def api_client(storefront):
    """Test client bound to the fixture storefront."""
    return TestClient(create_app(storefront))


@pytest.fixture
def admin_headers():
    return {"X-Admin-Token": ADMIN_TOKEN}
