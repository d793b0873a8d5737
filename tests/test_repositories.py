"""Tests for in-memory repositories."""

import pytest

from storefront.errors import (
    DuplicateEmailError,
    OrderNotFoundError,
    ProductNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from storefront.models import User
from storefront.repositories import (
    InMemoryOrderRepository,
    InMemoryProductRepository,
    InMemoryUserRepository,
)
from storefront.seed import default_orders, default_products


class TestInMemoryProductRepository:
    def test_get_and_list(self):
        repo = InMemoryProductRepository(default_products())

        assert repo.get("1").name
        assert [p.id for p in repo.list()] == ["1", "2", "3"]

    def test_missing_product(self):
        with pytest.raises(ProductNotFoundError):
            InMemoryProductRepository().get("404")


class TestInMemoryUserRepository:
    def test_email_lookup_is_case_insensitive(self):
        repo = InMemoryUserRepository()
        user = repo.add(User.create(email="Ada@Example.com", name="Ada"))

        assert repo.get_by_email("ada@example.com") == user
        assert repo.get_by_email("nobody@example.com") is None

    def test_duplicate_email_rejected(self):
        repo = InMemoryUserRepository()
        repo.add(User.create(email="ada@example.com"))

        with pytest.raises(DuplicateEmailError):
            repo.add(User.create(email="ADA@example.com"))
        assert len(repo.list()) == 1

    def test_set_loyalty_points(self):
        repo = InMemoryUserRepository()
        user = repo.add(User.create(email="ada@example.com"))

        updated = repo.set_loyalty_points(user.id, 250)

        assert updated.loyalty_points == 250
        assert repo.get(user.id).loyalty_points == 250

    def test_balance_cannot_go_negative(self):
        repo = InMemoryUserRepository()
        user = repo.add(User.create(email="ada@example.com"))

        with pytest.raises(ValidationError):
            repo.set_loyalty_points(user.id, -1)
        assert repo.get(user.id).loyalty_points == 0

    def test_missing_user(self):
        repo = InMemoryUserRepository()
        assert repo.find("nope") is None
        with pytest.raises(UserNotFoundError):
            repo.get("nope")


class TestInMemoryOrderRepository:
    def test_ids_skip_seeded_orders(self):
        repo = InMemoryOrderRepository(default_orders())

        assert repo.next_id() == "ORD-1002"
        assert repo.next_id() == "ORD-1003"

    def test_ids_start_at_first_number(self):
        assert InMemoryOrderRepository(first_number=5000).next_id() == "ORD-5000"

    def test_duplicate_order_id_rejected(self):
        seeded = default_orders()
        repo = InMemoryOrderRepository(seeded)

        with pytest.raises(ValidationError):
            repo.append(seeded[0])

    def test_update_status_bumps_updated_at(self):
        seeded = default_orders()[0]
        repo = InMemoryOrderRepository([seeded])

        updated = repo.update_status(seeded.id, "cancelled")

        assert updated.status == "cancelled"
        assert updated.created_at == seeded.created_at
        assert updated.updated_at >= seeded.updated_at
        assert repo.get(seeded.id) == updated

    def test_missing_order(self):
        with pytest.raises(OrderNotFoundError):
            InMemoryOrderRepository().get("ORD-1")
