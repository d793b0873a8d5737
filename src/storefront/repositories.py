"""Record stores for products, users and orders.

Checkout depends only on the Protocol classes; the in-memory implementations
below are what the API runs on. State is lost on restart.
"""

from __future__ import annotations

import itertools
import threading
from typing import Iterable, Protocol

from .errors import (
    DuplicateEmailError,
    OrderNotFoundError,
    ProductNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from .models import Order, Product, User


class ProductRepository(Protocol):
    """Read access to the catalog (plus add, for seeding)."""

    def get(self, product_id: str) -> Product:
        """Raises ProductNotFoundError if the product doesn't exist."""
        ...

    def list(self) -> list[Product]: ...

    def add(self, product: Product) -> Product: ...


class UserRepository(Protocol):
    """Customer and staff records, including the points balance."""

    def get(self, user_id: str) -> User:
        """Raises UserNotFoundError if the user doesn't exist."""
        ...

    def find(self, user_id: str) -> User | None: ...

    def get_by_email(self, email: str) -> User | None: ...

    def list(self) -> list[User]: ...

    def add(self, user: User) -> User:
        """Raises DuplicateEmailError if the email is taken."""
        ...

    def set_loyalty_points(self, user_id: str, points: int) -> User:
        """Raises ValidationError for a negative balance."""
        ...


class OrderRepository(Protocol):
    """Append-only order storage; only status may change after creation."""

    def next_id(self) -> str: ...

    def append(self, order: Order) -> Order: ...

    def get(self, order_id: str) -> Order:
        """Raises OrderNotFoundError if the order doesn't exist."""
        ...

    def list(self) -> list[Order]: ...

    def update_status(self, order_id: str, status: str) -> Order:
        """Raises OrderNotFoundError if the order doesn't exist."""
        ...


class InMemoryProductRepository:
    """Dict-backed catalog."""

    def __init__(self, products: Iterable[Product] = ()):
        self._lock = threading.RLock()
        self._products: dict[str, Product] = {}
        for product in products:
            self.add(product)

    def get(self, product_id: str) -> Product:
        with self._lock:
            product = self._products.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    def list(self) -> list[Product]:
        with self._lock:
            return list(self._products.values())

    def add(self, product: Product) -> Product:
        with self._lock:
            self._products[product.id] = product
        return product


class InMemoryUserRepository:
    """Dict-backed user store keyed by ID with a case-insensitive email index."""

    def __init__(self, users: Iterable[User] = ()):
        self._lock = threading.RLock()
        self._users: dict[str, User] = {}
        self._by_email: dict[str, str] = {}
        for user in users:
            self.add(user)

    def get(self, user_id: str) -> User:
        user = self.find(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def find(self, user_id: str) -> User | None:
        with self._lock:
            return self._users.get(user_id)

    def get_by_email(self, email: str) -> User | None:
        with self._lock:
            user_id = self._by_email.get(email.strip().lower())
            return self._users.get(user_id) if user_id else None

    def list(self) -> list[User]:
        with self._lock:
            return list(self._users.values())

    def add(self, user: User) -> User:
        key = user.email.strip().lower()
        with self._lock:
            if key in self._by_email:
                raise DuplicateEmailError(user.email)
            self._users[user.id] = user
            self._by_email[key] = user.id
        return user

    def set_loyalty_points(self, user_id: str, points: int) -> User:
        if points < 0:
            raise ValidationError(
                f"Loyalty balance cannot go negative (user {user_id})",
                field="loyaltyPoints",
            )
        with self._lock:
            updated = self.get(user_id).with_points(points)
            self._users[user_id] = updated
        return updated


class InMemoryOrderRepository:
    """Insertion-ordered order store with sequential ORD-<n> IDs."""

    def __init__(self, orders: Iterable[Order] = (), first_number: int = 1001):
        self._lock = threading.RLock()
        self._orders: dict[str, Order] = {}
        self._counter = itertools.count(first_number)
        for order in orders:
            self.append(order)

    def next_id(self) -> str:
        with self._lock:
            while True:
                candidate = f"ORD-{next(self._counter)}"
                if candidate not in self._orders:
                    return candidate

    def append(self, order: Order) -> Order:
        with self._lock:
            if order.id in self._orders:
                raise ValidationError(f"Order ID already used: {order.id}", field="id")
            self._orders[order.id] = order
        return order

    def get(self, order_id: str) -> Order:
        with self._lock:
            order = self._orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def list(self) -> list[Order]:
        with self._lock:
            return list(self._orders.values())

    def update_status(self, order_id: str, status: str) -> Order:
        with self._lock:
            updated = self.get(order_id).with_status(status)
            self._orders[order_id] = updated
        return updated
