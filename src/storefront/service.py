"""Wiring of stores and services behind one running storefront."""

from .config_store import ConfigStore
from .ledger import Reconciliation, build_ledger, reconcile
from .models import LedgerEntry, StorefrontConfig, User
from .orders import OrderService
from .repositories import (
    InMemoryOrderRepository,
    InMemoryProductRepository,
    InMemoryUserRepository,
    OrderRepository,
    ProductRepository,
    UserRepository,
)
from .seed import default_config, default_orders, default_products, default_users
from .settings import Settings
from .settlement import SettlementService


class Storefront:
    """Owns the repositories, config and services for one API instance."""

    def __init__(
        self,
        products: ProductRepository,
        users: UserRepository,
        orders: OrderRepository,
        config: StorefrontConfig,
        settings: Settings | None = None,
    ):
        self.settings = settings or Settings()
        self.products = products
        self.users = users
        self.orders = orders
        self.config_store = ConfigStore(config)
        self.settlement = SettlementService(products, users, orders, self.config_store)
        self.order_service = OrderService(orders)

    @classmethod
    def create_default(cls, settings: Settings | None = None) -> "Storefront":
        """In-memory storefront loaded with the demo catalog, admin account and settings."""
        return cls(
            products=InMemoryProductRepository(default_products()),
            users=InMemoryUserRepository(default_users()),
            orders=InMemoryOrderRepository(default_orders()),
            config=default_config(),
            settings=settings,
        )

    def register_customer(self, name: str, email: str) -> User:
        """
        Create a customer account with an empty points balance.

        Raises:
            ValidationError: If the email is malformed.
            DuplicateEmailError: If the email is already registered.
        """
        return self.users.add(User.create(email=email, name=name))

    def points_ledger(self, user_id: str | None = None) -> list[LedgerEntry]:
        return build_ledger(self.orders.list(), user_id=user_id)

    def reconcile_points(self, user_id: str) -> Reconciliation:
        """
        Raises:
            UserNotFoundError: If the user doesn't exist.
        """
        return reconcile(self.orders.list(), self.users.get(user_id))
