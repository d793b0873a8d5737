"""Order queries and fulfillment status changes."""

import logging
import threading

from .errors import InvalidStatusTransitionError, ValidationError
from .models import CANCELLED, DELIVERED, ORDER_STATUSES, PENDING, SHIPPED, Order
from .repositories import OrderRepository

log = logging.getLogger("storefront.orders")

# Allowed next states. delivered and cancelled are terminal.
TRANSITIONS: dict[str, set[str]] = {
    PENDING: {SHIPPED, CANCELLED},
    SHIPPED: {DELIVERED},
    DELIVERED: set(),
    CANCELLED: set(),
}


def can_transition(current: str, requested: str) -> bool:
    return requested in TRANSITIONS.get(current, set())


def _newest_first(orders: list[Order]) -> list[Order]:
    # Ties on created_at fall back to insertion order.
    ranked = sorted(enumerate(orders), key=lambda p: (p[1].created_at, p[0]), reverse=True)
    return [order for _, order in ranked]


class OrderService:
    """Read access to orders plus the operator-only status update."""

    def __init__(self, orders: OrderRepository):
        self.orders = orders
        self._lock = threading.Lock()

    def get_order(self, order_id: str) -> Order:
        return self.orders.get(order_id)

    def list_orders(self) -> list[Order]:
        """All orders, newest first."""
        return _newest_first(self.orders.list())

    def list_customer_orders(self, user_id: str) -> list[Order]:
        """A customer's order history, newest first."""
        return _newest_first([o for o in self.orders.list() if o.user_id == user_id])

    def update_status(self, order_id: str, new_status: str) -> Order:
        """
        Move an order along pending -> shipped -> delivered, or pending -> cancelled.

        Setting the status an order already has is a no-op. Points spent or
        earned on the order are left as they are, including on cancellation.

        Raises:
            OrderNotFoundError: If the order doesn't exist.
            ValidationError: If new_status isn't a known status.
            InvalidStatusTransitionError: If the move isn't allowed.
        """
        if new_status not in ORDER_STATUSES:
            raise ValidationError(f"Unknown order status: {new_status}", field="status")

        with self._lock:
            order = self.orders.get(order_id)
            if order.status == new_status:
                return order
            if not can_transition(order.status, new_status):
                raise InvalidStatusTransitionError(order_id, order.status, new_status)
            updated = self.orders.update_status(order_id, new_status)

        log.info("Order %s: %s -> %s", order_id, order.status, new_status)
        if new_status == CANCELLED and (order.points_used or order.points_earned):
            log.warning(
                "Order %s cancelled without reversing points (used=%d, earned=%d)",
                order_id,
                order.points_used,
                order.points_earned,
            )
        return updated
