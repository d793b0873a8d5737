"""Checkout settlement: price a cart, settle loyalty points, record the order."""

import logging
import threading
import weakref
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Sequence

from .config_store import ConfigStore
from .errors import ProductNotFoundError, ValidationError
from .models import (
    DELIVERY,
    ON_ARRIVAL,
    PAYMENT_METHODS,
    PENDING,
    SHIPPING_METHODS,
    CartLine,
    Order,
    OrderItem,
    StorefrontConfig,
    User,
)
from .pricing import Quote, calculate_totals, redemption_discount, subtotal_of
from .repositories import OrderRepository, ProductRepository, UserRepository
from .utils import to_money

log = logging.getLogger("storefront.settlement")

CLIENT_TOTAL_FIELDS = {
    "subtotal": "subtotal",
    "shippingFee": "shipping_fee",
    "taxAmount": "tax_amount",
    "total": "total",
}


@dataclass(frozen=True)
class CheckoutResult:
    """The recorded order and the buyer's refreshed account (None for guests)."""

    order: Order
    customer: User | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "order": self.order.to_dict(),
            "user": self.customer.to_dict() if self.customer else None,
        }


def _blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


class SettlementService:
    """
    Turns a cart into a priced order and settles the buyer's points.

    Balance read, redemption, earning and order creation for one customer
    happen under that customer's lock, so two simultaneous checkouts cannot
    both spend the same points. Different customers don't contend.
    """

    def __init__(
        self,
        products: ProductRepository,
        users: UserRepository,
        orders: OrderRepository,
        config_store: ConfigStore,
    ):
        self.products = products
        self.users = users
        self.orders = orders
        self.config_store = config_store
        self._locks_guard = threading.Lock()
        # Entries drop out once no checkout holds the lock.
        self._customer_locks: "weakref.WeakValueDictionary[str, threading.Lock]" = (
            weakref.WeakValueDictionary()
        )

    @contextmanager
    def _customer_lock(self, customer_id: str | None) -> Iterator[None]:
        """Serialize settlement per customer. Guests need no lock."""
        if customer_id is None:
            yield
            return
        with self._locks_guard:
            lock = self._customer_locks.setdefault(customer_id, threading.Lock())
        with lock:
            yield

    # --- Validation ---

    def price_lines(self, cart_lines: Sequence[CartLine]) -> list[OrderItem]:
        """
        Resolve cart lines to order items priced from the catalog.

        Raises:
            ValidationError: Empty cart, bad quantity or unknown product.
        """
        if not cart_lines:
            raise ValidationError("Cart is empty", field="items")

        items: list[OrderItem] = []
        for line in cart_lines:
            quantity = line.quantity
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
                raise ValidationError(
                    f"Quantity for product {line.product_id} must be a whole number of at least 1",
                    field="items",
                )
            try:
                product = self.products.get(line.product_id)
            except ProductNotFoundError:
                raise ValidationError(
                    f"Unknown product in cart: {line.product_id}", field="items"
                )
            if line.unit_price is not None and line.unit_price != product.price:
                log.info(
                    "Cart price for product %s was %s, charging catalog price %s",
                    product.id,
                    line.unit_price,
                    product.price,
                )
            items.append(
                OrderItem(
                    product_id=product.id,
                    name=product.name,
                    price=product.price,
                    quantity=quantity,
                )
            )
        return items

    @staticmethod
    def _validate_points(points_to_redeem: Any) -> int:
        if points_to_redeem is None:
            return 0
        if isinstance(points_to_redeem, bool) or not isinstance(points_to_redeem, int):
            raise ValidationError("pointsUsed must be a whole number", field="pointsUsed")
        if points_to_redeem < 0:
            raise ValidationError("pointsUsed must not be negative", field="pointsUsed")
        return points_to_redeem

    @staticmethod
    def _validate_methods(
        shipping_method: str, payment_method: str | None, config: StorefrontConfig
    ) -> None:
        if shipping_method not in SHIPPING_METHODS:
            raise ValidationError(
                f"Unknown shipping method: {shipping_method}", field="shippingMethod"
            )
        if payment_method is None:
            return
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError(
                f"Unknown payment method: {payment_method}", field="paymentMethod"
            )
        if payment_method == ON_ARRIVAL and not config.shipping.allow_pay_on_arrival:
            raise ValidationError(
                "Pay on arrival is not available", field="paymentMethod"
            )

    def _find_customer(self, customer_id: str | None) -> User | None:
        """Known customer accounts take part in loyalty; anything else checks out as a guest."""
        if customer_id is None:
            return None
        user = self.users.find(customer_id)
        if user is None:
            log.info("Unknown user %s at checkout, continuing as guest", customer_id)
            return None
        if not user.is_customer:
            log.info("User %s is %s, not a customer; no points settled", user.id, user.role)
            return None
        return user

    # --- Operations ---

    def quote(
        self,
        *,
        cart_lines: Sequence[CartLine],
        shipping_method: str,
        customer_id: str | None = None,
        points_to_redeem: int = 0,
    ) -> Quote:
        """Price a cart against the buyer's current balance without changing anything."""
        config = self.config_store.snapshot()
        points = self._validate_points(points_to_redeem)
        self._validate_methods(shipping_method, None, config)
        items = self.price_lines(cart_lines)
        customer = self._find_customer(customer_id)
        return calculate_totals(
            subtotal_of(items),
            shipping_method,
            config,
            points_to_redeem=points,
            available_points=customer.loyalty_points if customer else None,
        )

    def finalize_order(
        self,
        *,
        cart_lines: Sequence[CartLine],
        shipping_method: str,
        payment_method: str,
        customer_id: str | None = None,
        shipping_address: str | None = None,
        points_to_redeem: int = 0,
        customer_name: str | None = None,
        customer_email: str | None = None,
        customer_phone: str | None = None,
        client_totals: dict[str, Any] | None = None,
    ) -> CheckoutResult:
        """
        Settle a checkout.

        Totals are always recomputed here; client_totals is only compared
        against the result for logging.

        Returns:
            CheckoutResult with the new pending order and the buyer's account
            after points were spent and earned.

        Raises:
            ValidationError: If the request is invalid. Nothing is changed.
        """
        config = self.config_store.snapshot()

        points = self._validate_points(points_to_redeem)
        self._validate_methods(shipping_method, payment_method, config)
        if shipping_method == DELIVERY:
            if _blank(shipping_address):
                raise ValidationError(
                    "Shipping address is required for delivery", field="shippingAddress"
                )
            if _blank(customer_phone):
                raise ValidationError(
                    "Phone number is required for delivery", field="customerPhone"
                )
        items = self.price_lines(cart_lines)
        subtotal = subtotal_of(items)

        customer = self._find_customer(customer_id)
        name = customer_name if not _blank(customer_name) else (customer.name if customer else "")
        email = customer_email if not _blank(customer_email) else (customer.email if customer else "")
        if _blank(name):
            raise ValidationError("Customer name is required", field="customerName")
        if _blank(email):
            raise ValidationError("Customer email is required", field="customerEmail")

        locked_id = customer.id if customer else None
        with self._customer_lock(locked_id):
            # Re-read inside the lock; the balance may have moved since validation.
            if locked_id is not None:
                customer = self.users.get(locked_id)
            quote = calculate_totals(
                subtotal,
                shipping_method,
                config,
                points_to_redeem=points,
                available_points=customer.loyalty_points if customer else None,
            )
            if quote.redemption_skipped:
                log.warning(
                    "Redemption of %d points skipped for %s (balance %s, loyalty %s)",
                    points,
                    customer.id if customer else "guest",
                    customer.loyalty_points if customer else "n/a",
                    "enabled" if config.loyalty.enabled else "disabled",
                )
            if quote.points_used and quote.discount_amount < redemption_discount(points, config):
                log.warning(
                    "Redeemed %d points worth more than the cart; discount capped at %s",
                    points,
                    quote.discount_amount,
                )

            order = Order(
                id=self.orders.next_id(),
                user_id=customer.id if customer else None,
                customer_name=str(name).strip(),
                customer_email=str(email).strip(),
                customer_phone=customer_phone.strip() if customer_phone else None,
                shipping_address=shipping_address.strip() if shipping_address else None,
                items=tuple(items),
                subtotal=quote.subtotal,
                discount_amount=quote.discount_amount,
                shipping_fee=quote.shipping_fee,
                tax_amount=quote.tax_amount,
                total=quote.total,
                points_used=quote.points_used,
                points_earned=quote.points_earned,
                status=PENDING,
                shipping_method=shipping_method,
                payment_method=payment_method,
            )

            if customer is not None:
                balance = customer.loyalty_points - quote.points_used + quote.points_earned
                customer = self.users.set_loyalty_points(customer.id, balance)
            self.orders.append(order)

        self._log_client_mismatch(order.id, quote, client_totals)
        log.info(
            "Order %s finalized: total=%s points_used=%d points_earned=%d buyer=%s",
            order.id,
            order.total,
            order.points_used,
            order.points_earned,
            order.user_id or "guest",
        )
        return CheckoutResult(order=order, customer=customer)

    @staticmethod
    def _log_client_mismatch(
        order_id: str, quote: Quote, client_totals: dict[str, Any] | None
    ) -> None:
        if not client_totals:
            return
        for key, attr in CLIENT_TOTAL_FIELDS.items():
            value = client_totals.get(key)
            if value is None:
                continue
            try:
                submitted = to_money(value, key)
            except ValidationError:
                submitted = None
            if submitted != getattr(quote, attr):
                log.info(
                    "Order %s: client sent %s=%r, server computed %s",
                    order_id,
                    key,
                    value,
                    getattr(quote, attr),
                )
