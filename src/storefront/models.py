"""Data models for storefront."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any
import uuid

from .errors import InvalidConfigError, ValidationError
from .utils import ZERO, money_out, to_flag, to_money, to_rate

# Order fulfillment states
PENDING = "pending"
SHIPPED = "shipped"
DELIVERED = "delivered"
CANCELLED = "cancelled"
ORDER_STATUSES = (PENDING, SHIPPED, DELIVERED, CANCELLED)

PICKUP = "pickup"
DELIVERY = "delivery"
SHIPPING_METHODS = (PICKUP, DELIVERY)

ETRANSFER = "etransfer"
ON_ARRIVAL = "on_arrival"
PAYMENT_METHODS = (ETRANSFER, ON_ARRIVAL)

CUSTOMER = "customer"
ADMIN = "admin"
USER_ROLES = (CUSTOMER, ADMIN)


def _utc_now() -> str:
    """Return current UTC time as ISO 8601 string."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="microseconds").replace("+00:00", "Z")


def _generate_id() -> str:
    """Generate a new record ID."""
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Product:
    """A catalog product. Read-only to checkout."""

    id: str
    name: str
    price: Decimal
    stock: int = 0
    category: str = "General"
    description: str = ""
    image: str = ""
    created_at: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": money_out(self.price),
            "image": self.image,
            "category": self.category,
            "stock": self.stock,
            "createdAt": self.created_at,
        }

    @classmethod
    def create(
        cls,
        name: str,
        price: Any,
        stock: int = 0,
        category: str = "General",
        description: str = "",
        image: str = "",
        id: str | None = None,
    ) -> "Product":
        """
        Create a product, enforcing non-negative price and stock.

        Raises:
            ValidationError: If price or stock is negative.
        """
        amount = to_money(price, "price")
        if amount < ZERO:
            raise ValidationError("price must not be negative", field="price")
        if isinstance(stock, bool) or not isinstance(stock, int) or stock < 0:
            raise ValidationError("stock must be a non-negative integer", field="stock")
        return cls(
            id=id or _generate_id()[:8],
            name=name,
            price=amount,
            stock=stock,
            category=category,
            description=description,
            image=image,
        )


@dataclass(frozen=True)
class User:
    """A customer or staff account. Only customers carry a meaningful points balance."""

    id: str
    email: str
    name: str = ""
    role: str = CUSTOMER  # "customer"|"admin"
    loyalty_points: int = 0
    created_at: str = field(default_factory=_utc_now)

    @property
    def is_customer(self) -> bool:
        return self.role == CUSTOMER

    def with_points(self, points: int) -> "User":
        return replace(self, loyalty_points=points)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "loyaltyPoints": self.loyalty_points,
            "createdAt": self.created_at,
        }

    @classmethod
    def create(cls, email: str, name: str = "", role: str = CUSTOMER) -> "User":
        """Create a new user with a generated ID and an empty points balance."""
        email = (email or "").strip()
        if "@" not in email:
            raise ValidationError(f"Invalid email: {email!r}", field="email")
        if role not in USER_ROLES:
            raise ValidationError(f"Unknown role: {role}", field="role")
        return cls(
            id=_generate_id(),
            email=email,
            name=(name or "").strip(),
            role=role,
            loyalty_points=0,
        )


@dataclass(frozen=True)
class CartLine:
    """A line in a client-held cart. unit_price is what the client saw when adding it."""

    product_id: str
    quantity: int
    name: str = ""
    unit_price: Decimal | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CartLine":
        price = data.get("price", data.get("unitPrice"))
        return cls(
            product_id=str(data.get("productId", data.get("product_id", ""))),
            quantity=data.get("quantity", 1),
            name=data.get("name", ""),
            unit_price=to_money(price, "price") if price is not None else None,
        )


@dataclass(frozen=True)
class OrderItem:
    """A priced order line, copied by value from the catalog at checkout."""

    product_id: str
    name: str
    price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> dict[str, Any]:
        return {
            "productId": self.product_id,
            "name": self.name,
            "price": money_out(self.price),
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderItem":
        return cls(
            product_id=str(data["productId"]),
            name=data.get("name", ""),
            price=to_money(data["price"], "price"),
            quantity=int(data["quantity"]),
        )


@dataclass(frozen=True)
class Order:
    """
    A completed checkout.

    Everything except status (and updated_at) is fixed at creation.
    total == subtotal - discount_amount + shipping_fee + tax_amount.
    """

    id: str
    customer_name: str
    customer_email: str
    items: tuple[OrderItem, ...]
    subtotal: Decimal
    total: Decimal
    shipping_method: str = DELIVERY  # "pickup"|"delivery"
    payment_method: str = ETRANSFER  # "etransfer"|"on_arrival"
    user_id: str | None = None
    customer_phone: str | None = None
    shipping_address: str | None = None
    discount_amount: Decimal = ZERO
    shipping_fee: Decimal = ZERO
    tax_amount: Decimal = ZERO
    points_used: int = 0
    points_earned: int = 0
    status: str = PENDING
    created_at: str = field(default_factory=_utc_now)
    updated_at: str = field(default_factory=_utc_now)

    def with_status(self, status: str) -> "Order":
        return replace(self, status=status, updated_at=_utc_now())

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "customerName": self.customer_name,
            "customerEmail": self.customer_email,
            "customerPhone": self.customer_phone,
            "shippingAddress": self.shipping_address,
            "items": [item.to_dict() for item in self.items],
            "subtotal": money_out(self.subtotal),
            "discountAmount": money_out(self.discount_amount),
            "shippingFee": money_out(self.shipping_fee),
            "taxAmount": money_out(self.tax_amount),
            "total": money_out(self.total),
            "pointsUsed": self.points_used,
            "pointsEarned": self.points_earned,
            "status": self.status,
            "shippingMethod": self.shipping_method,
            "paymentMethod": self.payment_method,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Order":
        return cls(
            id=data["id"],
            user_id=data.get("userId"),
            customer_name=data["customerName"],
            customer_email=data["customerEmail"],
            customer_phone=data.get("customerPhone"),
            shipping_address=data.get("shippingAddress"),
            items=tuple(OrderItem.from_dict(i) for i in data.get("items", [])),
            subtotal=to_money(data["subtotal"], "subtotal"),
            discount_amount=to_money(data.get("discountAmount", 0), "discountAmount"),
            shipping_fee=to_money(data.get("shippingFee", 0), "shippingFee"),
            tax_amount=to_money(data.get("taxAmount", 0), "taxAmount"),
            total=to_money(data["total"], "total"),
            points_used=data.get("pointsUsed", 0),
            points_earned=data.get("pointsEarned", 0),
            status=data.get("status", PENDING),
            shipping_method=data.get("shippingMethod", DELIVERY),
            payment_method=data.get("paymentMethod", ETRANSFER),
            created_at=data.get("createdAt", ""),
            updated_at=data.get("updatedAt", data.get("createdAt", "")),
        )


# Storefront configuration


@dataclass(frozen=True)
class ShippingConfig:
    """Shipping and tax parameters."""

    free_shipping_threshold: Decimal
    flat_rate: Decimal
    tax_rate: Decimal  # percentage, 0-100
    pickup_location: str = ""
    allow_pay_on_arrival: bool = True

    def validate(self) -> None:
        """
        Raises:
            InvalidConfigError: If any amount is negative or the tax rate is outside 0-100.
        """
        if self.free_shipping_threshold < ZERO:
            raise InvalidConfigError("shipping.freeShippingThreshold", "must not be negative")
        if self.flat_rate < ZERO:
            raise InvalidConfigError("shipping.flatRate", "must not be negative")
        if not ZERO <= self.tax_rate <= Decimal("100"):
            raise InvalidConfigError("shipping.taxRate", "must be between 0 and 100")

    def to_dict(self) -> dict[str, Any]:
        return {
            "freeShippingThreshold": money_out(self.free_shipping_threshold),
            "flatRate": money_out(self.flat_rate),
            "taxRate": float(self.tax_rate),
            "pickupLocation": self.pickup_location,
            "allowPayOnArrival": self.allow_pay_on_arrival,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ShippingConfig":
        return cls(
            free_shipping_threshold=to_money(
                data["freeShippingThreshold"], "shipping.freeShippingThreshold"
            ),
            flat_rate=to_money(data["flatRate"], "shipping.flatRate"),
            tax_rate=to_rate(data["taxRate"], "shipping.taxRate"),
            pickup_location=str(data.get("pickupLocation", "")),
            allow_pay_on_arrival=to_flag(
                data.get("allowPayOnArrival", True), "shipping.allowPayOnArrival"
            ),
        )


@dataclass(frozen=True)
class LoyaltyConfig:
    """Points program parameters."""

    enabled: bool = True
    points_per_dollar: Decimal = Decimal("10")
    points_to_dollar_rate: Decimal = Decimal("100")  # points per discount dollar

    def validate(self) -> None:
        """
        Raises:
            InvalidConfigError: If a rate is negative, or the redemption rate is
                not positive while the program is enabled.
        """
        if self.points_per_dollar < 0:
            raise InvalidConfigError("loyalty.pointsPerDollar", "must not be negative")
        if self.points_to_dollar_rate < 0:
            raise InvalidConfigError("loyalty.pointsToDollarRate", "must not be negative")
        if self.enabled and self.points_to_dollar_rate == 0:
            raise InvalidConfigError(
                "loyalty.pointsToDollarRate", "must be greater than 0 when loyalty is enabled"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "pointsPerDollar": float(self.points_per_dollar),
            "pointsToDollarRate": float(self.points_to_dollar_rate),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LoyaltyConfig":
        return cls(
            enabled=to_flag(data.get("enabled", True), "loyalty.enabled"),
            points_per_dollar=to_rate(data.get("pointsPerDollar", 10), "loyalty.pointsPerDollar"),
            points_to_dollar_rate=to_rate(
                data.get("pointsToDollarRate", 100), "loyalty.pointsToDollarRate"
            ),
        )


@dataclass(frozen=True)
class StorefrontConfig:
    """Everything checkout reads from the store settings."""

    shipping: ShippingConfig
    loyalty: LoyaltyConfig
    store_name: str = "Aether"
    etransfer_email: str = ""

    def validate(self) -> None:
        self.shipping.validate()
        self.loyalty.validate()

    def to_dict(self) -> dict[str, Any]:
        return {
            "storeName": self.store_name,
            "etransferEmail": self.etransfer_email,
            "shipping": self.shipping.to_dict(),
            "loyalty": self.loyalty.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StorefrontConfig":
        return cls(
            store_name=str(data.get("storeName", "Aether")),
            etransfer_email=str(data.get("etransferEmail", "")),
            shipping=ShippingConfig.from_dict(data["shipping"]),
            loyalty=LoyaltyConfig.from_dict(data.get("loyalty", {})),
        )


# Points ledger


@dataclass(frozen=True)
class LedgerEntry:
    """One points movement derived from an order."""

    order_id: str
    user_id: str | None
    customer_email: str
    kind: str  # "earned"|"spent"
    points: int
    created_at: str

    @property
    def delta(self) -> int:
        return self.points if self.kind == "earned" else -self.points

    def to_dict(self) -> dict[str, Any]:
        return {
            "orderId": self.order_id,
            "userId": self.user_id,
            "customerEmail": self.customer_email,
            "kind": self.kind,
            "points": self.points,
            "delta": self.delta,
            "createdAt": self.created_at,
        }
