"""Default catalog, accounts and settings loaded when the API starts."""

from decimal import Decimal

from .models import (
    ADMIN,
    DELIVERED,
    LoyaltyConfig,
    Order,
    OrderItem,
    Product,
    ShippingConfig,
    StorefrontConfig,
    User,
    _utc_now,
)


def default_config() -> StorefrontConfig:
    return StorefrontConfig(
        store_name="Aether",
        etransfer_email="payments@aether.store",
        shipping=ShippingConfig(
            free_shipping_threshold=Decimal("150.00"),
            flat_rate=Decimal("17.99"),
            tax_rate=Decimal("13"),
            pickup_location="Aether Studio, 100 Queen St W, Toronto",
            allow_pay_on_arrival=True,
        ),
        loyalty=LoyaltyConfig(
            enabled=True,
            points_per_dollar=Decimal("10"),
            points_to_dollar_rate=Decimal("100"),
        ),
    )


def default_products() -> list[Product]:
    return [
        Product.create(
            id="1",
            name="Aether Wireless Headphones",
            description="Premium noise-canceling headphones with crystal clear sound "
            "and 40-hour battery life.",
            price="299.99",
            image="https://images.unsplash.com/photo-1505740420928-5e560c06d30e?w=800&q=80",
            category="Electronics",
            stock=15,
        ),
        Product.create(
            id="2",
            name="Lumina Smart Watch",
            description="Elegant health tracking with a vibrant OLED display "
            "and week-long battery.",
            price="199.99",
            image="https://images.unsplash.com/photo-1523275335684-37898b6baf30?w=800&q=80",
            category="Wearables",
            stock=25,
        ),
        Product.create(
            id="3",
            name="Terra Ceramic Coffee Set",
            description="Hand-crafted minimalist ceramic set including four mugs "
            "and a matching carafe.",
            price="89.99",
            image="https://images.unsplash.com/photo-1511467687858-23d96c32e4ae?w=800&q=80",
            category="Home",
            stock=10,
        ),
    ]


def default_users() -> list[User]:
    return [
        User(
            id="admin-master",
            email="admin@aether.store",
            name="Admin Support",
            role=ADMIN,
        )
    ]


def default_orders() -> list[Order]:
    """One historical guest order so the admin dashboard isn't empty."""
    placed = _utc_now()
    return [
        Order(
            id="ORD-1001",
            customer_name="Jane Doe",
            customer_email="jane@example.com",
            customer_phone="416-555-0199",
            shipping_address="12 King St E, Toronto",
            items=(
                OrderItem(
                    product_id="1",
                    name="Aether Wireless Headphones",
                    price=Decimal("299.99"),
                    quantity=1,
                ),
            ),
            subtotal=Decimal("299.99"),
            tax_amount=Decimal("39.00"),
            total=Decimal("338.99"),
            status=DELIVERED,
            created_at=placed,
            updated_at=placed,
        )
    ]
