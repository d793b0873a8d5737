"""Checkout price calculation.

Pure functions only: nothing here reads a repository or mutates a balance.
Settlement and quoting both go through calculate_totals so a quote shown to
the customer always matches the order that gets recorded.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable

from .models import PICKUP, OrderItem, StorefrontConfig
from .utils import ZERO, floor_points, money_out, q2

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class Quote:
    """Price breakdown for one checkout."""

    subtotal: Decimal
    discount_amount: Decimal
    subtotal_after_discount: Decimal
    shipping_fee: Decimal
    tax_amount: Decimal
    total: Decimal
    points_used: int = 0
    points_earned: int = 0
    redemption_skipped: bool = False  # redemption requested but not applied

    def to_dict(self) -> dict[str, Any]:
        return {
            "subtotal": money_out(self.subtotal),
            "discountAmount": money_out(self.discount_amount),
            "subtotalAfterDiscount": money_out(self.subtotal_after_discount),
            "shippingFee": money_out(self.shipping_fee),
            "taxAmount": money_out(self.tax_amount),
            "total": money_out(self.total),
            "pointsUsed": self.points_used,
            "pointsEarned": self.points_earned,
            "redemptionSkipped": self.redemption_skipped,
        }


def subtotal_of(items: Iterable[OrderItem]) -> Decimal:
    """Sum of price x quantity over priced lines."""
    return q2(sum((item.line_total for item in items), ZERO))


def shipping_fee_for(
    subtotal_after_discount: Decimal, shipping_method: str, config: StorefrontConfig
) -> Decimal:
    """Pickup is always free; delivery is free at or above the threshold."""
    if shipping_method == PICKUP:
        return ZERO
    if subtotal_after_discount >= config.shipping.free_shipping_threshold:
        return ZERO
    return config.shipping.flat_rate


def redemption_discount(points: int, config: StorefrontConfig) -> Decimal | None:
    """
    Dollar value of redeeming points, or None if the program can't redeem.

    A non-positive conversion rate yields None instead of dividing by zero.
    """
    rate = config.loyalty.points_to_dollar_rate
    if not config.loyalty.enabled or rate <= 0:
        return None
    return q2(Decimal(points) / rate)


def calculate_totals(
    subtotal: Decimal,
    shipping_method: str,
    config: StorefrontConfig,
    points_to_redeem: int = 0,
    available_points: int | None = None,
) -> Quote:
    """
    Price a cart.

    Args:
        subtotal: Sum of line totals, already computed from trusted prices.
        shipping_method: "pickup" or "delivery".
        config: Snapshot of storefront settings to use for the whole calculation.
        points_to_redeem: Points the customer asked to spend.
        available_points: The customer's current balance, or None for a guest.

    Redemption applies only when the program is enabled, the buyer is a known
    customer and the balance covers the full request. Otherwise it is skipped
    without error and the cart is priced in full.
    """
    subtotal = q2(subtotal)
    loyalty_active = config.loyalty.enabled and available_points is not None

    discount = ZERO
    points_used = 0
    skipped = False
    if points_to_redeem > 0:
        value = None
        if loyalty_active and available_points >= points_to_redeem:
            value = redemption_discount(points_to_redeem, config)
        if value is None:
            skipped = True
        else:
            points_used = points_to_redeem
            discount = min(value, subtotal)

    after_discount = max(ZERO, subtotal - discount)
    shipping_fee = shipping_fee_for(after_discount, shipping_method, config)
    tax_amount = q2(after_discount * config.shipping.tax_rate / HUNDRED)
    total = after_discount + shipping_fee + tax_amount

    points_earned = 0
    if loyalty_active:
        points_earned = floor_points(after_discount * config.loyalty.points_per_dollar)

    return Quote(
        subtotal=subtotal,
        discount_amount=discount,
        subtotal_after_discount=after_discount,
        shipping_fee=shipping_fee,
        tax_amount=tax_amount,
        total=total,
        points_used=points_used,
        points_earned=points_earned,
        redemption_skipped=skipped,
    )
