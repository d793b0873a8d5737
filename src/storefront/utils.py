"""Utility functions for storefront."""

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from .errors import ValidationError

if TYPE_CHECKING:
    from .pricing import Quote

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def q2(value: Decimal, field: str = "amount") -> Decimal:
    """
    Quantize a money amount to cents, rounding half up.

    Raises:
        ValidationError: If the amount has too many digits to hold in cents.
    """
    try:
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValidationError(f"{field} is out of range", field=field)


def to_money(value: Any, field: str = "amount") -> Decimal:
    """
    Convert a JSON number, string or Decimal to a cent-quantized Decimal.

    Floats go through str() so 17.99 stays 17.99 instead of its binary expansion.

    Raises:
        ValidationError: If the value is not a finite number.
    """
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number", field=field)
    else:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field} must be a number", field=field)
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number", field=field)
    return q2(amount, field)


def to_rate(value: Any, field: str) -> Decimal:
    """Convert a rate (no cent quantization) to Decimal."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number", field=field)
    try:
        rate = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", field=field)
    if not rate.is_finite():
        raise ValidationError(f"{field} must be a finite number", field=field)
    return rate


def to_flag(value: Any, field: str) -> bool:
    """Accept only real JSON booleans; "false" and 0 are not switches."""
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be true or false", field=field)
    return value


def floor_points(value: Decimal) -> int:
    """Round a points amount down to a whole number of points."""
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def money_out(value: Decimal) -> float:
    """Serialize a money amount for JSON output."""
    return float(q2(value))


def format_money(value: Decimal) -> str:
    return f"${q2(value):,.2f}"


def format_quote(quote: "Quote") -> str:
    """Format a price breakdown for terminal display."""
    lines = [
        f"Subtotal:       {format_money(quote.subtotal)}",
    ]
    if quote.discount_amount > ZERO:
        lines.append(
            f"Points discount: -{format_money(quote.discount_amount)} "
            f"({quote.points_used} pts)"
        )
    elif quote.redemption_skipped:
        lines.append("Points discount: not applied (insufficient balance)")
    shipping = "FREE" if quote.shipping_fee == ZERO else format_money(quote.shipping_fee)
    lines.extend(
        [
            f"Shipping:       {shipping}",
            f"Tax:            {format_money(quote.tax_amount)}",
            f"Total:          {format_money(quote.total)}",
        ]
    )
    if quote.points_earned:
        lines.append(f"Points earned:  {quote.points_earned}")
    return "\n".join(lines)
