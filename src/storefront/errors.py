"""Custom exceptions for storefront."""


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    pass


class ValidationError(StorefrontError):
    """Raised when a request is malformed or violates a business rule."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class InvalidConfigError(ValidationError):
    """Raised when a storefront configuration value is out of range."""

    def __init__(self, field: str, reason: str):
        super().__init__(f"Invalid config value for '{field}': {reason}", field=field)


class UnauthorizedError(StorefrontError):
    """Raised when an operator-only operation is attempted without a valid token."""

    def __init__(self):
        super().__init__("Operator access required")


class OrderNotFoundError(StorefrontError):
    """Raised when an order ID doesn't exist."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class ProductNotFoundError(StorefrontError):
    """Raised when a product ID doesn't exist."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class UserNotFoundError(StorefrontError):
    """Raised when a user ID doesn't exist."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class DuplicateEmailError(StorefrontError):
    """Raised when registering an email that already belongs to a user."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email already registered: {email}")


class InvalidStatusTransitionError(StorefrontError):
    """Raised when an order status change is not allowed by the fulfillment flow."""

    def __init__(self, order_id: str, current: str, requested: str):
        self.order_id = order_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"Cannot move order {order_id} from '{current}' to '{requested}'"
        )
