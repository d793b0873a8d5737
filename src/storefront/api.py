"""FastAPI REST API for the storefront."""

import secrets
from typing import Any, Optional

from fastapi import Body, Depends, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from . import __version__
from .errors import (
    DuplicateEmailError,
    InvalidConfigError,
    InvalidStatusTransitionError,
    OrderNotFoundError,
    ProductNotFoundError,
    StorefrontError,
    UnauthorizedError,
    UserNotFoundError,
    ValidationError,
)
from .models import CartLine
from .service import Storefront
from .settings import Settings


# --- Pydantic Schemas ---


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductSchema(CamelModel):
    id: str
    name: str
    description: str = ""
    price: float
    image: str = ""
    category: str
    stock: int
    created_at: str


class UserSchema(CamelModel):
    id: str
    email: str
    name: str = ""
    role: str  # "customer"|"admin"
    loyalty_points: int
    created_at: str


class UserCreateRequest(CamelModel):
    """Request body for registering a customer."""

    name: str = ""
    email: str


class OrderItemSchema(CamelModel):
    product_id: str
    name: str
    price: float
    quantity: int


class OrderSchema(CamelModel):
    id: str
    user_id: Optional[str] = None
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    shipping_address: Optional[str] = None
    items: list[OrderItemSchema]
    subtotal: float
    discount_amount: float
    shipping_fee: float
    tax_amount: float
    total: float
    points_used: int
    points_earned: int
    status: str  # "pending"|"shipped"|"delivered"|"cancelled"
    shipping_method: str  # "pickup"|"delivery"
    payment_method: str  # "etransfer"|"on_arrival"
    created_at: str
    updated_at: str


class CartItemRequest(CamelModel):
    """A cart line. name and price are what the client displayed; the catalog decides the price."""

    product_id: str
    name: Optional[str] = None
    price: Optional[float] = None
    quantity: int = 1

    def to_cart_line(self) -> CartLine:
        return CartLine.from_dict(self.model_dump(by_alias=True, exclude_none=True))


class QuoteRequest(CamelModel):
    """Request body for pricing a cart without placing an order."""

    user_id: Optional[str] = None
    items: list[CartItemRequest] = Field(default_factory=list)
    points_used: Optional[int] = None
    shipping_method: str


class OrderCreateRequest(QuoteRequest):
    """
    Request body for placing an order.

    subtotal, shippingFee, taxAmount and total are accepted from older
    clients but never used; the server recomputes them.
    """

    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    shipping_address: Optional[str] = None
    payment_method: str
    subtotal: Optional[float] = None
    shipping_fee: Optional[float] = None
    tax_amount: Optional[float] = None
    total: Optional[float] = None


class QuoteResponse(CamelModel):
    subtotal: float
    discount_amount: float
    subtotal_after_discount: float
    shipping_fee: float
    tax_amount: float
    total: float
    points_used: int
    points_earned: int
    redemption_skipped: bool


class CheckoutResponse(BaseModel):
    order: OrderSchema
    user: Optional[UserSchema] = None


class OrderStatusUpdateRequest(BaseModel):
    status: str = Field(..., description="pending|shipped|delivered|cancelled")


class ShippingConfigSchema(CamelModel):
    free_shipping_threshold: float
    flat_rate: float
    tax_rate: float
    pickup_location: str
    allow_pay_on_arrival: bool


class LoyaltyConfigSchema(CamelModel):
    enabled: bool
    points_per_dollar: float
    points_to_dollar_rate: float


class StorefrontConfigSchema(CamelModel):
    store_name: str
    etransfer_email: str
    shipping: ShippingConfigSchema
    loyalty: LoyaltyConfigSchema


class LedgerEntrySchema(CamelModel):
    order_id: str
    user_id: Optional[str] = None
    customer_email: str
    kind: str  # "earned"|"spent"
    points: int
    delta: int
    created_at: str


class ReconciliationSchema(CamelModel):
    user_id: str
    ledger_balance: int
    current_balance: int
    consistent: bool


class LedgerResponse(CamelModel):
    entries: list[LedgerEntrySchema]
    count: int
    reconciliation: Optional[ReconciliationSchema] = None


class ErrorResponse(BaseModel):
    detail: str
    error_type: str


# --- Helper Functions ---


def get_storefront(request: Request) -> Storefront:
    """The Storefront bound to this app instance."""
    return request.app.state.storefront


def require_operator(
    request: Request,
    x_admin_token: Optional[str] = Header(default=None),
) -> None:
    """Reject the request unless it carries the operator token."""
    expected = get_storefront(request).settings.admin_token
    if not x_admin_token or not secrets.compare_digest(x_admin_token, expected):
        raise UnauthorizedError()


def _cart_lines(request: QuoteRequest) -> list[CartLine]:
    return [item.to_cart_line() for item in request.items]


# Map exception types to HTTP status codes
ERROR_STATUS_CODES: dict[type, int] = {
    ValidationError: 400,
    InvalidConfigError: 400,
    UnauthorizedError: 401,
    OrderNotFoundError: 404,
    ProductNotFoundError: 404,
    UserNotFoundError: 404,
    DuplicateEmailError: 409,
    InvalidStatusTransitionError: 409,
}


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    """Map StorefrontError subclasses to appropriate HTTP responses."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error_type": type(exc).__name__},
    )


# --- FastAPI App ---


def create_app(storefront: Storefront | None = None) -> FastAPI:
    """
    Build the API around a Storefront.

    Args:
        storefront: Backing state. Defaults to a freshly seeded in-memory
            storefront configured from the environment.
    """
    app = FastAPI(
        title="Storefront API",
        description="Catalog, checkout, orders and loyalty points",
        version=__version__,
        responses={
            code: {"model": ErrorResponse} for code in sorted(set(ERROR_STATUS_CODES.values()))
        },
    )
    app.state.storefront = storefront or Storefront.create_default(Settings.from_env())

    # CORS for local development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",
            "http://localhost:8080",
            "http://127.0.0.1:5173",
            "http://127.0.0.1:8080",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StorefrontError, storefront_error_handler)

    operator = [Depends(require_operator)]

    # --- Service Endpoints ---

    @app.get("/api/ping")
    def ping(store: Storefront = Depends(get_storefront)):
        return {"message": store.settings.ping_message}

    @app.get("/api/health")
    def health_check(store: Storefront = Depends(get_storefront)):
        """Basic service status."""
        return {
            "status": "ok",
            "version": __version__,
            "product_count": len(store.products.list()),
            "user_count": len(store.users.list()),
            "order_count": len(store.orders.list()),
        }

    # --- Catalog Endpoints ---

    @app.get("/api/products", response_model=list[ProductSchema])
    def list_products(store: Storefront = Depends(get_storefront)):
        return [ProductSchema.model_validate(p.to_dict()) for p in store.products.list()]

    @app.get("/api/products/{product_id}", response_model=ProductSchema)
    def get_product(product_id: str, store: Storefront = Depends(get_storefront)):
        return ProductSchema.model_validate(store.products.get(product_id).to_dict())

    # --- Config Endpoints ---

    @app.get("/api/config", response_model=StorefrontConfigSchema)
    def get_config(store: Storefront = Depends(get_storefront)):
        return StorefrontConfigSchema.model_validate(store.config_store.snapshot().to_dict())

    @app.post("/api/config", response_model=StorefrontConfigSchema, dependencies=operator)
    def update_config(
        changes: dict[str, Any] = Body(...),
        store: Storefront = Depends(get_storefront),
    ):
        """Partially update shipping, tax and loyalty settings."""
        config = store.config_store.update(changes)
        return StorefrontConfigSchema.model_validate(config.to_dict())

    # --- User Endpoints ---

    @app.post("/api/users", response_model=UserSchema, status_code=201)
    def register_user(request: UserCreateRequest, store: Storefront = Depends(get_storefront)):
        """Register a customer account with zero points."""
        user = store.register_customer(name=request.name, email=request.email)
        return UserSchema.model_validate(user.to_dict())

    @app.get("/api/users", response_model=list[UserSchema], dependencies=operator)
    def list_users(store: Storefront = Depends(get_storefront)):
        return [UserSchema.model_validate(u.to_dict()) for u in store.users.list()]

    @app.get("/api/users/{user_id}", response_model=UserSchema)
    def get_user(user_id: str, store: Storefront = Depends(get_storefront)):
        return UserSchema.model_validate(store.users.get(user_id).to_dict())

    # --- Order Endpoints ---

    @app.post("/api/orders/quote", response_model=QuoteResponse)
    def quote_order(request: QuoteRequest, store: Storefront = Depends(get_storefront)):
        """Price a cart for display. Nothing is stored and no points move."""
        quote = store.settlement.quote(
            cart_lines=_cart_lines(request),
            shipping_method=request.shipping_method,
            customer_id=request.user_id,
            points_to_redeem=request.points_used or 0,
        )
        return QuoteResponse.model_validate(quote.to_dict())

    @app.post("/api/orders", response_model=CheckoutResponse, status_code=201)
    def create_order(request: OrderCreateRequest, store: Storefront = Depends(get_storefront)):
        """Place an order, settle loyalty points and return the order with the refreshed user."""
        result = store.settlement.finalize_order(
            cart_lines=_cart_lines(request),
            shipping_method=request.shipping_method,
            payment_method=request.payment_method,
            customer_id=request.user_id,
            shipping_address=request.shipping_address,
            points_to_redeem=request.points_used or 0,
            customer_name=request.customer_name,
            customer_email=request.customer_email,
            customer_phone=request.customer_phone,
            client_totals=request.model_dump(
                by_alias=True,
                include={"subtotal", "shipping_fee", "tax_amount", "total"},
            ),
        )
        return CheckoutResponse.model_validate(result.to_dict())

    @app.get("/api/orders", response_model=list[OrderSchema], dependencies=operator)
    def list_orders(store: Storefront = Depends(get_storefront)):
        """All orders, newest first."""
        return [OrderSchema.model_validate(o.to_dict()) for o in store.order_service.list_orders()]

    @app.get("/api/orders/me", response_model=list[OrderSchema])
    def list_my_orders(
        user_id: str = Query(..., alias="userId"),
        store: Storefront = Depends(get_storefront),
    ):
        """A customer's order history, newest first."""
        orders = store.order_service.list_customer_orders(user_id)
        return [OrderSchema.model_validate(o.to_dict()) for o in orders]

    @app.get("/api/orders/{order_id}", response_model=OrderSchema)
    def get_order(order_id: str, store: Storefront = Depends(get_storefront)):
        return OrderSchema.model_validate(store.order_service.get_order(order_id).to_dict())

    @app.put("/api/orders/{order_id}", response_model=OrderSchema, dependencies=operator)
    def update_order_status(
        order_id: str,
        request: OrderStatusUpdateRequest,
        store: Storefront = Depends(get_storefront),
    ):
        """Move an order through fulfillment."""
        order = store.order_service.update_status(order_id, request.status)
        return OrderSchema.model_validate(order.to_dict())

    # --- Loyalty Endpoints ---

    @app.get("/api/loyalty/ledger", response_model=LedgerResponse, dependencies=operator)
    def get_points_ledger(
        user_id: Optional[str] = Query(default=None, alias="userId"),
        store: Storefront = Depends(get_storefront),
    ):
        """
        Points movements derived from orders, newest first.

        With userId, also reports whether the ledger adds up to the user's balance.
        """
        entries = store.points_ledger(user_id)
        reconciliation = None
        if user_id is not None:
            reconciliation = ReconciliationSchema.model_validate(
                store.reconcile_points(user_id).to_dict()
            )
        return LedgerResponse(
            entries=[LedgerEntrySchema.model_validate(e.to_dict()) for e in entries],
            count=len(entries),
            reconciliation=reconciliation,
        )

    return app


app = create_app()
