"""FastAPI REST API for the shopfast store."""

import asyncio
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional

import structlog
from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .catalog import filter_range
from .checkout import CheckoutRequest
from .config import Settings
from .errors import (
    AuthenticationFailedError,
    CartItemNotFoundError,
    CartUpdateError,
    CheckoutValidationError,
    DuplicateEmailError,
    EmptyCartError,
    InsufficientStockError,
    InvalidPaymentMethodError,
    InvalidQuantityError,
    MissingFieldsError,
    OrderCreationError,
    OrderNotFoundError,
    ProductNotFoundError,
    ShopfastError,
    UserNotFoundError,
)
from .log import configure_logging
from .models import _isoformat, money
from .shop import Shop

logger = structlog.get_logger(__name__)


# --- Pydantic Schemas ---


class CamelModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TimedResponse(CamelModel):
    message: str
    response_time: str


class UserSchema(CamelModel):
    id: str
    name: str
    email: str
    age: int
    is_authenticated: bool = False


class ProductSchema(CamelModel):
    id: str
    name: str
    category: str
    price: float
    stock: int
    description: str
    rating: float


class ProductBrief(CamelModel):
    id: str
    name: str
    price: float
    category: Optional[str] = None


class CartItemSchema(CamelModel):
    user_id: str
    product_id: str
    quantity: int


class CartLineSchema(CartItemSchema):
    product: Optional[ProductBrief]
    subtotal: float


class OrderSchema(CamelModel):
    id: str
    user_id: str
    items: list[CartItemSchema]
    total: float
    status: str
    created_at: str


class OrderSummarySchema(CamelModel):
    id: str
    user_id: str
    total: float
    status: str
    item_count: int
    created_at: str


# Requests. Fields are optional so that missing values are reported with the
# store's own messages rather than as schema errors.


class UserCreateRequest(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    age: Optional[int] = None


class UserUpdateRequest(CamelModel):
    name: Optional[str] = None
    age: Optional[int] = None


class AuthRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class LogoutRequest(CamelModel):
    user_id: Optional[str] = None


class CartAddRequest(CamelModel):
    user_id: Optional[str] = None
    product_id: Optional[str] = None
    quantity: int = 1


class CartUpdateRequest(CamelModel):
    quantity: Optional[int] = None


class CheckoutBody(CamelModel):
    user_id: Optional[str] = None
    payment_method: Optional[str] = None
    shipping_address: Any = None
    billing_address: Any = None
    email: Optional[str] = None
    password: Optional[str] = None


class ValidateBody(CamelModel):
    user_id: Optional[str] = None
    payment_method: Optional[str] = None
    shipping_address: Any = None


class CalculateBody(CamelModel):
    user_id: Optional[str] = None
    shipping_method: Optional[str] = None


# Responses


class UserResponse(TimedResponse):
    user: UserSchema


class UserListResponse(TimedResponse):
    users: list[UserSchema]
    total: int
    filters: dict[str, Any]


class ProductResponse(TimedResponse):
    product: ProductSchema


class ProductListResponse(TimedResponse):
    products: list[ProductSchema]
    total: int
    query: Optional[str] = None
    category: Optional[str] = None


class ProductSearchResponse(TimedResponse):
    products: list[ProductSchema]
    total: int
    filters: dict[str, Any]


class CartAddResponse(TimedResponse):
    cart_item: CartItemSchema
    product: ProductBrief


class CartResponse(TimedResponse):
    cart: list[CartLineSchema]
    item_count: int
    total: float


class CartUpdateResponse(TimedResponse):
    cart_item: Optional[CartItemSchema] = None


class CheckoutResponse(TimedResponse):
    order: OrderSummarySchema
    payment_method: str
    estimated_delivery: str
    processing_time: str


class ValidateResponse(TimedResponse):
    valid: bool


class TotalsBreakdown(CamelModel):
    subtotal: float
    shipping: float
    tax: float
    total: float


class TotalsResponse(TimedResponse):
    breakdown: TotalsBreakdown
    shipping_method: str


class OrderResponse(TimedResponse):
    order: OrderSchema


class UserOrdersResponse(TimedResponse):
    orders: list[OrderSchema]
    total: int
    user_id: str
    filters: dict[str, Any]


# --- Helper Functions ---


def get_shop(request: Request) -> Shop:
    """Get the Shop attached to the running application."""
    return request.app.state.shop


def response_time(request: Request) -> str:
    """Wall-clock time since the request entered the app, e.g. "12ms"."""
    started = getattr(request.state, "started_at", None)
    if started is None:
        return "0ms"
    return f"{int((time.perf_counter() - started) * 1000)}ms"


def product_to_schema(product) -> ProductSchema:
    return ProductSchema(**product.to_dict())


def order_to_schema(order) -> OrderSchema:
    return OrderSchema(**order.to_dict())


# --- Error Handling ---


# Map exception types to HTTP status codes
ERROR_STATUS_CODES: dict[type, int] = {
    MissingFieldsError: 400,
    InvalidQuantityError: 400,
    CheckoutValidationError: 400,
    InsufficientStockError: 400,
    InvalidPaymentMethodError: 400,
    EmptyCartError: 400,
    CartUpdateError: 400,
    AuthenticationFailedError: 401,
    ProductNotFoundError: 404,
    UserNotFoundError: 404,
    CartItemNotFoundError: 404,
    OrderNotFoundError: 404,
    DuplicateEmailError: 409,
    OrderCreationError: 500,
}


async def shopfast_error_handler(request: Request, exc: ShopfastError) -> JSONResponse:
    """Map ShopfastError subclasses to appropriate HTTP responses."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    content = {"error": str(exc), "error_type": type(exc).__name__}
    content.update(exc.context())
    content["responseTime"] = response_time(request)
    return JSONResponse(status_code=status_code, content=content)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = "Route not found" if exc.status_code == 404 else exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": detail, "error_type": "HTTPException", "responseTime": response_time(request)},
        headers=getattr(exc, "headers", None),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=422,
        content={
            "error": "Invalid request",
            "error_type": "RequestValidationError",
            "detail": jsonable_encoder(exc.errors()),
            "responseTime": response_time(request),
        },
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "error_type": type(exc).__name__, "responseTime": response_time(request)},
    )


# --- Health ---


health_router = APIRouter()


@health_router.get("/health")
async def health_check(request: Request):
    """Liveness probe used by load tests and monitors."""
    shop = get_shop(request)
    return {
        "status": "OK",
        "timestamp": _isoformat(datetime.now(timezone.utc)),
        "uptime": round(time.monotonic() - request.app.state.booted_at, 3),
        "version": __version__,
        "environment": shop.settings.environment,
        "responseTime": response_time(request),
    }


router = APIRouter(prefix="/api")


# --- User Endpoints ---


@router.get("/users", response_model=UserListResponse)
async def list_users(
    request: Request,
    name: Optional[str] = Query(None),
    age: Optional[int] = Query(None),
):
    """List users filtered by name substring and exact age."""
    users = get_shop(request).accounts.list(name=name, age=age)
    return UserListResponse(
        message="Users retrieved successfully",
        users=[UserSchema(**u.to_dict()) for u in users],
        total=len(users),
        filters={"name": name, "age": age},
        response_time=response_time(request),
    )


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(request: Request, user_id: str):
    user = get_shop(request).accounts.get_by_id(user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return UserResponse(
        message=f"User with ID {user_id}",
        user=UserSchema(**user.to_dict()),
        response_time=response_time(request),
    )


@router.post("/users", response_model=UserResponse, status_code=201)
async def create_user(request: Request, body: UserCreateRequest):
    """Register a new user. Emails must be unique."""
    if not body.name or not body.email:
        raise MissingFieldsError("Name and email are required")
    accounts = get_shop(request).accounts
    if accounts.get_by_email(body.email) is not None:
        raise DuplicateEmailError(body.email)
    user = accounts.create(body.name, body.email, body.age or 0)
    return UserResponse(
        message="User created",
        user=UserSchema(**user.to_dict()),
        response_time=response_time(request),
    )


@router.put("/users/{user_id}", response_model=UserResponse)
async def update_user(request: Request, user_id: str, body: UserUpdateRequest):
    """Update a user's name and/or age. Unset fields are preserved."""
    accounts = get_shop(request).accounts
    current = accounts.get_by_id(user_id)
    if current is None:
        raise UserNotFoundError(user_id)
    user = accounts.update(
        user_id,
        name=body.name if body.name else current.name,
        age=body.age if body.age is not None else current.age,
    )
    return UserResponse(
        message=f"User with ID {user_id} updated",
        user=UserSchema(**user.to_dict()),
        response_time=response_time(request),
    )


@router.delete("/users/{user_id}", response_model=TimedResponse)
async def delete_user(request: Request, user_id: str):
    if not get_shop(request).accounts.delete(user_id):
        raise UserNotFoundError(user_id)
    return TimedResponse(message=f"User with ID {user_id} deleted", response_time=response_time(request))


@router.post("/auth", response_model=UserResponse)
async def authenticate(request: Request, body: AuthRequest):
    """Log a user in with the placeholder credential check."""
    user = get_shop(request).accounts.authenticate(body.email or "", body.password or "")
    if user is None:
        raise AuthenticationFailedError("Invalid credentials")
    return UserResponse(
        message="Authentication successful",
        user=UserSchema(**user.to_dict()),
        response_time=response_time(request),
    )


@router.post("/auth/logout", response_model=UserResponse)
async def logout(request: Request, body: LogoutRequest):
    if not body.user_id:
        raise MissingFieldsError("User ID is required")
    user = get_shop(request).accounts.logout(body.user_id)
    if user is None:
        raise UserNotFoundError(body.user_id)
    return UserResponse(
        message="Logged out",
        user=UserSchema(**user.to_dict()),
        response_time=response_time(request),
    )


# --- Product Endpoints ---


@router.get("/products", response_model=ProductListResponse)
async def list_products(
    request: Request,
    query: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    limit: int = Query(default=20),
):
    """List products, optionally searched. A positive `limit` truncates the list."""
    catalog = get_shop(request).catalog
    products = catalog.search(query, category) if (query or category) else catalog.get_all()
    if limit > 0:
        products = products[:limit]
    return ProductListResponse(
        message="Products retrieved successfully",
        products=[product_to_schema(p) for p in products],
        total=len(products),
        query=query,
        category=category,
        response_time=response_time(request),
    )


@router.get("/products/search", response_model=ProductSearchResponse)
async def search_products(
    request: Request,
    q: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    min_price: Optional[float] = Query(None, alias="minPrice", allow_inf_nan=False),
    max_price: Optional[float] = Query(None, alias="maxPrice", allow_inf_nan=False),
    min_rating: Optional[float] = Query(None, alias="minRating"),
):
    """Search with text, category, price bounds and minimum rating."""
    products = get_shop(request).catalog.search(q, category)
    products = filter_range(
        products,
        min_price=Decimal(str(min_price)) if min_price is not None else None,
        max_price=Decimal(str(max_price)) if max_price is not None else None,
        min_rating=min_rating,
    )
    return ProductSearchResponse(
        message="Search completed",
        products=[product_to_schema(p) for p in products],
        total=len(products),
        filters={
            "query": q,
            "category": category,
            "minPrice": min_price,
            "maxPrice": max_price,
            "minRating": min_rating,
        },
        response_time=response_time(request),
    )


@router.get("/products/featured", response_model=ProductListResponse)
async def featured_products(request: Request):
    """Top-rated products, behind a simulated slow query."""
    shop = get_shop(request)
    await asyncio.sleep(shop.settings.featured_latency.sample_seconds(shop.rng))
    products = shop.catalog.featured()
    return ProductListResponse(
        message="Featured products retrieved",
        products=[product_to_schema(p) for p in products],
        total=len(products),
        response_time=response_time(request),
    )


@router.get("/products/category/{category}", response_model=ProductListResponse)
async def products_by_category(request: Request, category: str):
    products = get_shop(request).catalog.by_category(category)
    return ProductListResponse(
        message=f"Products in category: {category}",
        products=[product_to_schema(p) for p in products],
        total=len(products),
        category=category,
        response_time=response_time(request),
    )


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(request: Request, product_id: str):
    product = get_shop(request).catalog.get_by_id(product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return ProductResponse(
        message=f"Product with ID {product_id}",
        product=product_to_schema(product),
        response_time=response_time(request),
    )


# --- Cart Endpoints ---


@router.post("/cart", response_model=CartAddResponse)
async def add_to_cart(request: Request, body: CartAddRequest):
    """Add a product to a user's cart, merging with an existing line."""
    if not body.user_id or not body.product_id:
        raise MissingFieldsError("User ID and Product ID are required")
    if body.quantity < 1:
        raise InvalidQuantityError(body.quantity)

    shop = get_shop(request)
    product = shop.catalog.get_by_id(body.product_id)
    if product is None:
        raise ProductNotFoundError(body.product_id)
    if product.stock < body.quantity:
        raise InsufficientStockError(product.id, product.stock)

    item = shop.cart.add(body.user_id, body.product_id, body.quantity)
    if item is None:
        raise CartUpdateError("Failed to add item to cart")

    return CartAddResponse(
        message="Item added to cart successfully",
        cart_item=CartItemSchema(**item.to_dict()),
        product=ProductBrief(id=product.id, name=product.name, price=money(product.price)),
        response_time=response_time(request),
    )


@router.get("/cart/{user_id}", response_model=CartResponse)
async def get_cart(request: Request, user_id: str):
    """A user's cart with product details and line subtotals at current prices."""
    shop = get_shop(request)
    lines: list[CartLineSchema] = []
    total = Decimal("0")
    for item in shop.cart.get_by_user(user_id):
        product = shop.catalog.get_by_id(item.product_id)
        subtotal = product.price * item.quantity if product else Decimal("0")
        total += subtotal
        lines.append(
            CartLineSchema(
                **item.to_dict(),
                product=(
                    ProductBrief(
                        id=product.id,
                        name=product.name,
                        price=money(product.price),
                        category=product.category,
                    )
                    if product
                    else None
                ),
                subtotal=money(subtotal),
            )
        )
    return CartResponse(
        message="Cart retrieved successfully",
        cart=lines,
        item_count=len(lines),
        total=money(total),
        response_time=response_time(request),
    )


@router.delete("/cart/{user_id}/clear", response_model=TimedResponse)
async def clear_cart(request: Request, user_id: str):
    get_shop(request).cart.clear(user_id)
    return TimedResponse(message="Cart cleared successfully", response_time=response_time(request))


@router.delete("/cart/{user_id}/{product_id}", response_model=TimedResponse)
async def remove_from_cart(request: Request, user_id: str, product_id: str):
    if not get_shop(request).cart.remove(user_id, product_id):
        raise CartItemNotFoundError(user_id, product_id)
    return TimedResponse(message="Item removed from cart successfully", response_time=response_time(request))


@router.put("/cart/{user_id}/{product_id}", response_model=CartUpdateResponse)
async def update_cart_item(request: Request, user_id: str, product_id: str, body: CartUpdateRequest):
    """
    Set a cart line's quantity.

    Zero or less removes the line. Otherwise the line is re-added with the new
    quantity, which is checked against stock as a whole.
    """
    if body.quantity is None:
        raise MissingFieldsError("User ID, Product ID, and quantity are required")

    cart = get_shop(request).cart
    if body.quantity <= 0:
        removed = cart.remove(user_id, product_id)
        return CartUpdateResponse(
            message="Item removed from cart" if removed else "Item not found in cart",
            response_time=response_time(request),
        )

    item = cart.update_quantity(user_id, product_id, body.quantity)
    if item is None:
        raise CartUpdateError()
    return CartUpdateResponse(
        message="Cart item updated successfully",
        cart_item=CartItemSchema(**item.to_dict()),
        response_time=response_time(request),
    )


# --- Checkout Endpoints ---


@router.post("/checkout", response_model=CheckoutResponse)
async def process_checkout(request: Request, body: CheckoutBody):
    """Authenticate, check the cart and payment method, then create the order."""
    receipt = await get_shop(request).checkout.process_checkout(
        CheckoutRequest(
            user_id=body.user_id,
            payment_method=body.payment_method,
            shipping_address=body.shipping_address,
            billing_address=body.billing_address,
            email=body.email,
            password=body.password,
        )
    )
    summary = receipt.order
    return CheckoutResponse(
        message="Order created successfully",
        order=OrderSummarySchema(
            id=summary.id,
            user_id=summary.user_id,
            total=money(summary.total),
            status=summary.status.value,
            item_count=summary.item_count,
            created_at=_isoformat(summary.created_at),
        ),
        payment_method=receipt.payment_method,
        estimated_delivery=receipt.estimated_delivery,
        processing_time=f"{receipt.processing_time_ms:.0f}ms",
        response_time=response_time(request),
    )


@router.post("/checkout/validate", response_model=ValidateResponse)
async def validate_checkout(request: Request, body: ValidateBody):
    """Report every checkout problem at once."""
    errors = get_shop(request).checkout.validate_checkout(
        user_id=body.user_id,
        payment_method=body.payment_method,
        shipping_address=body.shipping_address,
    )
    if errors:
        raise CheckoutValidationError(errors)
    return ValidateResponse(
        message="Checkout validation passed",
        valid=True,
        response_time=response_time(request),
    )


@router.post("/checkout/calculate", response_model=TotalsResponse)
async def calculate_totals(request: Request, body: CalculateBody):
    """Rough subtotal, shipping and tax estimate for a cart."""
    if not body.user_id:
        raise MissingFieldsError("User ID is required")
    totals = await get_shop(request).checkout.calculate_totals(body.user_id, body.shipping_method)
    return TotalsResponse(
        message="Totals calculated successfully",
        breakdown=TotalsBreakdown(
            subtotal=money(totals.subtotal),
            shipping=money(totals.shipping),
            tax=money(totals.tax),
            total=money(totals.total),
        ),
        shipping_method=totals.shipping_method,
        response_time=response_time(request),
    )


# --- Order Endpoints ---


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(request: Request, order_id: str):
    order = get_shop(request).orders.get_order_by_id(order_id)
    if order is None:
        raise OrderNotFoundError(order_id)
    return OrderResponse(
        message="Order retrieved successfully",
        order=order_to_schema(order),
        response_time=response_time(request),
    )


@router.get("/orders/user/{user_id}", response_model=UserOrdersResponse)
async def get_user_orders(
    request: Request,
    user_id: str,
    status: Optional[str] = Query(None),
    limit: int = Query(default=10),
):
    """A user's order history, optionally filtered by status."""
    orders = get_shop(request).checkout.user_orders(user_id, status=status, limit=limit)
    return UserOrdersResponse(
        message="Orders retrieved successfully",
        orders=[order_to_schema(o) for o in orders],
        total=len(orders),
        user_id=user_id,
        filters={"status": status, "limit": limit},
        response_time=response_time(request),
    )


# --- FastAPI App ---


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("shop_started", environment=app.state.shop.settings.environment)
    yield
    app.state.shop.shutdown()
    logger.info("shop_stopped")


def create_app(shop: Shop | None = None, settings: Settings | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        shop: Pre-built state (tests inject one with a virtual clock).
        settings: Used to build a seeded Shop when `shop` is not given;
            defaults to `Settings.from_env()`.
    """
    if shop is None:
        shop = Shop.seeded(settings or Settings.from_env())
    configure_logging(shop.settings.log_level, json=shop.settings.log_json)

    app = FastAPI(
        title="ShopFast API",
        description="Demo e-commerce REST API over in-memory data",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.shop = shop
    app.state.booted_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(shop.settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def response_timer(request: Request, call_next):
        request.state.started_at = time.perf_counter()
        response = await call_next(request)
        response.headers["X-Response-Time"] = response_time(request)
        return response

    app.add_exception_handler(ShopfastError, shopfast_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(health_router)
    app.include_router(router)
    return app


app = create_app()
