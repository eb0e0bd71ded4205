"""Checkout orchestration for shopfast."""

import asyncio
import random
from collections import defaultdict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

import structlog

from .accounts import AccountStore
from .cart import CartStore
from .config import Settings
from .errors import (
    AuthenticationFailedError,
    EmptyCartError,
    InvalidPaymentMethodError,
    MissingFieldsError,
    OrderCreationError,
)
from .models import Order, OrderStatus
from .orders import OrderEngine

logger = structlog.get_logger(__name__)

PAYMENT_METHODS = ("credit_card", "debit_card", "paypal", "pix")
SHIPPING_RATES = {
    "standard": Decimal("9.99"),
    "express": Decimal("19.99"),
    "overnight": Decimal("39.99"),
}
DEFAULT_SHIPPING_METHOD = "standard"
TAX_RATE = Decimal("0.08")
# Rough per-unit price used by the totals estimate instead of catalog prices.
ESTIMATE_UNIT_PRICE = Decimal("100")
DEFAULT_PASSWORD = "defaultpass"
ESTIMATED_DELIVERY = "3-5 business days"
CENTS = Decimal("0.01")

Sleeper = Callable[[float], Awaitable[Any]]


def _present(value: Any) -> bool:
    """Presence check for request fields. Empty containers count as present."""
    return value is not None and value != ""


@dataclass(frozen=True)
class CheckoutRequest:
    """Checkout input. Every field is optional so presence can be checked here."""

    user_id: str | None = None
    payment_method: str | None = None
    shipping_address: Any = None
    billing_address: Any = None
    email: str | None = None
    password: str | None = None


@dataclass(frozen=True)
class OrderSummary:
    """The order as it stood when checkout returned."""

    id: str
    user_id: str
    total: Decimal
    status: OrderStatus
    item_count: int
    created_at: datetime

    @classmethod
    def from_order(cls, order: Order) -> "OrderSummary":
        return cls(
            id=order.id,
            user_id=order.user_id,
            total=order.total,
            status=order.status,
            item_count=len(order.items),
            created_at=order.created_at,
        )


@dataclass(frozen=True)
class CheckoutReceipt:
    order: OrderSummary
    payment_method: str
    estimated_delivery: str
    processing_time_ms: float  # display only


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    shipping: Decimal
    tax: Decimal
    total: Decimal
    shipping_method: str


class CheckoutService:
    """Coordinates authentication, cart checks, payment latency and order creation.

    Checkouts for the same user are serialised with a per-user lock held from
    the cart check until the order exists, so two concurrent requests can't
    both turn one cart into an order.
    """

    def __init__(
        self,
        accounts: AccountStore,
        cart: CartStore,
        orders: OrderEngine,
        settings: Settings | None = None,
        rng: random.Random | None = None,
        sleep: Sleeper = asyncio.sleep,
    ):
        self._accounts = accounts
        self._cart = cart
        self._orders = orders
        self._settings = settings or Settings()
        self._rng = rng or random.Random()
        self._sleep = sleep
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def process_checkout(self, request: CheckoutRequest) -> CheckoutReceipt:
        """
        Run a checkout end to end.

        Raises:
            MissingFieldsError: userId, paymentMethod, shippingAddress or email absent.
            AuthenticationFailedError: Credentials don't authenticate as `user_id`.
            EmptyCartError: Nothing in the cart.
            InvalidPaymentMethodError: Method outside PAYMENT_METHODS.
            OrderCreationError: The order engine returned nothing.
        """
        required = (request.user_id, request.payment_method, request.shipping_address, request.email)
        if not all(_present(value) for value in required):
            raise MissingFieldsError(
                "Missing required fields: userId, paymentMethod, shippingAddress, email"
            )
        user_id = request.user_id
        log = logger.bind(user_id=user_id)

        user = self._accounts.authenticate(request.email, request.password or DEFAULT_PASSWORD)
        if user is None or user.id != user_id:
            log.info("checkout_rejected", reason="authentication")
            raise AuthenticationFailedError()

        async with self._locks[user_id]:
            if not self._cart.get_by_user(user_id):
                log.info("checkout_rejected", reason="empty_cart")
                raise EmptyCartError(user_id)

            if request.payment_method not in PAYMENT_METHODS:
                log.info("checkout_rejected", reason="payment_method", method=request.payment_method)
                raise InvalidPaymentMethodError(request.payment_method, list(PAYMENT_METHODS))

            await self._sleep(self._settings.payment_latency.sample_seconds(self._rng))

            order = self._orders.create_order(user_id)
            if order is None:
                log.error("checkout_failed", reason="order_creation")
                raise OrderCreationError(user_id)

        log.info("checkout_completed", order_id=order.id, method=request.payment_method)
        return CheckoutReceipt(
            order=OrderSummary.from_order(order),
            payment_method=request.payment_method,
            estimated_delivery=ESTIMATED_DELIVERY,
            processing_time_ms=self._settings.processing_display.sample_ms(self._rng),
        )

    def validate_checkout(
        self,
        user_id: str | None = None,
        payment_method: str | None = None,
        shipping_address: Any = None,
    ) -> list[str]:
        """Collect every checkout violation without failing fast. Empty means valid."""
        errors: list[str] = []

        if not _present(user_id):
            errors.append("User ID is required")
        if not _present(payment_method):
            errors.append("Payment method is required")
        if not _present(shipping_address):
            errors.append("Shipping address is required")

        if _present(user_id) and not self._cart.get_by_user(user_id):
            errors.append("Cart is empty")

        if _present(payment_method) and payment_method not in PAYMENT_METHODS:
            errors.append("Invalid payment method")

        return errors

    async def calculate_totals(self, user_id: str, shipping_method: str | None = None) -> Totals:
        """
        Estimate subtotal, shipping and tax for a user's cart.

        This is a rough estimate at a flat unit price, not the catalog prices
        checkout charges. Unknown shipping methods cost the standard rate.
        """
        method = shipping_method or DEFAULT_SHIPPING_METHOD
        await self._sleep(self._settings.totals_latency.sample_seconds(self._rng))

        subtotal = sum(
            (ESTIMATE_UNIT_PRICE * item.quantity for item in self._cart.get_by_user(user_id)),
            Decimal("0"),
        )
        shipping = SHIPPING_RATES.get(method, SHIPPING_RATES[DEFAULT_SHIPPING_METHOD])
        tax = subtotal * TAX_RATE
        total = subtotal + shipping + tax

        return Totals(
            subtotal=subtotal.quantize(CENTS),
            shipping=shipping.quantize(CENTS),
            tax=tax.quantize(CENTS),
            total=total.quantize(CENTS),
            shipping_method=method,
        )

    def user_orders(self, user_id: str, status: str | None = None, limit: int = 10) -> list[Order]:
        """A user's orders, optionally filtered by status; `limit` <= 0 means no limit."""
        orders = self._orders.get_orders_by_user_id(user_id)
        if status:
            orders = [o for o in orders if o.status.value == status]
        if limit > 0:
            orders = orders[:limit]
        return orders
