"""Order creation and confirmation for shopfast."""

import copy
from decimal import Decimal

import structlog

from .cart import CartStore
from .catalog import CatalogStore
from .models import Order, OrderStatus
from .scheduler import Scheduler

logger = structlog.get_logger(__name__)

DEFAULT_CONFIRMATION_DELAY = 1.0  # seconds


class OrderEngine:
    """Turns carts into orders and confirms them after a fixed delay.

    Orders are kept in an append-only list plus an index by ID. An order
    starts PENDING and is flipped to CONFIRMED in place by a scheduled task
    keyed by its ID; no other transition happens here.
    """

    def __init__(
        self,
        catalog: CatalogStore,
        cart: CartStore,
        scheduler: Scheduler,
        confirmation_delay: float = DEFAULT_CONFIRMATION_DELAY,
    ):
        self._catalog = catalog
        self._cart = cart
        self._scheduler = scheduler
        self.confirmation_delay = confirmation_delay
        self._orders: list[Order] = []
        self._by_id: dict[str, Order] = {}

    def create_order(self, user_id: str) -> Order | None:
        """
        Create an order from the user's current cart.

        Prices every line at the current catalog price, takes the quantities
        out of stock, snapshots the cart, clears it and schedules the
        confirmation. A failed stock decrement does not stop the order.

        Returns:
            The new PENDING order, or None if the cart is empty.
        """
        items = self._cart.get_by_user(user_id)
        if not items:
            return None

        total = Decimal("0")
        for item in items:
            product = self._catalog.get_by_id(item.product_id)
            if product is None:
                continue
            total += product.price * item.quantity
            if not self._catalog.decrement_stock(item.product_id, item.quantity):
                logger.warning(
                    "stock_oversold",
                    user_id=user_id,
                    product_id=item.product_id,
                    quantity=item.quantity,
                    stock=product.stock,
                )

        order = Order(
            id=str(len(self._orders) + 1),
            user_id=user_id,
            items=copy.deepcopy(items),
            total=total,
            status=OrderStatus.PENDING,
        )
        self._orders.append(order)
        self._by_id[order.id] = order
        self._cart.clear(user_id)

        self._scheduler.schedule(order.id, self.confirmation_delay, lambda: self._confirm(order))
        logger.info("order_created", order_id=order.id, user_id=user_id, total=str(total), lines=len(items))
        return order

    def _confirm(self, order: Order) -> None:
        order.status = OrderStatus.CONFIRMED
        logger.info("order_confirmed", order_id=order.id)

    def get_order_by_id(self, order_id: str) -> Order | None:
        return self._by_id.get(order_id)

    def get_orders_by_user_id(self, user_id: str) -> list[Order]:
        return [o for o in self._orders if o.user_id == user_id]

    def shutdown(self) -> int:
        """Cancel all pending confirmations. Returns how many were dropped."""
        cancelled = self._scheduler.cancel_all()
        if cancelled:
            logger.info("confirmations_cancelled", count=cancelled)
        return cancelled
