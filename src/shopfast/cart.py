"""In-memory shopping cart for shopfast."""

import structlog

from .catalog import CatalogStore
from .models import CartItem

logger = structlog.get_logger(__name__)


class CartStore:
    """Cart lines for all users, unique per (user_id, product_id).

    Stock is only checked against the product's current listed stock when a
    line is added; nothing is reserved, so carts may collectively ask for
    more than is available. Stock is taken at checkout.
    """

    def __init__(self, catalog: CatalogStore):
        self._catalog = catalog
        self._items: dict[tuple[str, str], CartItem] = {}

    def add(self, user_id: str, product_id: str, quantity: int) -> CartItem | None:
        """
        Add `quantity` units of a product to a user's cart.

        An existing line for the same product has its quantity increased
        instead of a second line being created.

        Returns:
            The new or updated CartItem, or None if the product doesn't exist,
            `quantity` is not positive or it exceeds the current stock.
        """
        product = self._catalog.get_by_id(product_id)
        if product is None or quantity <= 0 or product.stock < quantity:
            return None

        existing = self._items.get((user_id, product_id))
        if existing is not None:
            existing.quantity += quantity
            logger.info("cart_line_merged", user_id=user_id, product_id=product_id, quantity=existing.quantity)
            return existing

        item = CartItem(user_id=user_id, product_id=product_id, quantity=quantity)
        self._items[item.key] = item
        logger.info("cart_line_added", user_id=user_id, product_id=product_id, quantity=quantity)
        return item

    def get_by_user(self, user_id: str) -> list[CartItem]:
        return [item for item in self._items.values() if item.user_id == user_id]

    def remove(self, user_id: str, product_id: str) -> bool:
        removed = self._items.pop((user_id, product_id), None) is not None
        if removed:
            logger.info("cart_line_removed", user_id=user_id, product_id=product_id)
        return removed

    def clear(self, user_id: str) -> None:
        for key in [k for k in self._items if k[0] == user_id]:
            del self._items[key]

    def update_quantity(self, user_id: str, product_id: str, quantity: int) -> CartItem | None:
        """
        Set the quantity of a cart line.

        A quantity of zero or less removes the line. Otherwise the line is
        removed and re-added, so stock is validated against the new quantity
        as a whole; if that fails the line stays removed.

        Returns:
            The re-added CartItem, or None when removed or re-adding failed.
        """
        if quantity <= 0:
            self.remove(user_id, product_id)
            return None
        self.remove(user_id, product_id)
        return self.add(user_id, product_id, quantity)
