"""In-memory product catalog for shopfast."""

from collections.abc import Iterable
from decimal import Decimal

import structlog

from .models import Product

logger = structlog.get_logger(__name__)


class CatalogStore:
    """Read-mostly product catalog indexed by product ID.

    Listing operations return products in insertion order. The only mutation
    is `decrement_stock`.
    """

    def __init__(self, products: Iterable[Product] = ()):
        self._products: dict[str, Product] = {}
        for product in products:
            self._products[product.id] = product

    def __len__(self) -> int:
        return len(self._products)

    def get_by_id(self, product_id: str) -> Product | None:
        return self._products.get(product_id)

    def get_all(self) -> list[Product]:
        return list(self._products.values())

    def search(self, query: str | None = None, category: str | None = None) -> list[Product]:
        """
        Filter products by free text and/or category.

        Args:
            query: Case-insensitive substring matched against name or description.
            category: Exact category match.

        Returns:
            Matching products; both filters are ANDed and a missing filter
            passes everything through.
        """
        products = self.get_all()

        if query:
            needle = query.lower()
            products = [
                p for p in products
                if needle in p.name.lower() or needle in p.description.lower()
            ]

        if category:
            products = [p for p in products if p.category == category]

        return products

    def by_category(self, category: str) -> list[Product]:
        return [p for p in self._products.values() if p.category == category]

    def featured(self, min_rating: float = 4.5, limit: int = 6) -> list[Product]:
        """Top-rated products, first `limit` in catalog order."""
        return [p for p in self._products.values() if p.rating >= min_rating][:limit]

    def decrement_stock(self, product_id: str, quantity: int) -> bool:
        """
        Take `quantity` units out of stock.

        Returns:
            False without mutating anything if the product is unknown or has
            fewer than `quantity` units; True otherwise.
        """
        product = self._products.get(product_id)
        if product is None or product.stock < quantity:
            return False
        product.stock -= quantity
        logger.debug("stock_decremented", product_id=product_id, quantity=quantity, stock=product.stock)
        return True


def filter_range(
    products: list[Product],
    min_price: Decimal | None = None,
    max_price: Decimal | None = None,
    min_rating: float | None = None,
) -> list[Product]:
    """Apply the inclusive price and rating bounds of the advanced search."""
    if min_price is not None:
        products = [p for p in products if p.price >= min_price]
    if max_price is not None:
        products = [p for p in products if p.price <= max_price]
    if min_rating is not None:
        products = [p for p in products if p.rating >= min_rating]
    return products
