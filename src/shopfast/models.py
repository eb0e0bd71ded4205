"""Data models for shopfast."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any


def _utc_now() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(timezone.utc)


def _isoformat(moment: datetime) -> str:
    """Format a UTC datetime as ISO 8601 with a trailing Z."""
    return moment.isoformat().replace("+00:00", "Z")


def money(value: Decimal) -> float:
    """Round to cents and convert for JSON output."""
    return float(value.quantize(Decimal("0.01")))


class OrderStatus(str, Enum):
    """Lifecycle of an order. Only PENDING -> CONFIRMED is ever produced."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    SHIPPED = "shipped"
    DELIVERED = "delivered"


@dataclass
class User:
    """A shopper account."""

    id: str
    name: str
    email: str  # login key
    age: int
    is_authenticated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "age": self.age,
            "isAuthenticated": self.is_authenticated,
        }


@dataclass
class Product:
    """A catalog entry. Stock is the only field mutated at runtime."""

    id: str
    name: str
    category: str
    price: Decimal
    stock: int
    description: str
    rating: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "price": money(self.price),
            "stock": self.stock,
            "description": self.description,
            "rating": self.rating,
        }


@dataclass
class CartItem:
    """One (user, product) line in a cart."""

    user_id: str
    product_id: str
    quantity: int

    @property
    def key(self) -> tuple[str, str]:
        return (self.user_id, self.product_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "userId": self.user_id,
            "productId": self.product_id,
            "quantity": self.quantity,
        }


@dataclass
class Order:
    """An order created by checkout.

    `items` is a snapshot of the cart at creation time and `total` is frozen
    then; only `status` changes afterwards.
    """

    id: str
    user_id: str
    items: list[CartItem]
    total: Decimal
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "items": [item.to_dict() for item in self.items],
            "total": money(self.total),
            "status": self.status.value,
            "createdAt": _isoformat(self.created_at),
        }
