"""Custom exceptions for shopfast."""

from typing import Any


class ShopfastError(Exception):
    """Base exception for all shopfast errors."""

    def context(self) -> dict[str, Any]:
        """Extra fields merged into the error response body."""
        return {}


class MissingFieldsError(ShopfastError):
    """Raised when required request fields are absent."""

    def __init__(self, message: str):
        super().__init__(message)


class ProductNotFoundError(ShopfastError):
    """Raised when a product ID doesn't exist."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__("Product not found")


class UserNotFoundError(ShopfastError):
    """Raised when a user ID doesn't exist."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__("User not found")


class CartItemNotFoundError(ShopfastError):
    """Raised when removing a line that isn't in the cart."""

    def __init__(self, user_id: str, product_id: str):
        self.user_id = user_id
        self.product_id = product_id
        super().__init__("Item not found in cart")


class OrderNotFoundError(ShopfastError):
    """Raised when an order ID doesn't exist."""

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__("Order not found")


class DuplicateEmailError(ShopfastError):
    """Raised when creating a user with an email already in use."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Email already registered: {email}")


class AuthenticationFailedError(ShopfastError):
    """Raised when credentials don't resolve to the expected user."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message)


class InsufficientStockError(ShopfastError):
    """Raised when the requested quantity exceeds listed stock."""

    def __init__(self, product_id: str, available: int):
        self.product_id = product_id
        self.available = available
        super().__init__(f"Insufficient stock. Available: {available}")

    def context(self) -> dict[str, Any]:
        return {"available": self.available}


class InvalidPaymentMethodError(ShopfastError):
    """Raised when checkout names a payment method outside the accepted set."""

    def __init__(self, method: str, valid_methods: list[str]):
        self.method = method
        self.valid_methods = valid_methods
        super().__init__("Invalid payment method")

    def context(self) -> dict[str, Any]:
        return {"validMethods": list(self.valid_methods)}


class EmptyCartError(ShopfastError):
    """Raised when checking out with nothing in the cart."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__("Cart is empty")


class InvalidQuantityError(ShopfastError):
    """Raised when a cart quantity is not a positive integer."""

    def __init__(self, quantity: int):
        self.quantity = quantity
        super().__init__(f"Quantity must be at least 1, got {quantity}")


class CartUpdateError(ShopfastError):
    """Raised when re-adding a line with a new quantity fails."""

    def __init__(self, message: str = "Failed to update cart item"):
        super().__init__(message)


class CheckoutValidationError(ShopfastError):
    """Raised by pre-checkout validation with every violation found."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Validation failed")

    def context(self) -> dict[str, Any]:
        return {"message": "Validation failed", "errors": list(self.errors)}


class OrderCreationError(ShopfastError):
    """Raised when the order engine declines to create an order."""

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__("Failed to create order")


class InvalidSettingError(ShopfastError):
    """Raised when an environment setting can't be parsed."""

    def __init__(self, name: str, value: str, reason: str):
        self.name = name
        self.value = value
        super().__init__(f"Invalid value for {name}: {value!r} ({reason})")
