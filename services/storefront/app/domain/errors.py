"""Storefront domain exceptions.

Routes translate these into HTTP responses; nothing below the API layer
knows about status codes.
"""


class StorefrontError(Exception):
    """Base class for every error raised by the storefront domain."""

    message = "Storefront error"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class ProductNotFoundError(StorefrontError):
    message = "Product not found"


class OutOfStockError(StorefrontError):
    message = "Product is out of stock"


class CartLineNotFoundError(StorefrontError):
    message = "Product is not in the cart"


class SessionNotFoundError(StorefrontError):
    message = "Storefront session not found or expired"


class CheckoutStateError(StorefrontError):
    message = "Action not allowed in the current checkout step"


class EmptyCartError(StorefrontError):
    message = "Cannot place an order with an empty cart"


class PaymentMethodUnavailableError(StorefrontError):
    message = "Payment method is not available"


class OrderNotFoundError(StorefrontError):
    message = "Order not found"


class InvalidOrderStatusError(StorefrontError):
    message = "Invalid order status"


class OrderPlacementError(StorefrontError):
    message = "Could not place order, please try again"
