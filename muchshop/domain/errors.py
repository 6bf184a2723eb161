# muchshop/domain/errors.py


class ShopError(Exception):
    """Base for domain errors; the message is safe to show to the user."""


class Unauthenticated(ShopError, PermissionError):
    def __init__(self, message: str = "You must be logged in to place an order."):
        super().__init__(message)


class InsufficientStock(ShopError, ValueError):
    def __init__(self, product_id: str, name: str, available: int):
        self.product_id = product_id
        self.name = name
        self.available = available
        super().__init__(f"{name} is out of stock. Only {available} available.")


class StockConflict(ShopError):
    """Product stock changed between read and conditional update."""

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Stock of product {product_id} changed concurrently")


class RemoteUnavailable(ShopError):
    def __init__(self, operation: str, cause: Exception | None = None, message: str | None = None):
        self.operation = operation
        self.cause = cause
        super().__init__(message or f"Remote store unavailable during {operation}")


class InvalidTransition(ShopError, ValueError):
    def __init__(self, current: str, new: str):
        self.current = current
        self.new = new
        super().__init__(f"Cannot change order status from {current} to {new}")


class OrderNotFound(ShopError, LookupError):
    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__("Order not found")
