"""Errors raised by the application services.

Each carries the HTTP status the API layer answers with, so routes never
translate them by hand.
"""

from typing import Any, Optional


class WarehouseError(Exception):
    status_code = 400

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details if details is not None else message


class InvalidRequest(WarehouseError):
    status_code = 400


class NotFound(WarehouseError):
    status_code = 404


class ProductNotFound(NotFound):
    def __init__(self, product_id: str):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class InventoryNotFound(NotFound):
    """No inventory row for a product, or no row with the given id."""

    def __init__(self, product_id: Optional[str] = None, item_id: Optional[str] = None):
        if product_id is not None:
            message = f"Product {product_id} has no inventory"
        else:
            message = f"Inventory item {item_id} not found"
        super().__init__(message)
        self.product_id = product_id
        self.item_id = item_id


class OrderNotFound(NotFound):
    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class InsufficientStock(WarehouseError):
    status_code = 400

    def __init__(self, product_id: str, available: int, requested: int):
        self.product_id = product_id
        self.available = available
        self.requested = requested
        self.shortfall = requested - available
        super().__init__(
            f"Insufficient stock for product {product_id}",
            details={
                "productId": product_id,
                "available": available,
                "requested": requested,
                "shortfall": self.shortfall,
            },
        )


class OrderAlreadyShipped(WarehouseError):
    status_code = 409

    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} has already been shipped")
        self.order_id = order_id


class StorageError(WarehouseError):
    status_code = 500

    def __init__(self, message: str = "Storage failure", details: Optional[Any] = None):
        super().__init__(message, details=details)
