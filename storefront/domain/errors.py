"""Order fulfillment error taxonomy.

Domain functions raise these inside the unit of work; the session scope rolls
the transaction back and the API layer maps ``status_code``/``code`` onto the
HTTP response.
"""

from __future__ import annotations


class FulfillmentError(Exception):
    status_code = 400
    code = "BAD_REQUEST"


class ProductUnavailable(FulfillmentError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, product_id: int):
        super().__init__(f"product {product_id} is not available")
        self.product_id = product_id


class InsufficientStock(FulfillmentError):
    status_code = 400
    code = "OUT_OF_STOCK"

    def __init__(self, product_id: int, requested: int, available: int | None = None):
        detail = f"insufficient stock for product {product_id}: requested={requested}"
        if available is not None:
            detail += f", available={available}"
        super().__init__(detail)
        self.product_id = product_id
        self.requested = requested
        self.available = available


class OrderNotFound(FulfillmentError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, order_id: int):
        super().__init__(f"order {order_id} not found")
        self.order_id = order_id


class InvalidTransition(FulfillmentError):
    status_code = 409
    code = "INVALID_TRANSITION"

    def __init__(self, order_id: int, current: str, target: str, reason: str | None = None):
        detail = f"order {order_id} cannot move from {current} to {target}"
        if reason:
            detail += f": {reason}"
        super().__init__(detail)
        self.order_id = order_id
        self.current = current
        self.target = target


class OrderStateConflict(FulfillmentError):
    status_code = 409
    code = "CONFLICT"

    def __init__(self, order_id: int, expected: str):
        super().__init__(f"order {order_id} changed status concurrently (expected {expected})")
        self.order_id = order_id
        self.expected = expected
