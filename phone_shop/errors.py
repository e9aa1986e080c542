from __future__ import annotations


class ShopError(Exception):
    """Base class for failures that map to a fixed HTTP status."""

    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ShopError):
    status_code = 400
    default_message = "Invalid request"


class NotFound(ShopError):
    status_code = 404
    default_message = "Not Found"


class InsufficientStock(ShopError):
    status_code = 400
    default_message = "Insufficient stock"

    def __init__(self, message: str | None = None, *, phone_id: int | None = None,
                 available: int | None = None, requested: int | None = None) -> None:
        super().__init__(message)
        self.phone_id = phone_id
        self.available = available
        self.requested = requested


class EmptyCart(ShopError):
    status_code = 400
    default_message = "Cart is empty"


class InconsistentState(ShopError):
    """A cart line points at a phone that is no longer in the catalog."""

    status_code = 500
    default_message = "Cart references a missing phone"
