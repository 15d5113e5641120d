from typing import Optional


class ShopError(Exception):
    """Base error; ``http_status`` and ``message`` are what the client sees."""

    http_status = 500
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ShopError):
    http_status = 400
    default_message = "Invalid request"


class EmptyOrder(ValidationError):
    default_message = "Order must contain at least one item"


class InvalidTransition(ValidationError):
    default_message = "Invalid status transition"


class StockInsufficient(ShopError):
    http_status = 400
    default_message = "Insufficient stock"

    def __init__(self, product_id=None, message: Optional[str] = None):
        self.product_id = product_id
        super().__init__(message)


class AuthError(ShopError):
    http_status = 401
    default_message = "Token is not valid"


class AuthorizationError(ShopError):
    http_status = 403
    default_message = "Access denied"


class NotFound(ShopError):
    http_status = 404
    default_message = "Not found"


class PersistenceFailure(ShopError):
    http_status = 500
