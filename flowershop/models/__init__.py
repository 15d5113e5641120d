from .base import Base
from .user import User
from .address import Address
from .product import Product
from .cart_item import CartItem
from .order import (
    CASH_ON_DELIVERY,
    DeliveryMethod,
    Order,
    OrderItem,
    OrderStatus,
    PaymentStatus,
)

__all__ = [
    "Base",
    "User",
    "Address",
    "Product",
    "CartItem",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
    "DeliveryMethod",
    "CASH_ON_DELIVERY",
]
