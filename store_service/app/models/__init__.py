from .base import AggregateRoot, StoreServiceBase, StoreServiceBaseModel
from .cart import Cart, CartItem
from .category import Category
from .order import Order, OrderItem, OrderStatus
from .outbox import OutboxMessage, OutboxStatus
from .payment import Payment, PaymentStatus

__all__ = [
    "AggregateRoot",
    "StoreServiceBase",
    "StoreServiceBaseModel",
    "Cart",
    "CartItem",
    "Category",
    "Order",
    "OrderItem",
    "OrderStatus",
    "OutboxMessage",
    "OutboxStatus",
    "Payment",
    "PaymentStatus",
]
