"""Repository layer for Store Service"""

from .cart_repository import CartReadRepository, CartWriteRepository
from .category_repository import CategoryReadRepository, CategoryWriteRepository
from .order_repository import OrderReadRepository, OrderWriteRepository
from .outbox_repository import OutboxRepository
from .payment_repository import PaymentReadRepository, PaymentWriteRepository

__all__ = [
    "CategoryReadRepository",
    "CategoryWriteRepository",
    "CartReadRepository",
    "CartWriteRepository",
    "OrderReadRepository",
    "OrderWriteRepository",
    "PaymentReadRepository",
    "PaymentWriteRepository",
    "OutboxRepository",
]
