import uuid
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, ForeignKey, Integer, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.errors import Error, Result
from ..events.domain_events import (
    OrderCreatedEvent,
    OrderItemAddedEvent,
    OrderStatusChangedEvent,
)
from .base import AggregateRoot, StoreServiceBaseModel
from .cart import Cart
from .value_objects import Money, ProductSnapshot


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


ALLOWED_ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


class OrderErrors:
    EmptyCart = Error.validation("Order.EmptyCart", "Cannot create an order from an empty cart")
    InvalidQuantity = Error.validation(
        "Order.InvalidQuantity", "Quantity must be greater than zero"
    )
    CurrencyMismatch = Error.validation(
        "Order.CurrencyMismatch", "All order items must use the order currency"
    )

    @staticmethod
    def not_found(order_id: object) -> Error:
        return Error.not_found("Order.NotFound", f"Order with ID {order_id} was not found")

    @staticmethod
    def invalid_status_transition(current: str, requested: str) -> Error:
        return Error.validation(
            "Order.InvalidStatusTransition",
            f"Cannot change order status from {current} to {requested}",
        )

    @staticmethod
    def not_editable(status: str) -> Error:
        return Error.validation(
            "Order.NotEditable", f"Cannot modify items of an order in status {status}"
        )


class OrderItem(StoreServiceBaseModel):
    """Order line; ``product_data`` is frozen at the time the line was added"""

    __tablename__ = "order_items"

    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    variant_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    product_data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)

    order: Mapped["Order"] = relationship(back_populates="items")

    @property
    def snapshot(self) -> ProductSnapshot:
        return ProductSnapshot.from_dict(self.product_data)

    @property
    def total_price(self) -> Money:
        return Money(self.unit_price, self.currency).multiply(self.quantity)


class Order(AggregateRoot):
    __tablename__ = "orders"

    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True, index=True)
    cart_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=OrderStatus.PENDING.value
    )
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")
    subtotal: Mapped[Decimal] = mapped_column(
        Numeric(12, 2), nullable=False, default=Decimal("0")
    )

    items: Mapped[List[OrderItem]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItem.created_at",
    )

    @classmethod
    def create(
        cls,
        user_id: Optional[uuid.UUID] = None,
        currency: str = "USD",
        cart_id: Optional[uuid.UUID] = None,
    ) -> Result["Order"]:
        order = cls(
            id=uuid.uuid4(),
            user_id=user_id,
            cart_id=cart_id,
            status=OrderStatus.PENDING.value,
            currency=currency,
            subtotal=Decimal("0"),
            items=[],
        )
        order.add_domain_event(
            OrderCreatedEvent(order_id=order.id, user_id=user_id, cart_id=cart_id)
        )
        return Result.success(order)

    @classmethod
    def create_from_cart(cls, cart: Cart) -> Result["Order"]:
        if not cart.items:
            return Result.failure(OrderErrors.EmptyCart)

        result = cls.create(
            user_id=cart.user_id, currency=cart.items[0].currency, cart_id=cart.id
        )
        order = result.value
        for cart_item in cart.items:
            added = order.add_item(
                product_id=cart_item.product_id,
                product=cart_item.snapshot,
                unit_price=cart_item.price,
                quantity=cart_item.quantity,
                variant_id=cart_item.variant_id,
            )
            if added.is_failure:
                return added
        return Result.success(order)

    def add_item(
        self,
        product_id: uuid.UUID,
        product: ProductSnapshot,
        unit_price: Money,
        quantity: int = 1,
        variant_id: Optional[uuid.UUID] = None,
    ) -> Result[OrderItem]:
        if self.status != OrderStatus.PENDING.value:
            return Result.failure(OrderErrors.not_editable(self.status))
        if quantity <= 0:
            return Result.failure(OrderErrors.InvalidQuantity)
        if unit_price.currency != self.currency:
            return Result.failure(OrderErrors.CurrencyMismatch)

        item = OrderItem(
            id=uuid.uuid4(),
            product_id=product_id,
            variant_id=variant_id,
            quantity=quantity,
            unit_price=unit_price.amount,
            currency=unit_price.currency,
            product_data=product.to_dict(),
        )
        self.items.append(item)
        self.subtotal = self.total.amount
        self.add_domain_event(
            OrderItemAddedEvent(order_id=self.id, item_id=item.id, user_id=self.user_id)
        )
        return Result.success(item)

    def update_status(self, new_status: OrderStatus) -> Result[None]:
        current = OrderStatus(self.status)
        if current == new_status:
            return Result.success()
        if new_status not in ALLOWED_ORDER_TRANSITIONS[current]:
            return Result.failure(
                OrderErrors.invalid_status_transition(current.value, new_status.value)
            )

        self.status = new_status.value
        self.add_domain_event(
            OrderStatusChangedEvent(
                order_id=self.id,
                user_id=self.user_id,
                old_status=current.value,
                new_status=new_status.value,
            )
        )
        return Result.success()

    @property
    def total(self) -> Money:
        total = Money.zero(self.currency)
        for item in self.items:
            total = total.add(item.total_price)
        return total
