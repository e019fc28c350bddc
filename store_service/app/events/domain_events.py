"""
Store Service Domain Events
===========================

Events raised by aggregates while they change. They are staged on the
aggregate, written to the outbox in the same transaction as the state change
and dispatched to handlers afterwards.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

DOMAIN_EVENT_TYPES: Dict[str, Type["DomainEvent"]] = {}


class DomainEvent(BaseModel):
    """Base class for all domain events"""

    model_config = ConfigDict(frozen=True)

    # Name of the field holding the id of the aggregate that raised the event
    aggregate_field: ClassVar[str] = ""

    event_id: uuid.UUID = Field(default_factory=uuid.uuid4)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        DOMAIN_EVENT_TYPES[cls.__name__] = cls

    @classmethod
    def event_type(cls) -> str:
        return cls.__name__

    @property
    def aggregate_id(self) -> Optional[str]:
        value = getattr(self, self.aggregate_field, None)
        return str(value) if value is not None else None


def resolve_event_type(name: str) -> Optional[Type[DomainEvent]]:
    """Look up an event class by the name stored in the outbox"""
    return DOMAIN_EVENT_TYPES.get(name)


# ==============================================
# CATALOG EVENTS
# ==============================================


class CategoryEvent(DomainEvent):
    aggregate_field: ClassVar[str] = "category_id"

    category_id: uuid.UUID


class CategoryCreatedEvent(CategoryEvent):
    parent_id: Optional[uuid.UUID] = None


class CategoryUpdatedEvent(CategoryEvent):
    parent_id: Optional[uuid.UUID] = None


class CategoryStatusChangedEvent(CategoryEvent):
    is_active: bool
    parent_id: Optional[uuid.UUID] = None


class CategoryHierarchyChangedEvent(CategoryEvent):
    old_parent_id: Optional[uuid.UUID] = None
    new_parent_id: Optional[uuid.UUID] = None


# ==============================================
# SALES EVENTS
# ==============================================


class CartEvent(DomainEvent):
    aggregate_field: ClassVar[str] = "cart_id"

    cart_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None


class CartCreatedEvent(CartEvent):
    pass


class CartAssignedToUserEvent(CartEvent):
    pass


class CartItemAddedEvent(CartEvent):
    item_id: uuid.UUID


class CartItemUpdatedEvent(CartEvent):
    item_id: uuid.UUID


class CartItemRemovedEvent(CartEvent):
    item_id: uuid.UUID


class CartClearedEvent(CartEvent):
    pass


class OrderEvent(DomainEvent):
    aggregate_field: ClassVar[str] = "order_id"

    order_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None


class OrderCreatedEvent(OrderEvent):
    cart_id: Optional[uuid.UUID] = None


class OrderItemAddedEvent(OrderEvent):
    item_id: uuid.UUID


class OrderStatusChangedEvent(OrderEvent):
    old_status: str
    new_status: str


# ==============================================
# PAYMENT EVENTS
# ==============================================


class PaymentEvent(DomainEvent):
    aggregate_field: ClassVar[str] = "payment_id"

    payment_id: uuid.UUID
    order_id: uuid.UUID


class PaymentCreatedEvent(PaymentEvent):
    pass


class PaymentStatusChangedEvent(PaymentEvent):
    old_status: str
    new_status: str


class PaymentSucceededEvent(PaymentEvent):
    transaction_id: str


class PaymentFailedEvent(PaymentEvent):
    error_message: Optional[str] = None


class PaymentRefundedEvent(PaymentEvent):
    transaction_id: str
