import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from ..models.order import OrderStatus


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    variant_id: Optional[uuid.UUID] = None
    quantity: int
    unit_price: Decimal
    currency: str
    product_data: Dict[str, Any]


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    cart_id: Optional[uuid.UUID] = None
    status: str
    currency: str
    subtotal: Decimal
    items: List[OrderItemResponse] = []
    created_at: datetime
    updated_at: datetime


class OrderCreate(BaseModel):
    cart_id: uuid.UUID


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
