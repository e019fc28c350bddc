import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CartItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: uuid.UUID
    variant_id: Optional[uuid.UUID] = None
    quantity: int
    unit_price: Decimal
    currency: str
    product_data: Dict[str, Any]


class CartResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    items: List[CartItemResponse] = []
    created_at: datetime
    updated_at: datetime


class ProductSnapshotData(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    sku: Optional[str] = None
    slug: Optional[str] = None
    variant_sku: Optional[str] = None
    variant_attributes: Dict[str, Any] = {}


class CartCreate(BaseModel):
    user_id: Optional[uuid.UUID] = None


class CartAssign(BaseModel):
    user_id: uuid.UUID


class CartItemAdd(BaseModel):
    product_id: uuid.UUID
    variant_id: Optional[uuid.UUID] = None
    product: ProductSnapshotData
    unit_price: Decimal
    currency: str = Field("USD", max_length=3)
    quantity: int = 1


class CartItemUpdate(BaseModel):
    quantity: int
