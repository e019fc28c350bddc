import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    amount: Decimal
    currency: str
    method_type: str
    provider: str
    status: str
    external_reference: Optional[str] = None
    transaction_id: Optional[str] = None
    error_message: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime


class PaymentCreate(BaseModel):
    order_id: uuid.UUID
    method_type: str = Field("card", max_length=50)
    provider: str = Field("stripe", max_length=50)
    external_reference: Optional[str] = None


class PaymentTransaction(BaseModel):
    transaction_id: str = Field(..., min_length=1)


class PaymentFailure(BaseModel):
    error_message: Optional[str] = None
