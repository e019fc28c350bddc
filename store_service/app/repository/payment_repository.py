"""Payment repository"""

import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.payment import Payment
from ..schemas.payment import PaymentResponse
from .base import AggregateRepository


class PaymentWriteRepository(AggregateRepository[Payment]):
    model = Payment


class PaymentReadRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, payment_id: uuid.UUID) -> Optional[PaymentResponse]:
        payment = await self.db.get(Payment, payment_id)
        return PaymentResponse.model_validate(payment) if payment else None

    async def get_by_order_id(self, order_id: uuid.UUID) -> List[PaymentResponse]:
        query = (
            select(Payment)
            .where(Payment.order_id == order_id)
            .order_by(Payment.created_at)
        )
        result = await self.db.execute(query)
        return [PaymentResponse.model_validate(p) for p in result.scalars().all()]
