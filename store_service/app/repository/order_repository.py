"""Order repository"""

import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.order import Order
from ..schemas.order import OrderResponse
from .base import AggregateRepository


class OrderWriteRepository(AggregateRepository[Order]):
    model = Order


class OrderReadRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, order_id: uuid.UUID) -> Optional[OrderResponse]:
        order = await self.db.get(Order, order_id)
        return OrderResponse.model_validate(order) if order else None

    async def get_by_user_id(self, user_id: uuid.UUID) -> List[OrderResponse]:
        query = (
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc())
        )
        result = await self.db.execute(query)
        return [OrderResponse.model_validate(o) for o in result.scalars().all()]
