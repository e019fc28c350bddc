"""Cart repository"""

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.cart import Cart
from ..schemas.cart import CartResponse
from .base import AggregateRepository


class CartWriteRepository(AggregateRepository[Cart]):
    model = Cart


class CartReadRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, cart_id: uuid.UUID) -> Optional[CartResponse]:
        cart = await self.db.get(Cart, cart_id)
        return CartResponse.model_validate(cart) if cart else None

    async def get_by_user_id(self, user_id: uuid.UUID) -> Optional[CartResponse]:
        """Most recent cart owned by the user"""
        query = (
            select(Cart)
            .where(Cart.user_id == user_id)
            .order_by(Cart.created_at.desc())
            .limit(1)
        )
        result = await self.db.execute(query)
        cart = result.scalar_one_or_none()
        return CartResponse.model_validate(cart) if cart else None
