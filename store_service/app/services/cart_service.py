"""Cart service"""

import uuid
from typing import Optional

from ..core.errors import Result
from ..core.settings import get_settings
from ..core.unit_of_work import UnitOfWork
from ..models.cart import Cart, CartErrors
from ..models.value_objects import Money, ProductSnapshot
from ..schemas.cart import CartResponse
from ..utils.logging import setup_store_logging as setup_logging

logger = setup_logging("store_service.cart_service", log_level=get_settings().LOG_LEVEL)


class CartService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def _load(self, cart_id: uuid.UUID) -> Result[Cart]:
        cart = await self.uow.cart_writer.get_by_id(cart_id)
        if cart is None:
            return Result.failure(CartErrors.not_found(cart_id))
        return Result.success(cart)

    async def _save(self, cart: Cart) -> Result[CartResponse]:
        await self.uow.save_changes()
        return Result.success(CartResponse.model_validate(cart))

    async def create_cart(self, user_id: Optional[uuid.UUID] = None) -> Result[CartResponse]:
        cart = await self.uow.cart_writer.add(Cart.create(user_id).value)
        logger.info(
            "Cart created",
            extra={"cart_id": str(cart.id), "user_id": str(user_id) if user_id else None},
        )
        return await self._save(cart)

    async def get_cart(self, cart_id: uuid.UUID) -> Result[CartResponse]:
        cart = await self.uow.cart_reader.get_by_id(cart_id)
        if cart is None:
            return Result.failure(CartErrors.not_found(cart_id))
        return Result.success(cart)

    async def get_user_cart(self, user_id: uuid.UUID) -> Result[CartResponse]:
        """Most recent cart owned by the user"""
        cart = await self.uow.cart_reader.get_by_user_id(user_id)
        if cart is None:
            return Result.failure(CartErrors.not_found(user_id))
        return Result.success(cart)

    async def assign_cart_to_user(
        self, cart_id: uuid.UUID, user_id: uuid.UUID
    ) -> Result[CartResponse]:
        loaded = await self._load(cart_id)
        if loaded.is_failure:
            return loaded
        result = loaded.value.assign_to_user(user_id)
        if result.is_failure:
            return result
        return await self._save(loaded.value)

    async def add_item(
        self,
        cart_id: uuid.UUID,
        product_id: uuid.UUID,
        product: ProductSnapshot,
        unit_price: Money,
        quantity: int = 1,
        variant_id: Optional[uuid.UUID] = None,
    ) -> Result[CartResponse]:
        loaded = await self._load(cart_id)
        if loaded.is_failure:
            return loaded
        result = loaded.value.add_item(
            product_id, product, unit_price, quantity=quantity, variant_id=variant_id
        )
        if result.is_failure:
            return result
        return await self._save(loaded.value)

    async def update_item_quantity(
        self, cart_id: uuid.UUID, item_id: uuid.UUID, quantity: int
    ) -> Result[CartResponse]:
        loaded = await self._load(cart_id)
        if loaded.is_failure:
            return loaded
        result = loaded.value.update_item_quantity(item_id, quantity)
        if result.is_failure:
            return result
        return await self._save(loaded.value)

    async def remove_item(
        self, cart_id: uuid.UUID, item_id: uuid.UUID
    ) -> Result[CartResponse]:
        loaded = await self._load(cart_id)
        if loaded.is_failure:
            return loaded
        result = loaded.value.remove_item(item_id)
        if result.is_failure:
            return result
        return await self._save(loaded.value)

    async def clear_cart(self, cart_id: uuid.UUID) -> Result[CartResponse]:
        loaded = await self._load(cart_id)
        if loaded.is_failure:
            return loaded
        loaded.value.clear()
        return await self._save(loaded.value)
