"""Order service"""

import uuid
from typing import List, Optional

from ..core.errors import Result
from ..core.settings import get_settings
from ..core.unit_of_work import UnitOfWork
from ..models.cart import CartErrors
from ..models.order import Order, OrderErrors, OrderStatus
from ..schemas.order import OrderResponse
from ..utils.logging import setup_store_logging as setup_logging

logger = setup_logging("store_service.order_service", log_level=get_settings().LOG_LEVEL)


class OrderService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def create_order_from_cart(
        self, cart_id: uuid.UUID, correlation_id: Optional[str] = None
    ) -> Result[OrderResponse]:
        """Snapshot the cart lines into a new order and empty the cart"""
        cart = await self.uow.cart_writer.get_by_id(cart_id)
        if cart is None:
            return Result.failure(CartErrors.not_found(cart_id))

        result = Order.create_from_cart(cart)
        if result.is_failure:
            return result

        order = await self.uow.order_writer.add(result.value)
        cart.clear()
        await self.uow.save_changes()

        logger.info(
            "Order created from cart",
            extra={
                "order_id": str(order.id),
                "cart_id": str(cart_id),
                "items": len(order.items),
                "subtotal": str(order.subtotal),
                "correlation_id": correlation_id,
            },
        )
        return Result.success(OrderResponse.model_validate(order))

    async def get_order(self, order_id: uuid.UUID) -> Result[OrderResponse]:
        order = await self.uow.order_reader.get_by_id(order_id)
        if order is None:
            return Result.failure(OrderErrors.not_found(order_id))
        return Result.success(order)

    async def get_user_orders(self, user_id: uuid.UUID) -> Result[List[OrderResponse]]:
        return Result.success(await self.uow.order_reader.get_by_user_id(user_id))

    async def update_order_status(
        self,
        order_id: uuid.UUID,
        new_status: OrderStatus,
        correlation_id: Optional[str] = None,
    ) -> Result[OrderResponse]:
        order = await self.uow.order_writer.get_by_id(order_id)
        if order is None:
            return Result.failure(OrderErrors.not_found(order_id))

        old_status = order.status
        result = order.update_status(new_status)
        if result.is_failure:
            return result

        await self.uow.save_changes()
        logger.info(
            "Order status updated",
            extra={
                "order_id": str(order_id),
                "old_status": old_status,
                "new_status": order.status,
                "correlation_id": correlation_id,
            },
        )
        return Result.success(OrderResponse.model_validate(order))
