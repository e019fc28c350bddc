"""Order API endpoints"""

import uuid
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, status

from ...schemas.order import OrderCreate, OrderResponse, OrderStatusUpdate
from ...schemas.payment import PaymentResponse
from ...services.order_service import OrderService
from ...services.payment_service import PaymentService
from ..dependencies import (
    AdminUserDep,
    AuthenticatedUserDep,
    CorrelationIdDep,
    OrderServiceDep,
    PaymentServiceDep,
    unwrap,
)

router = APIRouter(prefix="/orders")


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    order_data: OrderCreate,
    correlation_id: Optional[str] = CorrelationIdDep,
    service: OrderService = OrderServiceDep,
    user: Dict[str, Any] = AuthenticatedUserDep,
):
    """Turn the cart into a pending order and empty the cart"""
    return unwrap(
        await service.create_order_from_cart(
            order_data.cart_id, correlation_id=correlation_id
        )
    )


@router.get("/user/{user_id}", response_model=List[OrderResponse])
async def get_user_orders(
    user_id: uuid.UUID,
    service: OrderService = OrderServiceDep,
    user: Dict[str, Any] = AuthenticatedUserDep,
):
    return unwrap(await service.get_user_orders(user_id))


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: uuid.UUID,
    service: OrderService = OrderServiceDep,
    user: Dict[str, Any] = AuthenticatedUserDep,
):
    return unwrap(await service.get_order(order_id))


@router.get("/{order_id}/payments", response_model=List[PaymentResponse])
async def get_order_payments(
    order_id: uuid.UUID,
    service: PaymentService = PaymentServiceDep,
    user: Dict[str, Any] = AuthenticatedUserDep,
):
    return unwrap(await service.get_order_payments(order_id))


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: uuid.UUID,
    status_data: OrderStatusUpdate,
    correlation_id: Optional[str] = CorrelationIdDep,
    service: OrderService = OrderServiceDep,
    admin: Dict[str, Any] = AdminUserDep,
):
    """Move an order along its status flow (admin only)"""
    return unwrap(
        await service.update_order_status(
            order_id, status_data.status, correlation_id=correlation_id
        )
    )
