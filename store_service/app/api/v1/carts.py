"""Cart API endpoints"""

import uuid
from typing import Any, Dict

from fastapi import APIRouter, status

from ...models.value_objects import Money, ProductSnapshot
from ...schemas.cart import (
    CartAssign,
    CartCreate,
    CartItemAdd,
    CartItemUpdate,
    CartResponse,
)
from ...services.cart_service import CartService
from ..dependencies import AuthenticatedUserDep, CartServiceDep, unwrap

router = APIRouter(prefix="/carts")


@router.post("", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
async def create_cart(
    cart_data: CartCreate,
    service: CartService = CartServiceDep,
    user: Dict[str, Any] = AuthenticatedUserDep,
):
    """Create an empty cart, anonymous unless a user id is given"""
    return unwrap(await service.create_cart(cart_data.user_id))


@router.get("/user/{user_id}", response_model=CartResponse)
async def get_user_cart(
    user_id: uuid.UUID,
    service: CartService = CartServiceDep,
    user: Dict[str, Any] = AuthenticatedUserDep,
):
    return unwrap(await service.get_user_cart(user_id))


@router.get("/{cart_id}", response_model=CartResponse)
async def get_cart(
    cart_id: uuid.UUID,
    service: CartService = CartServiceDep,
    user: Dict[str, Any] = AuthenticatedUserDep,
):
    return unwrap(await service.get_cart(cart_id))


@router.put("/{cart_id}/user", response_model=CartResponse)
async def assign_cart_to_user(
    cart_id: uuid.UUID,
    assign_data: CartAssign,
    service: CartService = CartServiceDep,
    user: Dict[str, Any] = AuthenticatedUserDep,
):
    """Attach an anonymous cart to a user, e.g. after login"""
    return unwrap(await service.assign_cart_to_user(cart_id, assign_data.user_id))


@router.post("/{cart_id}/items", response_model=CartResponse)
async def add_cart_item(
    cart_id: uuid.UUID,
    item_data: CartItemAdd,
    service: CartService = CartServiceDep,
    user: Dict[str, Any] = AuthenticatedUserDep,
):
    """Add a line; the same product and variant bumps the existing quantity"""
    unit_price = unwrap(Money.create(item_data.unit_price, item_data.currency))
    product = ProductSnapshot(**item_data.product.model_dump())
    return unwrap(
        await service.add_item(
            cart_id,
            item_data.product_id,
            product,
            unit_price,
            quantity=item_data.quantity,
            variant_id=item_data.variant_id,
        )
    )


@router.put("/{cart_id}/items/{item_id}", response_model=CartResponse)
async def update_cart_item(
    cart_id: uuid.UUID,
    item_id: uuid.UUID,
    item_data: CartItemUpdate,
    service: CartService = CartServiceDep,
    user: Dict[str, Any] = AuthenticatedUserDep,
):
    """Set the quantity of a line; zero removes it"""
    return unwrap(
        await service.update_item_quantity(cart_id, item_id, item_data.quantity)
    )


@router.delete("/{cart_id}/items/{item_id}", response_model=CartResponse)
async def remove_cart_item(
    cart_id: uuid.UUID,
    item_id: uuid.UUID,
    service: CartService = CartServiceDep,
    user: Dict[str, Any] = AuthenticatedUserDep,
):
    return unwrap(await service.remove_item(cart_id, item_id))


@router.delete("/{cart_id}/items", response_model=CartResponse)
async def clear_cart(
    cart_id: uuid.UUID,
    service: CartService = CartServiceDep,
    user: Dict[str, Any] = AuthenticatedUserDep,
):
    return unwrap(await service.clear_cart(cart_id))
