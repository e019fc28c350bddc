"""Payment API endpoints"""

import uuid
from typing import Any, Dict

from fastapi import APIRouter, status

from ...schemas.payment import (
    PaymentCreate,
    PaymentFailure,
    PaymentResponse,
    PaymentTransaction,
)
from ...services.payment_service import PaymentService
from ..dependencies import (
    AdminUserDep,
    AuthenticatedUserDep,
    PaymentServiceDep,
    unwrap,
)

router = APIRouter(prefix="/payments")


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def process_payment(
    payment_data: PaymentCreate,
    service: PaymentService = PaymentServiceDep,
    user: Dict[str, Any] = AuthenticatedUserDep,
):
    """Open a payment for the order total"""
    return unwrap(
        await service.process_payment(
            payment_data.order_id,
            method_type=payment_data.method_type,
            provider=payment_data.provider,
            external_reference=payment_data.external_reference,
        )
    )


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: uuid.UUID,
    service: PaymentService = PaymentServiceDep,
    user: Dict[str, Any] = AuthenticatedUserDep,
):
    return unwrap(await service.get_payment(payment_id))


# Provider callbacks arrive through the gateway as admin calls
@router.put("/{payment_id}/complete", response_model=PaymentResponse)
async def complete_payment(
    payment_id: uuid.UUID,
    transaction: PaymentTransaction,
    service: PaymentService = PaymentServiceDep,
    admin: Dict[str, Any] = AdminUserDep,
):
    return unwrap(await service.complete_payment(payment_id, transaction.transaction_id))


@router.put("/{payment_id}/fail", response_model=PaymentResponse)
async def fail_payment(
    payment_id: uuid.UUID,
    failure: PaymentFailure,
    service: PaymentService = PaymentServiceDep,
    admin: Dict[str, Any] = AdminUserDep,
):
    return unwrap(await service.fail_payment(payment_id, failure.error_message))


@router.put("/{payment_id}/refund", response_model=PaymentResponse)
async def refund_payment(
    payment_id: uuid.UUID,
    transaction: PaymentTransaction,
    service: PaymentService = PaymentServiceDep,
    admin: Dict[str, Any] = AdminUserDep,
):
    """Refund a succeeded payment (admin only)"""
    return unwrap(await service.refund_payment(payment_id, transaction.transaction_id))
