"""Payment service"""

import uuid
from typing import Callable, List, Optional

from ..core.errors import Result
from ..core.settings import get_settings
from ..core.unit_of_work import UnitOfWork
from ..models.order import OrderErrors
from ..models.payment import Payment, PaymentErrors
from ..schemas.payment import PaymentResponse
from ..utils.logging import setup_store_logging as setup_logging

logger = setup_logging("store_service.payment_service", log_level=get_settings().LOG_LEVEL)


class PaymentService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def process_payment(
        self,
        order_id: uuid.UUID,
        method_type: str = "card",
        provider: str = "stripe",
        external_reference: Optional[str] = None,
    ) -> Result[PaymentResponse]:
        """Open a payment for the order total and move it to processing"""
        order = await self.uow.order_writer.get_by_id(order_id)
        if order is None:
            return Result.failure(OrderErrors.not_found(order_id))

        result = Payment.create(
            order,
            order.total,
            method_type=method_type,
            provider=provider,
            external_reference=external_reference,
        )
        if result.is_failure:
            return result

        payment = await self.uow.payment_writer.add(result.value)
        payment.mark_as_processing()
        await self.uow.save_changes()

        logger.info(
            "Payment processing started",
            extra={
                "payment_id": str(payment.id),
                "order_id": str(order_id),
                "amount": str(payment.amount),
                "currency": payment.currency,
                "provider": provider,
            },
        )
        return Result.success(PaymentResponse.model_validate(payment))

    async def get_payment(self, payment_id: uuid.UUID) -> Result[PaymentResponse]:
        payment = await self.uow.payment_reader.get_by_id(payment_id)
        if payment is None:
            return Result.failure(PaymentErrors.not_found(payment_id))
        return Result.success(payment)

    async def get_order_payments(self, order_id: uuid.UUID) -> Result[List[PaymentResponse]]:
        return Result.success(await self.uow.payment_reader.get_by_order_id(order_id))

    async def complete_payment(
        self, payment_id: uuid.UUID, transaction_id: str
    ) -> Result[PaymentResponse]:
        return await self._transition(
            payment_id, lambda p: p.mark_as_succeeded(transaction_id)
        )

    async def fail_payment(
        self, payment_id: uuid.UUID, error_message: Optional[str] = None
    ) -> Result[PaymentResponse]:
        return await self._transition(
            payment_id, lambda p: p.mark_as_failed(error_message)
        )

    async def refund_payment(
        self, payment_id: uuid.UUID, transaction_id: str
    ) -> Result[PaymentResponse]:
        return await self._transition(
            payment_id, lambda p: p.mark_as_refunded(transaction_id)
        )

    async def _transition(
        self, payment_id: uuid.UUID, change: Callable[[Payment], Result[None]]
    ) -> Result[PaymentResponse]:
        payment = await self.uow.payment_writer.get_by_id(payment_id)
        if payment is None:
            return Result.failure(PaymentErrors.not_found(payment_id))

        old_status = payment.status
        result = change(payment)
        if result.is_failure:
            return result

        await self.uow.save_changes()
        logger.info(
            "Payment status updated",
            extra={
                "payment_id": str(payment_id),
                "old_status": old_status,
                "new_status": payment.status,
            },
        )
        return Result.success(PaymentResponse.model_validate(payment))
