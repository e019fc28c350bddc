import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from ..core.errors import Error, Result
from ..events.domain_events import (
    PaymentCreatedEvent,
    PaymentFailedEvent,
    PaymentRefundedEvent,
    PaymentStatusChangedEvent,
    PaymentSucceededEvent,
)
from .base import AggregateRoot, utcnow
from .order import Order
from .value_objects import Money


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentErrors:
    NegativeAmount = Error.validation(
        "Payment.NegativeAmount", "Payment amount cannot be negative"
    )
    TokenRequired = Error.validation(
        "Payment.TokenRequired", "A transaction id is required"
    )
    OrderRequired = Error.validation("Payment.OrderRequired", "An order is required")

    @staticmethod
    def not_found(payment_id: object) -> Error:
        return Error.not_found(
            "Payment.NotFound", f"Payment with ID {payment_id} was not found"
        )

    @staticmethod
    def invalid_status(operation: str, status: str) -> Error:
        return Error.validation(
            "Payment.InvalidStatus", f"Cannot {operation} a payment that is {status}"
        )


class Payment(AggregateRoot):
    """
    Payment for an order.

    Status only moves forward: pending -> processing -> succeeded/failed,
    succeeded -> refunded. Repeating a transition the payment already made is
    a no-op that keeps the original transaction id or error message.
    """

    __tablename__ = "payments"

    order_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(Uuid, nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    method_type: Mapped[str] = mapped_column(String(32), nullable=False)
    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(
        String(32), nullable=False, default=PaymentStatus.PENDING.value
    )
    external_reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    transaction_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=False), nullable=True
    )

    @classmethod
    def create(
        cls,
        order: Optional[Order],
        amount: Optional[Money],
        method_type: str = "card",
        provider: str = "stripe",
        external_reference: Optional[str] = None,
    ) -> Result["Payment"]:
        if order is None:
            return Result.failure(PaymentErrors.OrderRequired)
        if amount is None or amount.amount < 0:
            return Result.failure(PaymentErrors.NegativeAmount)

        payment = cls(
            id=uuid.uuid4(),
            order_id=order.id,
            user_id=order.user_id,
            amount=amount.amount,
            currency=amount.currency,
            method_type=method_type,
            provider=provider,
            status=PaymentStatus.PENDING.value,
            external_reference=external_reference,
        )
        payment.add_domain_event(
            PaymentCreatedEvent(payment_id=payment.id, order_id=payment.order_id)
        )
        return Result.success(payment)

    def mark_as_processing(self) -> Result[None]:
        if self.status == PaymentStatus.PROCESSING.value:
            return Result.success()
        if self.status != PaymentStatus.PENDING.value:
            return Result.failure(PaymentErrors.invalid_status("process", self.status))

        self._change_status(PaymentStatus.PROCESSING)
        return Result.success()

    def mark_as_succeeded(self, transaction_id: Optional[str]) -> Result[None]:
        if self.status == PaymentStatus.SUCCEEDED.value:
            return Result.success()
        if not transaction_id or not transaction_id.strip():
            return Result.failure(PaymentErrors.TokenRequired)
        if self.status not in (
            PaymentStatus.PENDING.value,
            PaymentStatus.PROCESSING.value,
        ):
            return Result.failure(PaymentErrors.invalid_status("complete", self.status))

        self.transaction_id = transaction_id
        self.processed_at = utcnow()
        self._change_status(PaymentStatus.SUCCEEDED)
        self.add_domain_event(
            PaymentSucceededEvent(
                payment_id=self.id, order_id=self.order_id, transaction_id=transaction_id
            )
        )
        return Result.success()

    def mark_as_failed(self, error_message: Optional[str] = None) -> Result[None]:
        if self.status == PaymentStatus.FAILED.value:
            return Result.success()
        if self.status not in (
            PaymentStatus.PENDING.value,
            PaymentStatus.PROCESSING.value,
        ):
            return Result.failure(PaymentErrors.invalid_status("fail", self.status))

        if error_message:
            self.error_message = error_message
        self._change_status(PaymentStatus.FAILED)
        self.add_domain_event(
            PaymentFailedEvent(
                payment_id=self.id, order_id=self.order_id, error_message=error_message
            )
        )
        return Result.success()

    def mark_as_refunded(self, transaction_id: Optional[str]) -> Result[None]:
        if self.status == PaymentStatus.REFUNDED.value:
            return Result.success()
        if self.status != PaymentStatus.SUCCEEDED.value:
            return Result.failure(PaymentErrors.invalid_status("refund", self.status))
        if not transaction_id or not transaction_id.strip():
            return Result.failure(PaymentErrors.TokenRequired)

        self.transaction_id = transaction_id
        self._change_status(PaymentStatus.REFUNDED)
        self.add_domain_event(
            PaymentRefundedEvent(
                payment_id=self.id, order_id=self.order_id, transaction_id=transaction_id
            )
        )
        return Result.success()

    def _change_status(self, new_status: PaymentStatus) -> None:
        old_status = self.status
        self.status = new_status.value
        self.add_domain_event(
            PaymentStatusChangedEvent(
                payment_id=self.id,
                order_id=self.order_id,
                old_status=old_status,
                new_status=new_status.value,
            )
        )
