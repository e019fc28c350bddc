from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..core.errors import Error
from ..events.domain_events import DomainEvent, resolve_event_type
from .base import StoreServiceBaseModel, utcnow


class OutboxStatus(str, Enum):
    PENDING = "pending"
    DISPATCHED = "dispatched"
    FAILED = "failed"


class OutboxErrors:
    @staticmethod
    def not_found(message_id: object) -> Error:
        return Error.not_found(
            "Outbox.NotFound", f"Outbox message with ID {message_id} was not found"
        )

    @staticmethod
    def not_failed(message_id: object, status: str) -> Error:
        return Error.validation(
            "Outbox.NotFailed",
            f"Outbox message {message_id} is {status}; only failed messages can be retried",
        )


class OutboxMessage(StoreServiceBaseModel):
    """A domain event waiting to be delivered to its handlers"""

    __tablename__ = "outbox_messages"
    __table_args__ = (Index("ix_outbox_messages_due", "status", "scheduled_at"),)

    # Monotonic id doubles as the dispatch order
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)  # type: ignore[assignment]

    type: Mapped[str] = mapped_column(String(255), nullable=False)
    aggregate_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=OutboxStatus.PENDING.value
    )
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    scheduled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), nullable=False, default=utcnow
    )
    locked_until: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=False), nullable=True
    )
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=False), nullable=True
    )

    @classmethod
    def create(
        cls, event: DomainEvent, scheduled_at: Optional[datetime] = None
    ) -> "OutboxMessage":
        if event is None:
            raise ValueError("event is required")

        now = utcnow()
        return cls(
            type=event.event_type(),
            aggregate_id=event.aggregate_id,
            content=event.model_dump_json(),
            status=OutboxStatus.PENDING.value,
            retry_count=0,
            scheduled_at=scheduled_at or now,
            created_at=now,
            updated_at=now,
        )

    def get_event(self) -> DomainEvent:
        event_class = resolve_event_type(self.type)
        if event_class is None:
            raise LookupError(f"Unknown event type '{self.type}'")
        return event_class.model_validate_json(self.content)

    def mark_as_processed(self) -> None:
        self.status = OutboxStatus.DISPATCHED.value
        self.processed_at = utcnow()
        self.locked_until = None
        self.error = None

    def mark_as_failed(self, error: str) -> None:
        """Record a failed attempt; the message stays pending for a retry"""
        self.error = error
        self.retry_count += 1
        self.locked_until = None

    def mark_as_dead(self, error: str) -> None:
        self.error = error
        self.status = OutboxStatus.FAILED.value
        self.locked_until = None

    def reschedule(self, delay: timedelta) -> None:
        self.scheduled_at = utcnow() + delay

    def requeue(self) -> None:
        self.status = OutboxStatus.PENDING.value
        self.retry_count = 0
        self.error = None
        self.locked_until = None
        self.scheduled_at = utcnow()

    @property
    def is_pending(self) -> bool:
        return self.status == OutboxStatus.PENDING.value
