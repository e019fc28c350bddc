"""Stages domain events as outbox messages on the current session"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.errors import Result
from ..core.settings import get_settings
from ..events.domain_events import DomainEvent
from ..models.outbox import OutboxErrors, OutboxMessage, OutboxStatus
from ..repository.outbox_repository import OutboxRepository
from ..utils.logging import setup_store_logging as setup_logging

logger = setup_logging("store_service.outbox", log_level=get_settings().LOG_LEVEL)


class OutboxService:
    def __init__(self, db: AsyncSession):
        self.repository = OutboxRepository(db)

    def enqueue(
        self, event: DomainEvent, scheduled_at: Optional[datetime] = None
    ) -> OutboxMessage:
        """Nothing is written until the session commits"""
        message = self.repository.add(OutboxMessage.create(event, scheduled_at))
        logger.debug(
            "Domain event staged in outbox",
            extra={
                "event_type": message.type,
                "event_id": str(event.event_id),
                "aggregate_id": message.aggregate_id,
            },
        )
        return message

    def enqueue_all(self, events: List[DomainEvent]) -> List[OutboxMessage]:
        return [self.enqueue(event) for event in events]

    async def get_failed_messages(self, limit: int = 100) -> List[OutboxMessage]:
        return await self.repository.get_failed(limit)

    async def requeue(self, message_id: int) -> Result[OutboxMessage]:
        """Put a dead message back in the queue with a fresh retry budget"""
        message = await self.repository.get_by_id(message_id)
        if message is None:
            return Result.failure(OutboxErrors.not_found(message_id))
        if message.status != OutboxStatus.FAILED.value:
            return Result.failure(OutboxErrors.not_failed(message_id, message.status))

        message.requeue()
        logger.info(
            "Outbox message requeued",
            extra={"outbox_id": message_id, "event_type": message.type},
        )
        return Result.success(message)
