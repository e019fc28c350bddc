"""Outbox message repository"""

from datetime import timedelta
from typing import List, Optional

from sqlalchemy import exists, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from ..models.base import utcnow
from ..models.outbox import OutboxMessage, OutboxStatus


class OutboxRepository:
    """Repository for outbox message database operations"""

    def __init__(self, db: AsyncSession):
        self.db = db

    def add(self, message: OutboxMessage) -> OutboxMessage:
        self.db.add(message)
        return message

    async def get_by_id(self, message_id: int) -> Optional[OutboxMessage]:
        return await self.db.get(OutboxMessage, message_id)

    async def claim_due(
        self, batch_size: int, visibility_timeout: float
    ) -> List[OutboxMessage]:
        """
        Lock up to ``batch_size`` due pending messages for this worker.

        A claimed message is invisible to other pollers until ``locked_until``
        passes, so a crashed worker's batch is picked up again later. A message
        is held back while an older pending message of the same aggregate is
        waiting on backoff or locked by another poller. The caller commits the
        claim.
        """
        now = utcnow()
        older = aliased(OutboxMessage)
        blocked_by_older = exists().where(
            older.aggregate_id == OutboxMessage.aggregate_id,
            older.id < OutboxMessage.id,
            older.status == OutboxStatus.PENDING.value,
            or_(older.scheduled_at > now, older.locked_until > now),
        )
        query = (
            select(OutboxMessage)
            .where(
                OutboxMessage.status == OutboxStatus.PENDING.value,
                OutboxMessage.scheduled_at <= now,
                or_(
                    OutboxMessage.locked_until.is_(None),
                    OutboxMessage.locked_until <= now,
                ),
                ~blocked_by_older,
            )
            .order_by(OutboxMessage.id)
            .limit(batch_size)
            .with_for_update(skip_locked=True)
        )
        result = await self.db.execute(query)
        messages = list(result.scalars().all())

        lock_until = now + timedelta(seconds=visibility_timeout)
        for message in messages:
            message.locked_until = lock_until
        return messages

    async def get_failed(self, limit: int = 100) -> List[OutboxMessage]:
        query = (
            select(OutboxMessage)
            .where(OutboxMessage.status == OutboxStatus.FAILED.value)
            .order_by(OutboxMessage.id)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())
