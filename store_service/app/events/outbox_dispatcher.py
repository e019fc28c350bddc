"""
Background delivery of outbox messages.

The dispatcher polls due messages, runs every registered handler for each one
and records the outcome on the message. Delivery is at-least-once: a message
whose handlers did not all succeed is retried with exponential backoff until
``max_retries`` attempts have failed, then it is marked ``failed`` for an
operator to inspect and requeue.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.settings import StoreSettings, get_settings
from ..models.outbox import OutboxMessage
from ..repository.outbox_repository import OutboxRepository
from ..utils.logging import setup_store_logging as setup_logging
from .handlers import EventHandlerRegistry

logger = setup_logging("store_service.outbox_dispatcher", log_level=get_settings().LOG_LEVEL)

MAX_RETRY_DELAY_SECONDS = 3600.0


class DeliveryOutcome(str, Enum):
    DISPATCHED = "dispatched"
    RETRY = "retry"
    DEAD = "dead"
    DEFERRED = "deferred"


@dataclass
class DispatchStats:
    claimed: int = 0
    dispatched: int = 0
    retried: int = 0
    dead: int = 0
    deferred: int = 0

    def record(self, outcome: DeliveryOutcome) -> None:
        if outcome == DeliveryOutcome.DISPATCHED:
            self.dispatched += 1
        elif outcome == DeliveryOutcome.RETRY:
            self.retried += 1
        elif outcome == DeliveryOutcome.DEAD:
            self.dead += 1
        else:
            self.deferred += 1


class OutboxDispatcher:
    """Polls the outbox and delivers messages to their handlers"""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        registry: EventHandlerRegistry,
        batch_size: int = 50,
        poll_interval: float = 2.0,
        max_retries: int = 5,
        retry_base_delay: float = 5.0,
        visibility_timeout: float = 60.0,
        handler_timeout: float = 30.0,
    ):
        self.session_factory = session_factory
        self.registry = registry
        self.batch_size = batch_size
        self.poll_interval = poll_interval
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.visibility_timeout = visibility_timeout
        self.handler_timeout = handler_timeout

        self._task: Optional[asyncio.Task] = None
        self._stopping = asyncio.Event()

    @classmethod
    def from_settings(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        registry: EventHandlerRegistry,
        settings: Optional[StoreSettings] = None,
    ) -> "OutboxDispatcher":
        settings = settings or get_settings()
        return cls(
            session_factory,
            registry,
            batch_size=settings.OUTBOX_BATCH_SIZE,
            poll_interval=settings.OUTBOX_POLL_INTERVAL,
            max_retries=settings.OUTBOX_MAX_RETRIES,
            retry_base_delay=settings.OUTBOX_RETRY_BASE_DELAY,
            visibility_timeout=settings.OUTBOX_VISIBILITY_TIMEOUT,
            handler_timeout=settings.OUTBOX_HANDLER_TIMEOUT,
        )

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.is_running:
            return

        self._stopping.clear()
        self._task = asyncio.create_task(self._run(), name="outbox-dispatcher")
        logger.info(
            "Outbox dispatcher started",
            extra={
                "batch_size": self.batch_size,
                "poll_interval": self.poll_interval,
                "max_retries": self.max_retries,
            },
        )

    async def stop(self, timeout: float = 10.0) -> None:
        if self._task is None:
            return

        self._stopping.set()
        try:
            await asyncio.wait_for(self._task, timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Outbox dispatcher did not stop in time, cancelling")
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        finally:
            self._task = None
        logger.info("Outbox dispatcher stopped")

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                stats = await self.process_pending()
            except Exception as e:
                logger.error(
                    "Outbox dispatch cycle failed",
                    extra={"error": str(e), "error_type": type(e).__name__},
                    exc_info=True,
                )
                stats = DispatchStats()

            # A full batch usually means more work is waiting
            if stats.claimed >= self.batch_size:
                continue

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass

    async def process_pending(self) -> DispatchStats:
        """Claim one batch of due messages and deliver them in creation order"""
        stats = DispatchStats()

        async with self.session_factory() as session:
            repository = OutboxRepository(session)
            messages = await repository.claim_due(
                self.batch_size, self.visibility_timeout
            )
            if not messages:
                return stats
            await session.commit()
            stats.claimed = len(messages)

            # aggregate id -> time the failed message is next due
            blocked: Dict[str, datetime] = {}
            for message in messages:
                if message.aggregate_id is not None and message.aggregate_id in blocked:
                    self._defer(message, blocked[message.aggregate_id])
                    outcome = DeliveryOutcome.DEFERRED
                else:
                    outcome = await self._deliver(message)
                    if outcome == DeliveryOutcome.RETRY and message.aggregate_id:
                        blocked[message.aggregate_id] = message.scheduled_at

                stats.record(outcome)
                await session.commit()

        if stats.retried or stats.dead:
            logger.warning(
                "Outbox batch completed with failures",
                extra={
                    "claimed": stats.claimed,
                    "dispatched": stats.dispatched,
                    "retried": stats.retried,
                    "dead": stats.dead,
                    "deferred": stats.deferred,
                },
            )
        else:
            logger.debug(
                "Outbox batch completed",
                extra={"claimed": stats.claimed, "dispatched": stats.dispatched},
            )
        return stats

    async def _deliver(self, message: OutboxMessage) -> DeliveryOutcome:
        try:
            event = message.get_event()
        except (LookupError, ValueError) as e:
            message.mark_as_dead(f"Cannot read event payload: {e}")
            logger.error(
                "Outbox message has an unreadable event",
                extra={
                    "outbox_id": message.id,
                    "event_type": message.type,
                    "error": str(e),
                },
            )
            return DeliveryOutcome.DEAD

        errors: List[str] = []
        for handler in self.registry.get_handlers(message.type):
            try:
                await asyncio.wait_for(handler.handle(event), timeout=self.handler_timeout)
            except asyncio.TimeoutError:
                errors.append(f"{handler.name}: timed out after {self.handler_timeout}s")
            except Exception as e:
                errors.append(f"{handler.name}: {type(e).__name__}: {e}")

        if not errors:
            message.mark_as_processed()
            return DeliveryOutcome.DISPATCHED

        error = "; ".join(errors)
        message.mark_as_failed(error)
        if message.retry_count >= self.max_retries:
            message.mark_as_dead(error)
            logger.error(
                "Outbox message exhausted its retries",
                extra={
                    "outbox_id": message.id,
                    "event_type": message.type,
                    "aggregate_id": message.aggregate_id,
                    "retry_count": message.retry_count,
                    "error": error,
                },
            )
            return DeliveryOutcome.DEAD

        delay = self.retry_delay(message.retry_count)
        message.reschedule(delay)
        logger.warning(
            "Outbox message delivery failed, will retry",
            extra={
                "outbox_id": message.id,
                "event_type": message.type,
                "aggregate_id": message.aggregate_id,
                "retry_count": message.retry_count,
                "retry_in_seconds": delay.total_seconds(),
                "error": error,
            },
        )
        return DeliveryOutcome.RETRY

    def retry_delay(self, retry_count: int) -> timedelta:
        """Exponential backoff: base, 2 * base, 4 * base, ... capped at an hour"""
        seconds = self.retry_base_delay * (2 ** max(retry_count - 1, 0))
        return timedelta(seconds=min(seconds, MAX_RETRY_DELAY_SECONDS))

    @staticmethod
    def _defer(message: OutboxMessage, not_before: datetime) -> None:
        # Keeps later events of an aggregate behind the one that failed
        message.locked_until = None
        if message.scheduled_at < not_before:
            message.scheduled_at = not_before
