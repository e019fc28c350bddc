"""
Unit of work for the Store Service.

Groups repository access over one ``AsyncSession`` and commits aggregate
changes together with the outbox messages for the domain events they raised.
"""

from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from ..events.domain_events import DomainEvent
from ..models.base import AggregateRoot
from ..repository.cart_repository import CartReadRepository, CartWriteRepository
from ..repository.category_repository import (
    CategoryReadRepository,
    CategoryWriteRepository,
)
from ..repository.order_repository import OrderReadRepository, OrderWriteRepository
from ..repository.payment_repository import (
    PaymentReadRepository,
    PaymentWriteRepository,
)
from ..services.outbox_service import OutboxService
from ..utils.logging import setup_store_logging as setup_logging
from .errors import ConflictError
from .settings import get_settings

logger = setup_logging("store_service.unit_of_work", log_level=get_settings().LOG_LEVEL)


class UnitOfWork:
    """Transaction boundary; use as ``async with UnitOfWork(session) as uow``"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self._tracked: List[AggregateRoot] = []

        self.category_reader = CategoryReadRepository(session)
        self.category_writer = CategoryWriteRepository(session, self._tracked)
        self.cart_reader = CartReadRepository(session)
        self.cart_writer = CartWriteRepository(session, self._tracked)
        self.order_reader = OrderReadRepository(session)
        self.order_writer = OrderWriteRepository(session, self._tracked)
        self.payment_reader = PaymentReadRepository(session)
        self.payment_writer = PaymentWriteRepository(session, self._tracked)
        self.outbox = OutboxService(session)

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            await self.rollback()

    def _collect_events(self) -> List[DomainEvent]:
        events: List[DomainEvent] = []
        for aggregate in self._tracked:
            events.extend(aggregate.collect_domain_events())
        return events

    async def save_changes(self) -> int:
        """
        Persist tracked aggregates and their staged events in one commit.

        Returns the number of outbox messages written. Raises ``ConflictError``
        when another writer changed an aggregate first or a unique constraint
        is violated; the transaction is rolled back in both cases.
        """
        events = self._collect_events()
        self.outbox.enqueue_all(events)

        try:
            await self.session.commit()
        except StaleDataError as e:
            await self.rollback()
            logger.warning(
                "Concurrent modification detected",
                extra={"operation": "save_changes", "error": str(e)},
            )
            raise ConflictError(
                "The resource was modified by another request. Reload and retry.",
                "Store.ConcurrencyConflict",
            )
        except IntegrityError as e:
            await self.rollback()
            logger.warning(
                "Unique constraint violated on save",
                extra={"operation": "save_changes", "error": str(e.orig)},
            )
            raise ConflictError(
                "The change conflicts with existing data.", "Store.IntegrityConflict"
            )

        if events:
            logger.info(
                "Unit of work committed",
                extra={
                    "operation": "save_changes",
                    "aggregates": len(self._tracked),
                    "events": len(events),
                },
            )
        return len(events)

    async def rollback(self) -> None:
        await self.session.rollback()
        for aggregate in self._tracked:
            aggregate.collect_domain_events()
