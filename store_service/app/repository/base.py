"""Shared plumbing for aggregate write repositories"""

from typing import Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import AggregateRoot

A = TypeVar("A", bound=AggregateRoot)


class AggregateRepository(Generic[A]):
    """
    Loads aggregates through the session and registers them with the unit of
    work so their domain events are collected on save.
    """

    model: Type[A]

    def __init__(self, db: AsyncSession, tracker: Optional[List[AggregateRoot]] = None):
        self.db = db
        self._tracker = tracker if tracker is not None else []

    def _track(self, aggregate: Optional[A]) -> Optional[A]:
        if aggregate is not None and aggregate not in self._tracker:
            self._tracker.append(aggregate)
        return aggregate

    def _track_all(self, aggregates: Sequence[A]) -> Sequence[A]:
        for aggregate in aggregates:
            self._track(aggregate)
        return aggregates

    async def get_by_id(self, aggregate_id) -> Optional[A]:
        return self._track(await self.db.get(self.model, aggregate_id))

    async def add(self, aggregate: A) -> A:
        self.db.add(aggregate)
        self._track(aggregate)
        return aggregate
