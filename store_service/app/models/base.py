import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List

from sqlalchemy import DateTime, Integer, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column

from ..events.domain_events import DomainEvent


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class StoreServiceBase(DeclarativeBase):
    """Base class for all Store Service database models."""

    pass


class StoreServiceBaseModel(StoreServiceBase):
    """Base model with common fields for Store Service."""

    __abstract__ = True
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False), default=utcnow, onupdate=utcnow, nullable=False
    )


class AggregateRoot(StoreServiceBaseModel):
    """
    Consistency boundary that stages domain events while it changes.

    ``version`` is SQLAlchemy's version counter: an UPDATE whose row version no
    longer matches raises ``StaleDataError`` at flush, which the unit of work
    turns into a conflict.
    """

    __abstract__ = True

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    @declared_attr.directive
    def __mapper_args__(cls) -> Dict[str, Any]:
        return {"version_id_col": cls.__table__.c.version}

    @property
    def domain_events(self) -> List[DomainEvent]:
        # Instances loaded from the database skip __init__
        events = self.__dict__.get("_domain_events")
        if events is None:
            events = []
            self.__dict__["_domain_events"] = events
        return events

    def touch(self) -> None:
        """Mark the row dirty so the next flush bumps and checks ``version``"""
        self.updated_at = utcnow()

    def add_domain_event(self, event: DomainEvent) -> None:
        self.domain_events.append(event)

    def collect_domain_events(self) -> List[DomainEvent]:
        events = list(self.domain_events)
        self.domain_events.clear()
        return events
