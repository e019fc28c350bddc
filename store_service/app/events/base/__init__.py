"""
Store Service event handling base classes and interfaces.
"""

import re
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..domain_events import DomainEvent

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def integration_event_type(domain_event_type: str) -> str:
    """``CategoryHierarchyChangedEvent`` -> ``category.hierarchy_changed``"""
    name = domain_event_type
    if name.endswith("Event"):
        name = name[: -len("Event")]
    words = _CAMEL_BOUNDARY.sub("_", name).lower().split("_")
    if len(words) == 1:
        return words[0]
    return f"{words[0]}.{'_'.join(words[1:])}"


class BaseEvent(BaseModel):
    """Envelope for events leaving the service"""

    event_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    event_type: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: str = "1.0"
    source_service: str = "store-service"
    correlation_id: Optional[str] = None
    aggregate_id: Optional[str] = None
    data: Dict[str, Any] = {}

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    @classmethod
    def from_domain_event(
        cls, event: DomainEvent, source_service: str = "store-service"
    ) -> "BaseEvent":
        return cls(
            event_id=event.event_id.hex,
            event_type=integration_event_type(event.event_type()),
            timestamp=event.occurred_at,
            source_service=source_service,
            aggregate_id=event.aggregate_id,
            data=event.model_dump(mode="json"),
        )


class EventHandler(ABC):
    """Abstract base class for domain event handlers run by the outbox"""

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def handle(self, event: DomainEvent) -> None:
        """Handle the event; raising leaves the outbox message for a retry"""
        pass


class EventPublisher(ABC):
    """Abstract base class for event publishers"""

    @abstractmethod
    async def publish(self, event: BaseEvent, topic: Optional[str] = None) -> None:
        """Publish an event"""
        pass
