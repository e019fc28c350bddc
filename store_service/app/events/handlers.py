"""
Handler registry used by the outbox dispatcher, plus the handler that forwards
every domain event to Kafka.
"""

from typing import Dict, Iterable, List, Optional

from ..core.settings import get_settings
from ..utils.logging import setup_store_logging as setup_logging
from .base import BaseEvent, EventHandler, EventPublisher
from .domain_events import DomainEvent

logger = setup_logging("store_service.events.handlers", log_level=get_settings().LOG_LEVEL)

ALL_EVENTS = "*"


class EventHandlerRegistry:
    """Maps domain event type names to the handlers interested in them"""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = {}

    def register(self, event_type: str, handler: EventHandler) -> None:
        """Register ``handler`` for ``event_type``; ``"*"`` matches every event"""
        handlers = self._handlers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)
            logger.debug(
                "Registered event handler",
                extra={"event_type": event_type, "handler": handler.name},
            )

    def register_many(self, event_types: Iterable[str], handler: EventHandler) -> None:
        for event_type in event_types:
            self.register(event_type, handler)

    def get_handlers(self, event_type: str) -> List[EventHandler]:
        return list(self._handlers.get(event_type, [])) + list(
            self._handlers.get(ALL_EVENTS, [])
        )

    @property
    def event_types(self) -> List[str]:
        return [name for name in self._handlers if name != ALL_EVENTS]


class IntegrationEventHandler(EventHandler):
    """
    Forwards domain events to the store events topic.

    Publishing errors propagate, which keeps the outbox message pending so it
    is retried later.
    """

    def __init__(
        self,
        publisher: EventPublisher,
        topic: Optional[str] = None,
        source_service: str = "store-service",
    ):
        self.publisher = publisher
        self.topic = topic
        self.source_service = source_service

    async def handle(self, event: DomainEvent) -> None:
        integration_event = BaseEvent.from_domain_event(event, self.source_service)
        await self.publisher.publish(integration_event, topic=self.topic)
