"""
Store Service Event Management
Wires the outbox dispatcher to its handlers: cache invalidation always, Kafka
forwarding when event publishing is enabled.
"""

from typing import Optional

from ..events.base.kafka_client import KafkaEventPublisher
from ..events.handlers import ALL_EVENTS, EventHandlerRegistry, IntegrationEventHandler
from ..events.outbox_dispatcher import OutboxDispatcher
from ..services.cache import CacheService
from ..services.cache.invalidation import register_cache_invalidation_handlers
from ..utils.logging import setup_store_logging as setup_logging
from .database import database_manager
from .settings import get_settings

# Setup structured logging for event management
logger = setup_logging("store_service.events", log_level=get_settings().LOG_LEVEL)

# Global instances
_kafka_publisher: Optional[KafkaEventPublisher] = None
_outbox_dispatcher: Optional[OutboxDispatcher] = None


def build_handler_registry(
    cache: CacheService, publisher: Optional[KafkaEventPublisher] = None
) -> EventHandlerRegistry:
    settings = get_settings()
    registry = EventHandlerRegistry()
    register_cache_invalidation_handlers(registry, cache)
    if publisher is not None:
        registry.register(
            ALL_EVENTS,
            IntegrationEventHandler(
                publisher,
                topic=settings.KAFKA_TOPIC_STORE_EVENTS,
                source_service=settings.SERVICE_NAME,
            ),
        )
    return registry


async def init_events(cache: CacheService) -> Optional[OutboxDispatcher]:
    """Initialize event publishing and start the outbox dispatcher"""
    global _kafka_publisher, _outbox_dispatcher

    settings = get_settings()

    if settings.ENABLE_EVENT_PUBLISHING:
        logger.info(
            "Initializing event publishing infrastructure",
            extra={
                "operation": "init_events",
                "kafka_servers": settings.KAFKA_BOOTSTRAP_SERVERS,
                "service_name": settings.SERVICE_NAME,
                "event_type": "event_infrastructure_init",
            },
        )
        _kafka_publisher = KafkaEventPublisher(
            bootstrap_servers=settings.KAFKA_BOOTSTRAP_SERVERS,
            client_id=f"{settings.SERVICE_NAME}-producer",
            default_topic=settings.KAFKA_TOPIC_STORE_EVENTS,
            enable_graceful_degradation=settings.KAFKA_GRACEFUL_DEGRADATION,
        )
        await _kafka_publisher.start(timeout=30.0)

    registry = build_handler_registry(cache, _kafka_publisher)

    if not settings.OUTBOX_DISPATCHER_ENABLED:
        logger.info(
            "Outbox dispatcher disabled",
            extra={"operation": "init_events", "event_type": "outbox_disabled"},
        )
        return None

    _outbox_dispatcher = OutboxDispatcher.from_settings(
        database_manager.async_session_maker, registry, settings
    )
    await _outbox_dispatcher.start()
    return _outbox_dispatcher


async def close_events() -> None:
    """Stop the dispatcher, then close the Kafka producer"""
    global _kafka_publisher, _outbox_dispatcher

    try:
        if _outbox_dispatcher:
            await _outbox_dispatcher.stop()
        if _kafka_publisher:
            await _kafka_publisher.stop()
            logger.info(
                "Event publishing infrastructure closed successfully",
                extra={
                    "operation": "close_events_complete",
                    "event_type": "event_infrastructure_shutdown_complete",
                },
            )
    except Exception as e:
        logger.error(
            "Error closing event infrastructure",
            extra={
                "operation": "close_events_error",
                "error": str(e),
                "event_type": "event_infrastructure_shutdown_error",
            },
        )
    finally:
        _kafka_publisher = None
        _outbox_dispatcher = None
