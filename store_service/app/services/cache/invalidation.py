"""
Cache invalidation handlers for Store Service

Which cache entries an event evicts is declared once in
``CACHE_INVALIDATION_RULES``. Templates are formatted from the event's fields;
a template that refers to a field whose value is ``None`` is skipped.
"""

import string
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from ...core.settings import get_settings
from ...events.base import EventHandler
from ...events.domain_events import DomainEvent
from ...events.handlers import EventHandlerRegistry
from ...utils.logging import setup_store_logging
from . import CacheService

logger = setup_store_logging(
    "store_service.cache_invalidation", log_level=get_settings().LOG_LEVEL
)


@dataclass(frozen=True)
class InvalidationRule:
    keys: Tuple[str, ...] = ()
    patterns: Tuple[str, ...] = ()


_CATEGORY_RULE = InvalidationRule(
    keys=(
        "category-{category_id}",
        "category-children-{parent_id}",
        "categories-root",
    ),
    patterns=("categories-*",),
)
_CART_RULE = InvalidationRule(
    keys=("cart-{cart_id}", "user-{user_id}-cart"),
)
_ORDER_RULE = InvalidationRule(
    keys=("order-{order_id}",),
    patterns=("orders-*",),
)
_PAYMENT_RULE = InvalidationRule(
    keys=("payment-{payment_id}", "order-{order_id}"),
    patterns=("payments-*",),
)

CACHE_INVALIDATION_RULES: Dict[str, InvalidationRule] = {
    "CategoryCreatedEvent": _CATEGORY_RULE,
    "CategoryUpdatedEvent": _CATEGORY_RULE,
    "CategoryStatusChangedEvent": _CATEGORY_RULE,
    "CategoryHierarchyChangedEvent": InvalidationRule(
        keys=(
            "category-{category_id}",
            "category-children-{old_parent_id}",
            "category-children-{new_parent_id}",
            "categories-root",
        ),
        patterns=("categories-*",),
    ),
    "CartCreatedEvent": _CART_RULE,
    "CartAssignedToUserEvent": _CART_RULE,
    "CartItemAddedEvent": _CART_RULE,
    "CartItemUpdatedEvent": _CART_RULE,
    "CartItemRemovedEvent": _CART_RULE,
    "CartClearedEvent": _CART_RULE,
    "OrderCreatedEvent": InvalidationRule(
        keys=("order-{order_id}", "cart-{cart_id}", "user-{user_id}-cart"),
        patterns=("orders-*",),
    ),
    "OrderItemAddedEvent": _ORDER_RULE,
    "OrderStatusChangedEvent": _ORDER_RULE,
    "PaymentCreatedEvent": _PAYMENT_RULE,
    "PaymentStatusChangedEvent": _PAYMENT_RULE,
    "PaymentSucceededEvent": _PAYMENT_RULE,
    "PaymentFailedEvent": _PAYMENT_RULE,
    "PaymentRefundedEvent": _PAYMENT_RULE,
}

_formatter = string.Formatter()


def render_templates(templates: Tuple[str, ...], event: DomainEvent) -> List[str]:
    """Format each template from ``event``; drop those with a missing value"""
    rendered: List[str] = []
    for template in templates:
        values = {}
        for _, field_name, _, _ in _formatter.parse(template):
            if field_name is None:
                continue
            values[field_name] = getattr(event, field_name, None)
        if any(value is None for value in values.values()):
            continue
        key = template.format(**values)
        if key not in rendered:
            rendered.append(key)
    return rendered


@dataclass
class CacheInvalidationHandler(EventHandler):
    """
    Evicts the cache entries of one rule.

    Cache errors are logged and swallowed: a cache outage must not keep the
    outbox message pending or block the other handlers.
    """

    event_type: str
    rule: InvalidationRule
    cache: CacheService = field(repr=False)

    @property
    def name(self) -> str:
        return f"CacheInvalidationHandler[{self.event_type}]"

    async def handle(self, event: DomainEvent) -> None:
        keys = render_templates(self.rule.keys, event)
        patterns = render_templates(self.rule.patterns, event)
        try:
            for key in keys:
                await self.cache.remove(key)
            for pattern in patterns:
                await self.cache.remove_by_pattern(pattern)
            logger.debug(
                "Cache entries invalidated",
                extra={
                    "event_type": self.event_type,
                    "event_id": str(event.event_id),
                    "keys": keys,
                    "patterns": patterns,
                },
            )
        except Exception as e:
            logger.error(
                "Cache invalidation failed",
                extra={
                    "event_type": self.event_type,
                    "event_id": str(event.event_id),
                    "keys": keys,
                    "patterns": patterns,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
            )


def register_cache_invalidation_handlers(
    registry: EventHandlerRegistry, cache: CacheService
) -> List[CacheInvalidationHandler]:
    handlers = []
    for event_type, rule in CACHE_INVALIDATION_RULES.items():
        handler = CacheInvalidationHandler(event_type, rule, cache)
        registry.register(event_type, handler)
        handlers.append(handler)
    return handlers


class CacheInvalidationService:
    """Operator-level cache maintenance"""

    def __init__(self, cache: CacheService):
        self.cache = cache

    async def clear_all_cache(self) -> None:
        """Clear entire cache"""
        await self.cache.clear_all()
        logger.info("All cache cleared")
