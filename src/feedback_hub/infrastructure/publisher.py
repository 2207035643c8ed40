"""Publish-only facade handed to application services.

Producers depend on ``EventPublisher`` instead of the full ``EventBus`` so
they cannot subscribe or unsubscribe.  ``EventBusPublisher`` adds no
validation, buffering or retry of its own.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from feedback_hub.core.context import EventContext
from feedback_hub.core.errors import EventBusError
from feedback_hub.domain.events import DomainEvent
from feedback_hub.infrastructure.event_bus import EventBus
from feedback_hub.observability import metrics

logger = logging.getLogger(__name__)


@runtime_checkable
class EventPublisher(Protocol):
    def publish_event(self, ctx: EventContext | None, event: DomainEvent) -> None:
        ...


class EventBusPublisher:
    """``EventPublisher`` backed by an ``EventBus``."""

    def __init__(self, event_bus: EventBus) -> None:
        self._event_bus = event_bus

    def publish_event(self, ctx: EventContext | None, event: DomainEvent) -> None:
        self._event_bus.publish(ctx, event)


def publish_best_effort(
    publisher: EventPublisher,
    ctx: EventContext | None,
    event: DomainEvent,
) -> bool:
    """Publish after a committed mutation; log and continue on failure.

    Event delivery must never fail or roll back the business operation
    that triggered it, whatever the publisher raises.  Returns ``True``
    when every handler succeeded.
    """
    try:
        publisher.publish_event(ctx, event)
    except Exception as exc:
        metrics.record_ignored_publish_failure(event.event_type)
        # Handler tracebacks were already logged by the bus.
        logger.warning(
            "Failed to publish %s event %s: %s",
            event.event_type,
            event.event_id,
            exc,
            exc_info=not isinstance(exc, EventBusError),
        )
        return False
    return True
