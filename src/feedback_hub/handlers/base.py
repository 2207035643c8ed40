"""Shared plumbing for per-domain handler sets.

A handler set owns the subscriptions it makes, so a domain can detach
from the bus without knowing what any other domain registered.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections import defaultdict

from feedback_hub.domain.events import DomainEvent, EventTypes
from feedback_hub.infrastructure.event_bus import (
    EventBus,
    EventHandler,
    Subscription,
)

logger = logging.getLogger(__name__)

# Cross-cutting organization events every domain reacts to.
ORGANIZATION_LIFECYCLE_TYPES: tuple[str, ...] = (
    EventTypes.ORGANIZATION_CREATED,
    EventTypes.ORGANIZATION_UPDATED,
    EventTypes.ORGANIZATION_DELETED,
    EventTypes.USER_JOINED_ORGANIZATION,
    EventTypes.USER_LEFT_ORGANIZATION,
    EventTypes.USER_ROLE_CHANGED_IN_ORGANIZATION,
)


class DomainEventHandlers(ABC):
    """Base for a domain's set of event handlers."""

    domain: str = ""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handled: dict[str, int] = defaultdict(int)
        self._subscriptions: list[Subscription] = []

    @abstractmethod
    def routes(self) -> dict[str, EventHandler]:
        """Map each event type this domain listens to onto its handler."""

    def register(self, bus: EventBus) -> list[Subscription]:
        """Subscribe every route on *bus*.  Returns the new subscriptions.

        If a subscribe raises, the routes registered before it stay tracked
        so ``unregister()`` can still detach them.
        """
        added: list[Subscription] = []
        for event_type, handler in self.routes().items():
            sub = bus.subscribe(event_type, handler)
            self._subscriptions.append(sub)
            added.append(sub)
        logger.info(
            "%s handlers registered for %d event types", self.domain, len(added),
        )
        return added

    def unregister(self, bus: EventBus) -> None:
        """Remove every subscription this set made on *bus*.

        A subscription is forgotten only once the bus has removed it.
        """
        while self._subscriptions:
            sub = self._subscriptions[-1]
            bus.unsubscribe(sub.event_type, sub)
            self._subscriptions.pop()

    @property
    def subscriptions(self) -> list[Subscription]:
        return list(self._subscriptions)

    @property
    def handled(self) -> dict[str, int]:
        """Events processed per type since construction."""
        with self._lock:
            return dict(self._handled)

    def _mark(self, event: DomainEvent) -> None:
        with self._lock:
            self._handled[event.event_type] += 1
        logger.info(
            "%s service handling %s event: %s",
            self.domain,
            event.event_type,
            event.event_id,
        )
