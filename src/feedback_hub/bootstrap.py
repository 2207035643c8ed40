"""Application bootstrap: the composition root.

Builds exactly one event bus per ``Application`` and injects it, or the
narrower publisher facade, into every producer and consumer.  Nothing is
module-global, so tests can build as many isolated applications as they
like.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .core.config import Settings
from .handlers import (
    DomainEventHandlers,
    EventRecorder,
    IdeaEventHandlers,
    RoleEventHandlers,
    UserEventHandlers,
)
from .infrastructure.event_bus import InMemoryEventBus
from .infrastructure.publisher import EventBusPublisher
from .organization import OrganizationService, OrganizationStore

logger = logging.getLogger(__name__)


@dataclass
class Application:
    settings: Settings
    bus: InMemoryEventBus
    publisher: EventBusPublisher
    organizations: OrganizationService
    handler_sets: dict[str, DomainEventHandlers] = field(default_factory=dict)

    def shutdown(self) -> None:
        """Detach every handler set from the bus."""
        for handlers in self.handler_sets.values():
            handlers.unregister(self.bus)


def build_application(
    settings: Settings | None = None,
    *,
    with_recorder: bool = False,
) -> Application:
    """Wire bus, publisher, services and handler sets."""
    settings = settings or Settings()

    bus = InMemoryEventBus(log_registrations=settings.events.log_registrations)
    publisher = EventBusPublisher(bus)
    organizations = OrganizationService(OrganizationStore(), publisher)

    handler_sets: dict[str, DomainEventHandlers] = {}
    if settings.events.register_domain_handlers:
        handler_sets["user"] = UserEventHandlers()
        handler_sets["role"] = RoleEventHandlers()
        handler_sets["idea"] = IdeaEventHandlers()
    if with_recorder:
        handler_sets["recorder"] = EventRecorder()

    for handlers in handler_sets.values():
        handlers.register(bus)

    logger.info(
        "Application wired: %d handler sets, %d event types subscribed",
        len(handler_sets),
        len(bus.event_types()),
    )
    return Application(
        settings=settings,
        bus=bus,
        publisher=publisher,
        organizations=organizations,
        handler_sets=handler_sets,
    )
