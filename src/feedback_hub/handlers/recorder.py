"""EventRecorder: counts and keeps user/role lifecycle events.

Wired by the CLI ``simulate`` command and by tests to show which events
reached the bus without coupling to any producing domain.
"""

from __future__ import annotations

import logging

from feedback_hub.core.context import EventContext
from feedback_hub.domain.events import DomainEvent, EventTypes
from feedback_hub.handlers.base import DomainEventHandlers
from feedback_hub.infrastructure.event_bus import EventHandler

logger = logging.getLogger(__name__)

RECORDED_TYPES: tuple[str, ...] = (
    EventTypes.USER_CREATED,
    EventTypes.USER_UPDATED,
    EventTypes.USER_ROLE_UPDATED,
    EventTypes.ROLE_CREATED,
    EventTypes.ROLE_UPDATED,
    EventTypes.ROLE_DELETED,
)


class EventRecorder(DomainEventHandlers):
    domain = "recorder"

    def __init__(self, event_types: tuple[str, ...] = RECORDED_TYPES) -> None:
        super().__init__()
        self._event_types = event_types
        self._received: list[DomainEvent] = []

    def routes(self) -> dict[str, EventHandler]:
        return {event_type: self.record for event_type in self._event_types}

    def record(self, ctx: EventContext, event: DomainEvent) -> None:
        self._mark(event)
        with self._lock:
            self._received.append(event)

    @property
    def received(self) -> list[DomainEvent]:
        with self._lock:
            return list(self._received)

    def get_counts(self) -> dict[str, int]:
        """Counts for every recorded type, including those never seen."""
        handled = self.handled
        return {t: handled.get(t, 0) for t in self._event_types}

    def reset_counts(self) -> None:
        with self._lock:
            self._handled.clear()
            self._received.clear()
