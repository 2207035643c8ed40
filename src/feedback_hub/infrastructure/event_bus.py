"""Event bus abstraction and in-memory implementation.

Design goals
------------
1.  **Tag-routed dispatching** — handlers register for an ``event_type``
    string (``"organization.deleted"``).  ``publish()`` fans the event out to
    every handler registered for ``event.event_type``.
2.  **Synchronous, ordered fan-out** — handlers run inline on the
    publishing thread, in registration order.  ``publish()`` returns only
    after every handler has returned.
3.  **Failure aggregation** — a raising handler never stops dispatch.  All
    failures are collected and raised together as ``HandlerFailureError``
    once the last handler has run.
4.  **Reader/writer registry** — concurrent publishes share a read lock;
    subscribe/unsubscribe take the write lock.  Handler lists are replaced,
    never mutated, so a dispatch in flight keeps the snapshot it read.

This module provides:

*  ``EventBus`` — the protocol (interface).
*  ``InMemoryEventBus`` — the in-process implementation.
*  ``Subscription`` — the handle returned by ``subscribe()``.
"""

from __future__ import annotations

import inspect
import logging
import threading
import time
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from feedback_hub.core.context import EventContext
from feedback_hub.core.errors import (
    HandlerError,
    HandlerFailureError,
    InvalidArgumentError,
    NotFoundError,
)
from feedback_hub.core.ids import new_id
from feedback_hub.core.locks import ReadWriteLock
from feedback_hub.domain.events import DomainEvent
from feedback_hub.observability import metrics

logger = logging.getLogger(__name__)

# A handler receives the publisher's context and the event.  Raising is
# the failure signal.
EventHandler = Callable[[EventContext, DomainEvent], None]


@dataclass(frozen=True, eq=False)
class Subscription:
    """One registration of a handler for an event type.

    Compared by identity: passing the handle back to ``unsubscribe()``
    removes exactly this registration, even when the same callable was
    subscribed more than once.
    """

    event_type: str
    handler: EventHandler
    subscription_id: str = field(default_factory=new_id)
    bus: EventBus | None = field(default=None, repr=False)

    @property
    def handler_name(self) -> str:
        return handler_name(self.handler)

    def cancel(self) -> None:
        """Unsubscribe this registration from the bus that issued it."""
        if self.bus is None:
            raise NotFoundError(
                f"subscription {self.subscription_id} is not bound to a bus"
            )
        self.bus.unsubscribe(self.event_type, self)


def handler_name(handler: object) -> str:
    """Readable name for logs and aggregated errors."""
    name = getattr(handler, "__qualname__", None)
    if name:
        return name
    return type(handler).__qualname__


def _same_handler(registered: EventHandler, candidate: object) -> bool:
    if registered is candidate:
        return True
    # ``obj.method`` builds a new bound method on every access; treat two
    # of them as the same reference when they wrap one function on one
    # instance.
    if inspect.ismethod(registered) and inspect.ismethod(candidate):
        return (
            registered.__self__ is candidate.__self__
            and registered.__func__ is candidate.__func__
        )
    return False


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

@runtime_checkable
class EventBus(Protocol):
    """Publish/subscribe bus for ``DomainEvent`` records keyed by tag."""

    def publish(self, ctx: EventContext | None, event: DomainEvent) -> None:
        """Run every handler registered for ``event.event_type``.

        Raises ``HandlerFailureError`` after dispatch if any handler raised.
        """
        ...

    def subscribe(self, event_type: str, handler: EventHandler) -> Subscription:
        """Append *handler* to the handlers for *event_type*."""
        ...

    def unsubscribe(
        self,
        event_type: str,
        handler: EventHandler | Subscription,
    ) -> None:
        """Remove the first matching registration for *event_type*."""
        ...


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------

class InMemoryEventBus:
    """In-process, thread-safe event bus.

    Parameters
    ----------
    log_registrations
        When ``True`` (default), every subscribe/unsubscribe is logged at
        DEBUG.
    """

    def __init__(self, *, log_registrations: bool = True) -> None:
        self._handlers: dict[str, tuple[Subscription, ...]] = {}
        self._lock = ReadWriteLock()
        self._log_registrations = log_registrations

        # Observability
        self._stats_lock = threading.Lock()
        self._error_counts: dict[str, int] = defaultdict(int)
        self._messages_processed: int = 0

    # -- Core API ----------------------------------------------------------

    def publish(self, ctx: EventContext | None, event: DomainEvent) -> None:
        """Publish *event* to all subscribed handlers.

        Publishing a type nobody listens to is not an error.

        Raises
        ------
        InvalidArgumentError
            If *event* is ``None``.
        HandlerFailureError
            If one or more handlers raised.  Every handler has run.
        """
        if event is None:
            raise InvalidArgumentError("cannot publish nil event")
        if ctx is None:
            ctx = EventContext.background()

        event_type = event.event_type
        with self._lock.read_locked():
            subscriptions = self._handlers.get(event_type, ())

        metrics.record_publish(event_type, len(subscriptions))
        if not subscriptions:
            logger.debug("No handlers registered for event type: %s", event_type)
            return

        errors: list[HandlerError] = []
        started = time.perf_counter()
        for sub in subscriptions:
            try:
                sub.handler(ctx, event)
            except Exception as exc:
                errors.append(
                    HandlerError(
                        event_type=event_type,
                        event_id=event.event_id,
                        handler_name=sub.handler_name,
                        error=exc,
                    )
                )
                metrics.record_handler_failure(event_type)
                logger.exception(
                    "Error handling event %s (%s) in %s",
                    event.event_id,
                    event_type,
                    sub.handler_name,
                )
        metrics.record_dispatch(event_type, time.perf_counter() - started)

        with self._stats_lock:
            self._messages_processed += len(subscriptions) - len(errors)
            if errors:
                self._error_counts[event_type] += len(errors)

        if errors:
            raise HandlerFailureError(event_type, errors)

    def subscribe(self, event_type: str, handler: EventHandler) -> Subscription:
        """Register *handler* for *event_type*.

        The same callable may be registered more than once; each
        registration is invoked.
        """
        self._validate(event_type, handler)
        if not callable(handler):
            raise InvalidArgumentError("handler must be callable")

        sub = Subscription(event_type=event_type, handler=handler, bus=self)
        with self._lock.write_locked():
            current = self._handlers.get(event_type, ())
            self._handlers[event_type] = (*current, sub)
            count = len(current) + 1

        metrics.record_subscriptions(event_type, count)
        if self._log_registrations:
            logger.debug(
                "Handler %s registered for event type: %s",
                sub.handler_name,
                event_type,
            )
        return sub

    def unsubscribe(
        self,
        event_type: str,
        handler: EventHandler | Subscription,
    ) -> None:
        """Remove the first registration of *handler* for *event_type*.

        *handler* is either the ``Subscription`` returned by ``subscribe()``
        or the exact callable that was registered.

        Raises
        ------
        NotFoundError
            If nothing is registered for *event_type* or *handler* is not
            among its registrations.
        """
        self._validate(event_type, handler)

        with self._lock.write_locked():
            current = self._handlers.get(event_type)
            if not current:
                raise NotFoundError(
                    f"no handlers registered for event type: {event_type}"
                )
            index = self._find(current, handler)
            if index is None:
                raise NotFoundError(
                    f"handler not found for event type: {event_type}"
                )
            remaining = current[:index] + current[index + 1:]
            if remaining:
                self._handlers[event_type] = remaining
            else:
                del self._handlers[event_type]

        metrics.record_subscriptions(event_type, len(remaining))
        if self._log_registrations:
            logger.debug(
                "Handler %s unregistered for event type: %s",
                current[index].handler_name,
                event_type,
            )

    # -- Helpers -----------------------------------------------------------

    @staticmethod
    def _validate(event_type: str, handler: object) -> None:
        if not event_type:
            raise InvalidArgumentError("event type cannot be empty")
        if handler is None:
            raise InvalidArgumentError("handler cannot be nil")

    @staticmethod
    def _find(
        subscriptions: tuple[Subscription, ...],
        handler: EventHandler | Subscription,
    ) -> int | None:
        if isinstance(handler, Subscription):
            for i, sub in enumerate(subscriptions):
                if sub is handler:
                    return i
            return None
        for i, sub in enumerate(subscriptions):
            if _same_handler(sub.handler, handler):
                return i
        return None

    # -- Observability -----------------------------------------------------

    def handler_count(self, event_type: str) -> int:
        with self._lock.read_locked():
            return len(self._handlers.get(event_type, ()))

    def event_types(self) -> list[str]:
        """Event types with at least one registered handler."""
        with self._lock.read_locked():
            return sorted(self._handlers)

    def get_error_counts(self) -> dict[str, int]:
        """Return ``{event_type: failed_handler_invocations}``."""
        with self._stats_lock:
            return dict(self._error_counts)

    @property
    def messages_processed(self) -> int:
        """Handler invocations that returned without raising."""
        with self._stats_lock:
            return self._messages_processed
