"""Shared fixtures for the feedback-hub test suite."""

from __future__ import annotations

import pytest

from feedback_hub.bootstrap import Application, build_application
from feedback_hub.core.context import EventContext
from feedback_hub.domain.events import (
    DomainEvent,
    OrganizationCreated,
    UserCreated,
)
from feedback_hub.infrastructure.event_bus import InMemoryEventBus
from feedback_hub.infrastructure.publisher import EventBusPublisher
from feedback_hub.organization import OrganizationService, OrganizationStore


# ---------------------------------------------------------------------------
# Bus
# ---------------------------------------------------------------------------

@pytest.fixture
def bus() -> InMemoryEventBus:
    """A fresh, isolated bus per test."""
    return InMemoryEventBus()


@pytest.fixture
def publisher(bus: InMemoryEventBus) -> EventBusPublisher:
    return EventBusPublisher(bus)


@pytest.fixture
def ctx() -> EventContext:
    return EventContext.background()


@pytest.fixture
def recording_handler():
    """Return ``(handler, received)``: the handler appends every event."""
    received: list[DomainEvent] = []

    def handler(ctx: EventContext, event: DomainEvent) -> None:
        received.append(event)

    return handler, received


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

@pytest.fixture
def user_created() -> UserCreated:
    return UserCreated(
        user_id="user-123",
        email="test@example.com",
        name="Test User",
        role_id="role-456",
        role_name="Contributor",
    )


@pytest.fixture
def org_created() -> OrganizationCreated:
    return OrganizationCreated(
        organization_id="org-1",
        name="Acme",
        slug="acme",
        description="Test tenant",
        created_by_user_id="user-123",
    )


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------

@pytest.fixture
def org_service(publisher: EventBusPublisher) -> OrganizationService:
    return OrganizationService(OrganizationStore(), publisher)


@pytest.fixture
def app() -> Application:
    return build_application(with_recorder=True)
