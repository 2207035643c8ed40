"""Idea domain reactions to organization lifecycle events.

Ideas of a deleted organization are archived rather than removed; ideas
whose author left stay visible but are flagged as orphaned.
"""

from __future__ import annotations

import logging

from feedback_hub.core.context import EventContext
from feedback_hub.domain.events import (
    EventTypes,
    OrganizationCreated,
    OrganizationDeleted,
    OrganizationUpdated,
    UserJoinedOrganization,
    UserLeftOrganization,
    UserRoleChangedInOrganization,
)
from feedback_hub.handlers.base import DomainEventHandlers
from feedback_hub.infrastructure.event_bus import EventHandler

logger = logging.getLogger(__name__)


class IdeaEventHandlers(DomainEventHandlers):
    domain = "idea"

    def __init__(self) -> None:
        super().__init__()
        self._archived: set[str] = set()
        self._departed: set[tuple[str, str]] = set()

    def routes(self) -> dict[str, EventHandler]:
        return {
            EventTypes.ORGANIZATION_CREATED: self.on_organization_created,
            EventTypes.ORGANIZATION_UPDATED: self.on_organization_updated,
            EventTypes.ORGANIZATION_DELETED: self.on_organization_deleted,
            EventTypes.USER_JOINED_ORGANIZATION: self.on_user_joined,
            EventTypes.USER_LEFT_ORGANIZATION: self.on_user_left,
            EventTypes.USER_ROLE_CHANGED_IN_ORGANIZATION: self.on_role_changed,
        }

    def on_organization_created(
        self, ctx: EventContext, event: OrganizationCreated,
    ) -> None:
        self._mark(event)

    def on_organization_updated(
        self, ctx: EventContext, event: OrganizationUpdated,
    ) -> None:
        self._mark(event)

    def on_organization_deleted(
        self, ctx: EventContext, event: OrganizationDeleted,
    ) -> None:
        self._mark(event)
        with self._lock:
            self._archived.add(event.organization_id)
        logger.info("Archived ideas of organization %s", event.organization_id)

    def on_user_joined(
        self, ctx: EventContext, event: UserJoinedOrganization,
    ) -> None:
        self._mark(event)
        with self._lock:
            self._departed.discard((event.organization_id, event.user_id))

    def on_user_left(self, ctx: EventContext, event: UserLeftOrganization) -> None:
        self._mark(event)
        with self._lock:
            self._departed.add((event.organization_id, event.user_id))

    def on_role_changed(
        self, ctx: EventContext, event: UserRoleChangedInOrganization,
    ) -> None:
        self._mark(event)

    def is_archived(self, organization_id: str) -> bool:
        with self._lock:
            return organization_id in self._archived

    def is_orphaned_author(self, organization_id: str, user_id: str) -> bool:
        with self._lock:
            return (organization_id, user_id) in self._departed
