"""User domain reactions to organization lifecycle events.

Keeps a membership view (organization -> member user ids) so the user
domain can answer "which organizations is this user in" without calling
the organization domain.
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


class UserEventHandlers(DomainEventHandlers):
    domain = "user"

    def __init__(self) -> None:
        super().__init__()
        self._members: dict[str, set[str]] = {}

    def routes(self) -> dict[str, EventHandler]:
        return {
            EventTypes.ORGANIZATION_CREATED: self.on_organization_created,
            EventTypes.ORGANIZATION_UPDATED: self.on_organization_updated,
            EventTypes.ORGANIZATION_DELETED: self.on_organization_deleted,
            EventTypes.USER_JOINED_ORGANIZATION: self.on_user_joined,
            EventTypes.USER_LEFT_ORGANIZATION: self.on_user_left,
            EventTypes.USER_ROLE_CHANGED_IN_ORGANIZATION: self.on_role_changed,
        }

    # -- Handlers ----------------------------------------------------------

    def on_organization_created(
        self, ctx: EventContext, event: OrganizationCreated,
    ) -> None:
        self._mark(event)
        with self._lock:
            self._members.setdefault(event.organization_id, set())

    def on_organization_updated(
        self, ctx: EventContext, event: OrganizationUpdated,
    ) -> None:
        self._mark(event)

    def on_organization_deleted(
        self, ctx: EventContext, event: OrganizationDeleted,
    ) -> None:
        self._mark(event)
        with self._lock:
            removed = self._members.pop(event.organization_id, set())
        if removed:
            logger.info(
                "Detached %d users from deleted organization %s",
                len(removed),
                event.organization_id,
            )

    def on_user_joined(
        self, ctx: EventContext, event: UserJoinedOrganization,
    ) -> None:
        self._mark(event)
        with self._lock:
            self._members.setdefault(event.organization_id, set()).add(
                event.user_id
            )

    def on_user_left(self, ctx: EventContext, event: UserLeftOrganization) -> None:
        self._mark(event)
        with self._lock:
            self._members.get(event.organization_id, set()).discard(event.user_id)

    def on_role_changed(
        self, ctx: EventContext, event: UserRoleChangedInOrganization,
    ) -> None:
        self._mark(event)

    # -- Queries -----------------------------------------------------------

    def members_of(self, organization_id: str) -> set[str]:
        with self._lock:
            return set(self._members.get(organization_id, set()))

    def organizations_of(self, user_id: str) -> set[str]:
        with self._lock:
            return {org for org, users in self._members.items() if user_id in users}
