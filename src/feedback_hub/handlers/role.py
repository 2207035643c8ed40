"""Role domain reactions to organization lifecycle events."""

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

DEFAULT_ROLES: tuple[str, ...] = ("Admin", "Contributor", "Viewer")


class RoleEventHandlers(DomainEventHandlers):
    """Tracks role names per organization and role assignments per member."""

    domain = "role"

    def __init__(self, default_roles: tuple[str, ...] = DEFAULT_ROLES) -> None:
        super().__init__()
        self._default_roles = default_roles
        self._roles: dict[str, tuple[str, ...]] = {}
        # organization_id -> user_id -> role_id
        self._assignments: dict[str, dict[str, str]] = {}

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
        with self._lock:
            self._roles[event.organization_id] = self._default_roles
            self._assignments.setdefault(event.organization_id, {})
        logger.info(
            "Provisioned default roles %s for organization %s",
            ", ".join(self._default_roles),
            event.organization_id,
        )

    def on_organization_updated(
        self, ctx: EventContext, event: OrganizationUpdated,
    ) -> None:
        self._mark(event)

    def on_organization_deleted(
        self, ctx: EventContext, event: OrganizationDeleted,
    ) -> None:
        self._mark(event)
        with self._lock:
            self._roles.pop(event.organization_id, None)
            self._assignments.pop(event.organization_id, None)

    def on_user_joined(
        self, ctx: EventContext, event: UserJoinedOrganization,
    ) -> None:
        self._mark(event)
        with self._lock:
            self._assignments.setdefault(event.organization_id, {})[
                event.user_id
            ] = event.role_id

    def on_user_left(self, ctx: EventContext, event: UserLeftOrganization) -> None:
        self._mark(event)
        with self._lock:
            self._assignments.get(event.organization_id, {}).pop(event.user_id, None)

    def on_role_changed(
        self, ctx: EventContext, event: UserRoleChangedInOrganization,
    ) -> None:
        self._mark(event)
        with self._lock:
            self._assignments.setdefault(event.organization_id, {})[
                event.user_id
            ] = event.new_role_id

    # -- Queries -----------------------------------------------------------

    def roles_for(self, organization_id: str) -> tuple[str, ...]:
        with self._lock:
            return self._roles.get(organization_id, ())

    def role_of(self, organization_id: str, user_id: str) -> str | None:
        with self._lock:
            return self._assignments.get(organization_id, {}).get(user_id)
