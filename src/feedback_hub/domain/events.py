"""Canonical domain events for the feedback hub.

Design invariants
-----------------
1.  Every event is **immutable** (``frozen=True``).  Top-level fields cannot
    be reassigned; mapping payloads (``settings``, ``changes``) are shared by
    every handler of a dispatch and must be treated as read-only.
2.  ``event_type`` is the dispatch key.  It is fixed per concrete class
    (``init=False``) and follows ``{domain}.{past_tense_action}``.
3.  ``event_id`` is a UUID4 generated at creation time; unique within the
    process, used for correlation and logging only.
4.  ``aggregate_id`` is filled from the class's identity field when not
    given explicitly.  The bus never routes on it.
5.  ``version`` is caller-supplied and never validated.  Creation events
    default to 1.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, ClassVar

from feedback_hub.core.ids import new_id as _uuid
from feedback_hub.core.ids import utc_now as _now


class EventTypes:
    """Every ``event_type`` tag the platform publishes."""

    USER_CREATED = "user.created"
    USER_UPDATED = "user.updated"
    USER_ROLE_UPDATED = "user.role_updated"

    ROLE_CREATED = "role.created"
    ROLE_UPDATED = "role.updated"
    ROLE_DELETED = "role.deleted"

    ORGANIZATION_CREATED = "organization.created"
    ORGANIZATION_UPDATED = "organization.updated"
    ORGANIZATION_DELETED = "organization.deleted"

    USER_JOINED_ORGANIZATION = "user.joined_organization"
    USER_LEFT_ORGANIZATION = "user.left_organization"
    USER_ROLE_CHANGED_IN_ORGANIZATION = "user.role_changed_in_organization"


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

_METADATA_FIELDS = frozenset(
    {"event_id", "event_type", "aggregate_id", "occurred_at", "version"}
)


@dataclass(frozen=True)
class DomainEvent:
    """Immutable base for every domain event.

    Shared fields
    ~~~~~~~~~~~~~
    event_id        Unique identity (UUID4).
    event_type      Dispatch key, e.g. ``organization.deleted``.
    aggregate_id    Identity of the entity the event is about.
    occurred_at     UTC creation time.
    version         Aggregate version at creation (caller-supplied).
    """

    # Name of the payload field that supplies ``aggregate_id``.
    aggregate_field: ClassVar[str] = ""

    event_id: str = field(default_factory=_uuid)
    event_type: str = ""
    aggregate_id: str = ""
    occurred_at: datetime = field(default_factory=_now)
    version: int = 1

    def __post_init__(self) -> None:
        if not self.aggregate_id and self.aggregate_field:
            object.__setattr__(
                self, "aggregate_id", getattr(self, self.aggregate_field),
            )

    def payload(self) -> dict[str, Any]:
        """Event-specific fields, without the shared metadata."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in _METADATA_FIELDS
        }


# =========================================================================
# User lifecycle  (aggregate: user)
# =========================================================================

@dataclass(frozen=True)
class UserCreated(DomainEvent):
    """A user account was created."""

    aggregate_field: ClassVar[str] = "user_id"
    event_type: str = field(default=EventTypes.USER_CREATED, init=False)

    user_id: str = ""
    email: str = ""
    name: str = ""
    role_id: str = ""
    role_name: str = ""


@dataclass(frozen=True)
class UserUpdated(DomainEvent):
    """User profile fields changed."""

    aggregate_field: ClassVar[str] = "user_id"
    event_type: str = field(default=EventTypes.USER_UPDATED, init=False)

    user_id: str = ""
    name: str = ""


@dataclass(frozen=True)
class UserRoleUpdated(DomainEvent):
    """A user's global role changed."""

    aggregate_field: ClassVar[str] = "user_id"
    event_type: str = field(default=EventTypes.USER_ROLE_UPDATED, init=False)

    user_id: str = ""
    old_role_id: str = ""
    new_role_id: str = ""
    old_role: str = ""
    new_role: str = ""


# =========================================================================
# Role lifecycle  (aggregate: role)
# =========================================================================

@dataclass(frozen=True)
class RoleCreated(DomainEvent):
    aggregate_field: ClassVar[str] = "role_id"
    event_type: str = field(default=EventTypes.ROLE_CREATED, init=False)

    role_id: str = ""
    name: str = ""


@dataclass(frozen=True)
class RoleUpdated(DomainEvent):
    aggregate_field: ClassVar[str] = "role_id"
    event_type: str = field(default=EventTypes.ROLE_UPDATED, init=False)

    role_id: str = ""
    name: str = ""


@dataclass(frozen=True)
class RoleDeleted(DomainEvent):
    """A role was removed; users holding it need reassignment."""

    aggregate_field: ClassVar[str] = "role_id"
    event_type: str = field(default=EventTypes.ROLE_DELETED, init=False)

    role_id: str = ""
    name: str = ""


# =========================================================================
# Organization lifecycle  (aggregate: organization)
# =========================================================================

@dataclass(frozen=True)
class FieldChange:
    """Old and new value of one field touched by an update."""

    old_value: Any = None
    new_value: Any = None


@dataclass(frozen=True)
class OrganizationCreated(DomainEvent):
    """A tenant was set up.  Other domains may provision defaults."""

    aggregate_field: ClassVar[str] = "organization_id"
    event_type: str = field(default=EventTypes.ORGANIZATION_CREATED, init=False)

    organization_id: str = ""
    name: str = ""
    slug: str = ""
    description: str = ""
    created_by_user_id: str = ""


@dataclass(frozen=True)
class OrganizationUpdated(DomainEvent):
    """Organization fields changed.

    ``changes`` lists only the fields that actually differ, so consumers
    can ignore updates irrelevant to them.
    """

    aggregate_field: ClassVar[str] = "organization_id"
    event_type: str = field(default=EventTypes.ORGANIZATION_UPDATED, init=False)

    organization_id: str = ""
    name: str = ""
    slug: str = ""
    description: str = ""
    settings: dict[str, Any] = field(default_factory=dict)
    updated_by_user_id: str = ""
    changes: dict[str, FieldChange] = field(default_factory=dict)


@dataclass(frozen=True)
class OrganizationDeleted(DomainEvent):
    """A tenant was removed.  Other domains clean up what they own."""

    aggregate_field: ClassVar[str] = "organization_id"
    event_type: str = field(default=EventTypes.ORGANIZATION_DELETED, init=False)

    organization_id: str = ""
    name: str = ""
    slug: str = ""
    deleted_by_user_id: str = ""
    deletion_reason: str = ""


# =========================================================================
# Organization membership  (aggregate: organization)
# =========================================================================

@dataclass(frozen=True)
class UserJoinedOrganization(DomainEvent):
    aggregate_field: ClassVar[str] = "organization_id"
    event_type: str = field(
        default=EventTypes.USER_JOINED_ORGANIZATION, init=False,
    )

    organization_id: str = ""
    user_id: str = ""
    role_id: str = ""
    role_name: str = ""
    joined_by_user_id: str = ""


@dataclass(frozen=True)
class UserLeftOrganization(DomainEvent):
    aggregate_field: ClassVar[str] = "organization_id"
    event_type: str = field(
        default=EventTypes.USER_LEFT_ORGANIZATION, init=False,
    )

    organization_id: str = ""
    user_id: str = ""
    role_id: str = ""
    left_by_user_id: str = ""
    leave_reason: str = ""


@dataclass(frozen=True)
class UserRoleChangedInOrganization(DomainEvent):
    """A member's role inside one organization changed (permissions follow)."""

    aggregate_field: ClassVar[str] = "organization_id"
    event_type: str = field(
        default=EventTypes.USER_ROLE_CHANGED_IN_ORGANIZATION, init=False,
    )

    organization_id: str = ""
    user_id: str = ""
    old_role_id: str = ""
    new_role_id: str = ""
    old_role_name: str = ""
    new_role_name: str = ""
    changed_by_user_id: str = ""


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

ALL_DOMAIN_EVENTS: tuple[type[DomainEvent], ...] = (
    UserCreated,
    UserUpdated,
    UserRoleUpdated,
    RoleCreated,
    RoleUpdated,
    RoleDeleted,
    OrganizationCreated,
    OrganizationUpdated,
    OrganizationDeleted,
    UserJoinedOrganization,
    UserLeftOrganization,
    UserRoleChangedInOrganization,
)


def _tag(event_cls: type[DomainEvent]) -> str:
    return next(f.default for f in fields(event_cls) if f.name == "event_type")


EVENT_TYPE_REGISTRY: dict[str, type[DomainEvent]] = {
    _tag(cls): cls for cls in ALL_DOMAIN_EVENTS
}
