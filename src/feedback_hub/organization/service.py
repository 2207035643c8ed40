"""OrganizationService: organization and membership use cases.

Every mutation commits to the store first and publishes its event after.
A publish failure is logged and counted, never raised: the business
operation has already happened and stays done.
"""

from __future__ import annotations

import logging
from typing import Any

from feedback_hub.core.context import EventContext
from feedback_hub.core.errors import (
    DuplicateSlugError,
    MembershipNotFoundError,
    ValidationError,
)
from feedback_hub.core.ids import utc_now
from feedback_hub.domain.events import (
    DomainEvent,
    FieldChange,
    OrganizationCreated,
    OrganizationDeleted,
    OrganizationUpdated,
    UserJoinedOrganization,
    UserLeftOrganization,
    UserRoleChangedInOrganization,
)
from feedback_hub.infrastructure.publisher import (
    EventPublisher,
    publish_best_effort,
)

from .models import (
    MAX_SLUG_LENGTH,
    Membership,
    Organization,
    generate_slug,
    normalize_slug,
    validate_name,
    validate_slug,
)
from .store import OrganizationStore

logger = logging.getLogger(__name__)


class OrganizationService:
    def __init__(
        self,
        store: OrganizationStore,
        publisher: EventPublisher | None = None,
    ) -> None:
        self._store = store
        self._publisher = publisher

    # ------------------------------------------------------------------
    # Organizations
    # ------------------------------------------------------------------

    def create_organization(
        self,
        ctx: EventContext | None,
        name: str,
        slug: str = "",
        description: str = "",
        settings: dict[str, Any] | None = None,
        created_by: str = "",
    ) -> Organization:
        """Create an organization.

        Without an explicit *slug* one is generated from *name* and made
        unique by appending ``-1``, ``-2``, ...  An explicit slug that is
        already taken raises ``DuplicateSlugError``.
        """
        validate_name(name)
        if slug:
            slug = normalize_slug(slug)
            validate_slug(slug)
            if self._store.slug_taken(slug):
                raise DuplicateSlugError(f"slug already in use: {slug}")
        else:
            slug = self._unique_slug(generate_slug(name))

        org = Organization.new(name, slug, description, settings)
        self._store.add(org)
        logger.info("Organization %s created (slug=%s)", org.id, org.slug)

        self._publish(
            ctx,
            OrganizationCreated(
                organization_id=org.id,
                name=org.name,
                slug=org.slug,
                description=org.description,
                created_by_user_id=created_by,
                version=org.version,
            ),
        )
        return org

    def get_organization(self, organization_id: str) -> Organization:
        return self._store.get(organization_id)

    def get_organization_by_slug(self, slug: str) -> Organization | None:
        return self._store.get_by_slug(normalize_slug(slug))

    def list_organizations(self, limit: int = 50, offset: int = 0) -> list[Organization]:
        if limit <= 0 or offset < 0:
            raise ValidationError("limit must be positive and offset non-negative")
        return self._store.page(limit=limit, offset=offset)

    def count_organizations(self) -> int:
        return self._store.count()

    def update_organization(
        self,
        ctx: EventContext | None,
        organization_id: str,
        *,
        name: str | None = None,
        slug: str | None = None,
        description: str | None = None,
        settings: dict[str, Any] | None = None,
        updated_by: str = "",
    ) -> Organization:
        """Apply the given fields; ``None`` leaves a field unchanged."""
        org = self._store.get(organization_id)
        changes: dict[str, FieldChange] = {}

        if name is not None and name != org.name:
            validate_name(name)
            changes["name"] = FieldChange(org.name, name)
        if slug is not None:
            slug = normalize_slug(slug)
            if slug != org.slug:
                validate_slug(slug)
                if self._store.slug_taken(slug, exclude_id=org.id):
                    raise DuplicateSlugError(f"slug already in use: {slug}")
                changes["slug"] = FieldChange(org.slug, slug)
        if description is not None and description != org.description:
            changes["description"] = FieldChange(org.description, description)
        if settings is not None and settings != org.settings:
            changes["settings"] = FieldChange(dict(org.settings), dict(settings))

        if not changes:
            return org

        updated = org.model_copy(
            update={
                **{field: change.new_value for field, change in changes.items()},
                "version": org.version + 1,
                "updated_at": utc_now(),
            }
        )
        self._store.save(updated)
        logger.info(
            "Organization %s updated (%s)", updated.id, ", ".join(sorted(changes)),
        )

        self._publish(
            ctx,
            OrganizationUpdated(
                organization_id=updated.id,
                name=updated.name,
                slug=updated.slug,
                description=updated.description,
                settings=dict(updated.settings),
                updated_by_user_id=updated_by,
                changes=changes,
                version=updated.version,
            ),
        )
        return updated

    def delete_organization(
        self,
        ctx: EventContext | None,
        organization_id: str,
        deleted_by: str = "",
        reason: str = "",
    ) -> None:
        org = self._store.remove(organization_id)
        logger.info("Organization %s deleted", org.id)

        self._publish(
            ctx,
            OrganizationDeleted(
                organization_id=org.id,
                name=org.name,
                slug=org.slug,
                deleted_by_user_id=deleted_by,
                deletion_reason=reason,
                version=org.version + 1,
            ),
        )

    # ------------------------------------------------------------------
    # Memberships
    # ------------------------------------------------------------------

    def add_member(
        self,
        ctx: EventContext | None,
        organization_id: str,
        user_id: str,
        role_id: str,
        role_name: str = "",
        added_by: str = "",
    ) -> Membership:
        self._store.get(organization_id)
        if not user_id or not role_id:
            raise ValidationError("user id and role id are required")
        if self._store.has_membership(organization_id, user_id):
            raise ValidationError(
                f"user {user_id} is already a member of {organization_id}"
            )

        membership = Membership(
            organization_id=organization_id,
            user_id=user_id,
            role_id=role_id,
            role_name=role_name,
        )
        self._store.put_membership(membership)

        self._publish(
            ctx,
            UserJoinedOrganization(
                organization_id=organization_id,
                user_id=user_id,
                role_id=role_id,
                role_name=role_name,
                joined_by_user_id=added_by,
                version=membership.version,
            ),
        )
        return membership

    def remove_member(
        self,
        ctx: EventContext | None,
        organization_id: str,
        user_id: str,
        removed_by: str = "",
        reason: str = "",
    ) -> None:
        membership = self._store.remove_membership(organization_id, user_id)

        self._publish(
            ctx,
            UserLeftOrganization(
                organization_id=organization_id,
                user_id=user_id,
                role_id=membership.role_id,
                left_by_user_id=removed_by,
                leave_reason=reason,
                version=membership.version + 1,
            ),
        )

    def change_member_role(
        self,
        ctx: EventContext | None,
        organization_id: str,
        user_id: str,
        new_role_id: str,
        new_role_name: str = "",
        changed_by: str = "",
    ) -> Membership:
        """Reassign a member's role.  Same role in, no event out."""
        if not new_role_id:
            raise ValidationError("role id is required")
        membership = self._store.get_membership(organization_id, user_id)
        if membership.role_id == new_role_id:
            return membership

        updated = membership.model_copy(
            update={
                "role_id": new_role_id,
                "role_name": new_role_name,
                "version": membership.version + 1,
            }
        )
        self._store.put_membership(updated)

        self._publish(
            ctx,
            UserRoleChangedInOrganization(
                organization_id=organization_id,
                user_id=user_id,
                old_role_id=membership.role_id,
                new_role_id=new_role_id,
                old_role_name=membership.role_name,
                new_role_name=new_role_name,
                changed_by_user_id=changed_by,
                version=updated.version,
            ),
        )
        return updated

    def members(self, organization_id: str) -> list[Membership]:
        self._store.get(organization_id)
        return self._store.memberships(organization_id)

    def is_member(self, organization_id: str, user_id: str) -> bool:
        try:
            self._store.get_membership(organization_id, user_id)
        except MembershipNotFoundError:
            return False
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _unique_slug(self, base: str) -> str:
        slug = base
        counter = 1
        while self._store.slug_taken(slug):
            suffix = f"-{counter}"
            # Keep the suffixed slug within MAX_SLUG_LENGTH.
            stem = base[:MAX_SLUG_LENGTH - len(suffix)].rstrip("-")
            slug = f"{stem}{suffix}"
            counter += 1
        return slug

    def _publish(self, ctx: EventContext | None, event: DomainEvent) -> None:
        if self._publisher is None:
            return
        publish_best_effort(self._publisher, ctx, event)
