"""In-memory organization and membership storage.

Reads return copies (``model_copy()``) so callers never mutate stored
state by accident; writes are lock-protected.
"""

from __future__ import annotations

import threading

from feedback_hub.core.errors import (
    DuplicateSlugError,
    MembershipNotFoundError,
    OrganizationNotFoundError,
)

from .models import Membership, Organization


class OrganizationStore:
    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._organizations: dict[str, Organization] = {}
        # (organization_id, user_id) -> membership
        self._memberships: dict[tuple[str, str], Membership] = {}

    # ------------------------------------------------------------------
    # Organizations
    # ------------------------------------------------------------------

    def get(self, organization_id: str) -> Organization:
        with self._lock:
            org = self._organizations.get(organization_id)
            if org is None:
                raise OrganizationNotFoundError(
                    f"organization not found: {organization_id}"
                )
            return org.model_copy(deep=True)

    def get_by_slug(self, slug: str) -> Organization | None:
        with self._lock:
            for org in self._organizations.values():
                if org.slug == slug:
                    return org.model_copy(deep=True)
        return None

    def slug_taken(self, slug: str, exclude_id: str | None = None) -> bool:
        with self._lock:
            return any(
                org.slug == slug and org.id != exclude_id
                for org in self._organizations.values()
            )

    def add(self, org: Organization) -> None:
        with self._lock:
            if self.slug_taken(org.slug):
                raise DuplicateSlugError(f"slug already in use: {org.slug}")
            self._organizations[org.id] = org.model_copy(deep=True)

    def save(self, org: Organization) -> None:
        with self._lock:
            if org.id not in self._organizations:
                raise OrganizationNotFoundError(f"organization not found: {org.id}")
            if self.slug_taken(org.slug, exclude_id=org.id):
                raise DuplicateSlugError(f"slug already in use: {org.slug}")
            self._organizations[org.id] = org.model_copy(deep=True)

    def remove(self, organization_id: str) -> Organization:
        """Delete an organization and all of its memberships."""
        with self._lock:
            org = self._organizations.pop(organization_id, None)
            if org is None:
                raise OrganizationNotFoundError(
                    f"organization not found: {organization_id}"
                )
            for key in [k for k in self._memberships if k[0] == organization_id]:
                del self._memberships[key]
            return org

    def page(self, limit: int = 50, offset: int = 0) -> list[Organization]:
        with self._lock:
            ordered = sorted(
                self._organizations.values(), key=lambda o: o.created_at
            )
            return [o.model_copy(deep=True) for o in ordered[offset:offset + limit]]

    def count(self) -> int:
        with self._lock:
            return len(self._organizations)

    # ------------------------------------------------------------------
    # Memberships
    # ------------------------------------------------------------------

    def get_membership(self, organization_id: str, user_id: str) -> Membership:
        with self._lock:
            membership = self._memberships.get((organization_id, user_id))
            if membership is None:
                raise MembershipNotFoundError(
                    f"user {user_id} is not a member of {organization_id}"
                )
            return membership.model_copy()

    def has_membership(self, organization_id: str, user_id: str) -> bool:
        with self._lock:
            return (organization_id, user_id) in self._memberships

    def put_membership(self, membership: Membership) -> None:
        with self._lock:
            key = (membership.organization_id, membership.user_id)
            self._memberships[key] = membership.model_copy()

    def remove_membership(self, organization_id: str, user_id: str) -> Membership:
        with self._lock:
            membership = self._memberships.pop((organization_id, user_id), None)
            if membership is None:
                raise MembershipNotFoundError(
                    f"user {user_id} is not a member of {organization_id}"
                )
            return membership

    def memberships(self, organization_id: str) -> list[Membership]:
        with self._lock:
            return [
                m.model_copy()
                for (org_id, _), m in self._memberships.items()
                if org_id == organization_id
            ]
