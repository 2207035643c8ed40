"""Tests for the per-domain handler sets (``handlers/``)."""

from __future__ import annotations

import pytest

from feedback_hub.core.errors import InvalidArgumentError, NotFoundError
from feedback_hub.domain.events import (
    OrganizationCreated,
    OrganizationDeleted,
    OrganizationUpdated,
    RoleCreated,
    UserCreated,
    UserJoinedOrganization,
    UserLeftOrganization,
    UserRoleChangedInOrganization,
)
from feedback_hub.handlers import (
    ORGANIZATION_LIFECYCLE_TYPES,
    DomainEventHandlers,
    EventRecorder,
    IdeaEventHandlers,
    RoleEventHandlers,
    UserEventHandlers,
)
from feedback_hub.handlers.recorder import RECORDED_TYPES


def _joined(org="org-1", user="u1", role="role-admin"):
    return UserJoinedOrganization(
        organization_id=org, user_id=user, role_id=role, role_name="Admin",
    )


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

class TestRegistration:
    @pytest.mark.parametrize(
        "handlers_cls", [UserEventHandlers, RoleEventHandlers, IdeaEventHandlers],
    )
    def test_domain_sets_cover_lifecycle(self, bus, handlers_cls):
        handlers = handlers_cls()
        subs = handlers.register(bus)

        assert len(subs) == len(ORGANIZATION_LIFECYCLE_TYPES)
        for event_type in ORGANIZATION_LIFECYCLE_TYPES:
            assert bus.handler_count(event_type) == 1

    def test_unregister_removes_only_own_subscriptions(self, bus):
        users = UserEventHandlers()
        roles = RoleEventHandlers()
        users.register(bus)
        roles.register(bus)

        users.unregister(bus)

        assert users.subscriptions == []
        for event_type in ORGANIZATION_LIFECYCLE_TYPES:
            assert bus.handler_count(event_type) == 1

    def test_unregister_twice_is_noop(self, bus):
        users = UserEventHandlers()
        users.register(bus)
        users.unregister(bus)
        users.unregister(bus)
        assert bus.event_types() == []

    def test_external_unsubscribe_surfaces_not_found(self, bus):
        users = UserEventHandlers()
        subs = users.register(bus)
        subs[0].cancel()
        with pytest.raises(NotFoundError):
            users.unregister(bus)
        # The handle the bus refused is still tracked; the rest were removed.
        assert users.subscriptions == [subs[0]]
        assert bus.event_types() == []

    def test_partial_register_stays_detachable(self, bus):
        class HalfBroken(DomainEventHandlers):
            domain = "broken"

            def routes(self):
                return {
                    "organization.created": self.on_created,
                    "": self.on_created,
                }

            def on_created(self, ctx, event):
                self._mark(event)

        handlers = HalfBroken()
        with pytest.raises(InvalidArgumentError):
            handlers.register(bus)

        assert len(handlers.subscriptions) == 1
        handlers.unregister(bus)
        assert bus.event_types() == []
        assert handlers.subscriptions == []

    def test_handled_counts(self, bus, ctx, org_created):
        ideas = IdeaEventHandlers()
        ideas.register(bus)

        bus.publish(ctx, org_created)
        bus.publish(ctx, OrganizationUpdated(organization_id="org-1"))
        bus.publish(ctx, OrganizationUpdated(organization_id="org-1"))

        assert ideas.handled == {"organization.created": 1, "organization.updated": 2}


# ---------------------------------------------------------------------------
# Domain projections
# ---------------------------------------------------------------------------

class TestUserEventHandlers:
    def test_membership_view(self, bus, ctx, org_created):
        users = UserEventHandlers()
        users.register(bus)

        bus.publish(ctx, org_created)
        bus.publish(ctx, _joined(user="u1"))
        bus.publish(ctx, _joined(user="u2"))
        bus.publish(ctx, UserLeftOrganization(organization_id="org-1", user_id="u2"))

        assert users.members_of("org-1") == {"u1"}
        assert users.organizations_of("u1") == {"org-1"}
        assert users.organizations_of("u2") == set()

    def test_organization_deleted_detaches_members(self, bus, ctx, org_created):
        users = UserEventHandlers()
        users.register(bus)
        bus.publish(ctx, org_created)
        bus.publish(ctx, _joined())

        bus.publish(ctx, OrganizationDeleted(organization_id="org-1"))

        assert users.members_of("org-1") == set()
        assert users.handled["organization.deleted"] == 1

    def test_leave_unknown_org_is_harmless(self, bus, ctx):
        users = UserEventHandlers()
        users.register(bus)
        bus.publish(ctx, UserLeftOrganization(organization_id="nope", user_id="u1"))
        assert users.members_of("nope") == set()


class TestRoleEventHandlers:
    def test_default_roles_provisioned(self, bus, ctx, org_created):
        roles = RoleEventHandlers()
        roles.register(bus)
        bus.publish(ctx, org_created)
        assert roles.roles_for("org-1") == ("Admin", "Contributor", "Viewer")

    def test_custom_default_roles(self, bus, ctx, org_created):
        roles = RoleEventHandlers(default_roles=("Owner",))
        roles.register(bus)
        bus.publish(ctx, org_created)
        assert roles.roles_for("org-1") == ("Owner",)

    def test_assignment_follows_membership(self, bus, ctx, org_created):
        roles = RoleEventHandlers()
        roles.register(bus)
        bus.publish(ctx, org_created)
        bus.publish(ctx, _joined(role="role-contributor"))
        assert roles.role_of("org-1", "u1") == "role-contributor"

        bus.publish(
            ctx,
            UserRoleChangedInOrganization(
                organization_id="org-1",
                user_id="u1",
                old_role_id="role-contributor",
                new_role_id="role-viewer",
            ),
        )
        assert roles.role_of("org-1", "u1") == "role-viewer"

        bus.publish(ctx, UserLeftOrganization(organization_id="org-1", user_id="u1"))
        assert roles.role_of("org-1", "u1") is None

    def test_delete_clears_roles(self, bus, ctx, org_created):
        roles = RoleEventHandlers()
        roles.register(bus)
        bus.publish(ctx, org_created)
        bus.publish(ctx, OrganizationDeleted(organization_id="org-1"))
        assert roles.roles_for("org-1") == ()


class TestIdeaEventHandlers:
    def test_archive_on_delete(self, bus, ctx):
        ideas = IdeaEventHandlers()
        ideas.register(bus)
        assert not ideas.is_archived("org-1")
        bus.publish(ctx, OrganizationDeleted(organization_id="org-1"))
        assert ideas.is_archived("org-1")

    def test_orphaned_author_until_rejoin(self, bus, ctx):
        ideas = IdeaEventHandlers()
        ideas.register(bus)

        bus.publish(ctx, UserLeftOrganization(organization_id="org-1", user_id="u1"))
        assert ideas.is_orphaned_author("org-1", "u1")

        bus.publish(ctx, _joined(user="u1"))
        assert not ideas.is_orphaned_author("org-1", "u1")


# ---------------------------------------------------------------------------
# Recorder
# ---------------------------------------------------------------------------

class TestEventRecorder:
    def test_records_user_and_role_events(self, bus, ctx, user_created):
        recorder = EventRecorder()
        recorder.register(bus)

        bus.publish(ctx, user_created)
        bus.publish(ctx, RoleCreated(role_id="r1", name="Admin"))

        assert [e.event_type for e in recorder.received] == ["user.created", "role.created"]
        counts = recorder.get_counts()
        assert set(counts) == set(RECORDED_TYPES)
        assert counts["user.created"] == 1
        assert counts["role.deleted"] == 0

    def test_ignores_unrecorded_types(self, bus, ctx, org_created):
        recorder = EventRecorder()
        recorder.register(bus)
        bus.publish(ctx, org_created)
        assert recorder.received == []

    def test_reset_counts(self, bus, ctx):
        recorder = EventRecorder(event_types=("user.created",))
        recorder.register(bus)
        bus.publish(ctx, UserCreated(user_id="u1"))

        recorder.reset_counts()

        assert recorder.get_counts() == {"user.created": 0}
        assert recorder.received == []

    def test_org_created_reaches_every_domain(self, bus, ctx):
        users, roles, ideas = UserEventHandlers(), RoleEventHandlers(), IdeaEventHandlers()
        for handlers in (users, roles, ideas):
            handlers.register(bus)

        bus.publish(ctx, OrganizationCreated(organization_id="org-9"))

        for handlers in (users, roles, ideas):
            assert handlers.handled == {"organization.created": 1}
