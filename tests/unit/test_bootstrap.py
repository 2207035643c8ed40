"""Tests for the composition root (``bootstrap.py``)."""

from feedback_hub.bootstrap import build_application
from feedback_hub.core.config import Settings
from feedback_hub.handlers import ORGANIZATION_LIFECYCLE_TYPES, RECORDED_TYPES


def test_default_wiring():
    app = build_application()
    assert set(app.handler_sets) == {"user", "role", "idea"}
    for event_type in ORGANIZATION_LIFECYCLE_TYPES:
        assert app.bus.handler_count(event_type) == 3


def test_recorder_wired_on_request(app):
    assert "recorder" in app.handler_sets
    for event_type in RECORDED_TYPES:
        assert app.bus.handler_count(event_type) == 1


def test_domain_handlers_can_be_disabled():
    settings = Settings(events={"register_domain_handlers": False})
    app = build_application(settings)
    assert app.handler_sets == {}
    assert app.bus.event_types() == []


def test_service_publishes_through_bus(app, ctx):
    org = app.organizations.create_organization(ctx, "Acme")
    app.organizations.add_member(ctx, org.id, "u1", "role-admin", "Admin")

    users = app.handler_sets["user"]
    roles = app.handler_sets["role"]
    assert users.members_of(org.id) == {"u1"}
    assert roles.role_of(org.id, "u1") == "role-admin"


def test_applications_are_isolated(ctx):
    first = build_application()
    second = build_application()
    first.organizations.create_organization(ctx, "Acme")
    assert second.handler_sets["user"].handled == {}


def test_shutdown_detaches_everything(app):
    app.shutdown()
    assert app.bus.event_types() == []
