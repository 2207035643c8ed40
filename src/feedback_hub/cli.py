"""CLI entry point for the feedback hub."""

from __future__ import annotations

import json

import click

from .domain.events import ALL_DOMAIN_EVENTS, EVENT_TYPE_REGISTRY


@click.group()
def main() -> None:
    """Feedback Hub domain events."""


@main.command()
@click.option("--as-json", "as_json", is_flag=True, help="Emit JSON instead of a table")
def catalog(as_json: bool) -> None:
    """List every event type and its payload fields."""
    rows = []
    for event_type, event_cls in sorted(EVENT_TYPE_REGISTRY.items()):
        fields = list(event_cls().payload())
        rows.append({"event_type": event_type, "class": event_cls.__name__, "fields": fields})

    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    click.echo(f"{len(ALL_DOMAIN_EVENTS)} event types")
    for row in rows:
        click.echo(f"  {row['event_type']:<36} {row['class']:<32} {', '.join(row['fields'])}")


@main.command()
@click.option("--config", default=None, help="Config file path (TOML)")
@click.option("--log-level", default=None, help="Override observability.log_level")
@click.option(
    "--fail-handler",
    is_flag=True,
    help="Subscribe a handler that always raises, to show failure aggregation",
)
def simulate(config: str | None, log_level: str | None, fail_handler: bool) -> None:
    """Run one organization lifecycle through the bus and print handler counts."""
    from .bootstrap import build_application
    from .core.config import load_settings
    from .core.context import EventContext
    from .domain.events import RoleCreated, UserCreated
    from .infrastructure.publisher import publish_best_effort
    from .observability.logger import get_logger, set_trace_id, setup_logging
    from .observability.metrics import start_metrics_server

    overrides: dict = {}
    if log_level:
        overrides["observability"] = {"log_level": log_level}
    settings = load_settings(config_path=config, overrides=overrides)
    setup_logging(settings.observability.log_level, settings.observability.log_format)
    if settings.observability.metrics_enabled:
        start_metrics_server(settings.observability.metrics_port)

    app = build_application(settings, with_recorder=True)
    if fail_handler:
        def _always_fails(ctx, event) -> None:
            raise RuntimeError("simulated handler failure")

        app.bus.subscribe("organization.created", _always_fails)

    ctx = EventContext.background()
    set_trace_id(ctx.correlation_id)

    publish_best_effort(app.publisher, ctx, RoleCreated(role_id="role-contributor", name="Contributor"))
    publish_best_effort(
        app.publisher,
        ctx,
        UserCreated(
            user_id="user-1",
            email="ada@example.com",
            name="Ada",
            role_id="role-contributor",
            role_name="Contributor",
        ),
    )

    orgs = app.organizations
    org = orgs.create_organization(ctx, "Acme Research", description="Demo tenant", created_by="user-1")
    orgs.add_member(ctx, org.id, "user-1", "role-admin", "Admin", added_by="user-1")
    orgs.add_member(ctx, org.id, "user-2", "role-contributor", "Contributor", added_by="user-1")
    orgs.change_member_role(ctx, org.id, "user-2", "role-viewer", "Viewer", changed_by="user-1")
    orgs.update_organization(ctx, org.id, description="Demo tenant (renamed)", updated_by="user-1")
    orgs.remove_member(ctx, org.id, "user-2", removed_by="user-1", reason="demo")
    orgs.delete_organization(ctx, org.id, deleted_by="user-1", reason="demo finished")

    click.echo(f"Organization {org.slug} ({org.id}) went through its full lifecycle")
    for name, handlers in app.handler_sets.items():
        counts = ", ".join(f"{k}={v}" for k, v in sorted(handlers.handled.items()))
        click.echo(f"  {name:<9} {counts or '-'}")
    errors = app.bus.get_error_counts()
    if errors:
        click.echo(f"  handler failures: {errors}")
    get_logger(__name__).info(
        "simulation_finished",
        organization_id=org.id,
        messages_processed=app.bus.messages_processed,
        handler_failures=sum(errors.values()),
    )
    app.shutdown()


if __name__ == "__main__":
    main()
