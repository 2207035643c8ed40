"""Prometheus metrics for the event bus.

Counters are module-level, like every prometheus_client collector; buses
only ever increment them, so several bus instances in one process simply
share the totals.
"""

from __future__ import annotations

import logging

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Event bus metrics
# ---------------------------------------------------------------------------

EVENTS_PUBLISHED_TOTAL = Counter(
    "feedback_hub_events_published_total",
    "Events handed to Publish",
    ["event_type"],
)

EVENTS_UNHANDLED_TOTAL = Counter(
    "feedback_hub_events_unhandled_total",
    "Events published with no registered handler",
    ["event_type"],
)

HANDLER_FAILURES_TOTAL = Counter(
    "feedback_hub_event_handler_failures_total",
    "Handler invocations that raised",
    ["event_type"],
)

SUBSCRIPTIONS = Gauge(
    "feedback_hub_event_subscriptions",
    "Handlers currently registered",
    ["event_type"],
)

DISPATCH_SECONDS = Histogram(
    "feedback_hub_event_dispatch_seconds",
    "Wall time spent running all handlers for one Publish",
    ["event_type"],
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0),
)

PUBLISH_FAILURES_IGNORED_TOTAL = Counter(
    "feedback_hub_publish_failures_ignored_total",
    "Publish failures logged and swallowed by producers",
    ["event_type"],
)


# ---------------------------------------------------------------------------
# Recording helpers
# ---------------------------------------------------------------------------

def record_publish(event_type: str, handler_count: int) -> None:
    EVENTS_PUBLISHED_TOTAL.labels(event_type=event_type).inc()
    if handler_count == 0:
        EVENTS_UNHANDLED_TOTAL.labels(event_type=event_type).inc()


def record_handler_failure(event_type: str) -> None:
    HANDLER_FAILURES_TOTAL.labels(event_type=event_type).inc()


def record_dispatch(event_type: str, seconds: float) -> None:
    DISPATCH_SECONDS.labels(event_type=event_type).observe(seconds)


def record_subscriptions(event_type: str, count: int) -> None:
    SUBSCRIPTIONS.labels(event_type=event_type).set(count)


def record_ignored_publish_failure(event_type: str) -> None:
    PUBLISH_FAILURES_IGNORED_TOTAL.labels(event_type=event_type).inc()


def start_metrics_server(port: int = 9090) -> None:
    """Start the Prometheus metrics HTTP server."""
    start_http_server(port)
    logger.info("Metrics server started on port %d", port)
