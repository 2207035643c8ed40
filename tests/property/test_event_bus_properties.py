"""Property test: InMemoryEventBus dispatch and registry invariants.

Uses hypothesis to generate handler counts, failure masks and
subscribe/unsubscribe sequences, and checks the bus against a plain list
model of the registry.
"""

import pytest
from hypothesis import given, settings, strategies as st

from feedback_hub.core.errors import (
    HandlerFailureError,
    InvalidArgumentError,
    NotFoundError,
)
from feedback_hub.domain.events import DomainEvent, UserCreated
from feedback_hub.infrastructure.event_bus import InMemoryEventBus

TAG = "user.created"

event_tags = st.from_regex(r"[a-z]{1,8}\.[a-z_]{1,12}", fullmatch=True)


def _recording_handler(index: int, log: list, fail: bool = False):
    """Handler that appends *index* to *log*, raising afterwards if *fail*."""
    def handler(ctx, event):
        log.append(index)
        if fail:
            raise ValueError(str(index))
    return handler


@settings(max_examples=50)
@given(tag=event_tags, n_other=st.integers(min_value=0, max_value=5))
def test_publish_without_handlers_is_noop(tag, n_other):
    """Publishing a tag nobody subscribed to succeeds and calls nothing."""
    bus = InMemoryEventBus(log_registrations=False)
    log: list[int] = []
    for i in range(n_other):
        bus.subscribe(f"other{tag}", _recording_handler(i, log))

    bus.publish(None, DomainEvent(event_type=tag))

    assert log == []
    assert bus.get_error_counts() == {}


@settings(max_examples=50)
@given(n_handlers=st.integers(min_value=1, max_value=20))
def test_handlers_run_in_registration_order(n_handlers):
    bus = InMemoryEventBus(log_registrations=False)
    log: list[int] = []
    for i in range(n_handlers):
        bus.subscribe(TAG, _recording_handler(i, log))

    bus.publish(None, UserCreated(user_id="u1"))

    assert log == list(range(n_handlers))


@settings(max_examples=100)
@given(failures=st.lists(st.booleans(), min_size=1, max_size=15))
def test_every_handler_runs_and_every_failure_reported(failures):
    """All handlers run; the aggregated error holds exactly the failures, in order."""
    bus = InMemoryEventBus(log_registrations=False)
    log: list[int] = []
    for i, fail in enumerate(failures):
        bus.subscribe(TAG, _recording_handler(i, log, fail))
    failing = [i for i, fail in enumerate(failures) if fail]

    if failing:
        with pytest.raises(HandlerFailureError) as info:
            bus.publish(None, UserCreated(user_id="u1"))
        assert [str(e) for e in info.value.exceptions] == [str(i) for i in failing]
        assert bus.get_error_counts() == {TAG: len(failing)}
    else:
        bus.publish(None, UserCreated(user_id="u1"))
        assert bus.get_error_counts() == {}

    assert log == list(range(len(failures)))
    assert bus.messages_processed == len(failures) - len(failing)


@settings(max_examples=50)
@given(n_handlers=st.integers(min_value=1, max_value=10))
def test_fan_out_delivers_same_instance(n_handlers):
    bus = InMemoryEventBus(log_registrations=False)
    seen: list[DomainEvent] = []
    for _ in range(n_handlers):
        bus.subscribe(TAG, lambda ctx, event: seen.append(event))
    event = UserCreated(user_id="user-123")

    bus.publish(None, event)

    assert len(seen) == n_handlers
    assert all(e is event for e in seen)


@settings(max_examples=100)
@given(
    ops=st.lists(
        st.tuples(st.sampled_from(["subscribe", "unsubscribe"]), st.integers(0, 3)),
        max_size=30,
    ),
)
def test_registry_matches_list_model(ops):
    """Random subscribe/unsubscribe sequences behave like append / remove-first."""
    bus = InMemoryEventBus(log_registrations=False)
    log: list[int] = []
    pool = [_recording_handler(i, log) for i in range(4)]
    model: list[int] = []

    for op, index in ops:
        if op == "subscribe":
            bus.subscribe(TAG, pool[index])
            model.append(index)
        elif index in model:
            bus.unsubscribe(TAG, pool[index])
            model.remove(index)
        else:
            with pytest.raises(NotFoundError):
                bus.unsubscribe(TAG, pool[index])
        assert bus.handler_count(TAG) == len(model)

    assert bus.event_types() == ([TAG] if model else [])
    bus.publish(None, UserCreated(user_id="u1"))
    assert log == model


INVALID_CALLS = [
    lambda bus, h: bus.subscribe("", h),
    lambda bus, h: bus.subscribe(TAG, None),
    lambda bus, h: bus.subscribe(TAG, "not callable"),
    lambda bus, h: bus.unsubscribe("", h),
    lambda bus, h: bus.unsubscribe(TAG, None),
    lambda bus, h: bus.publish(None, None),
]


@settings(max_examples=60)
@given(
    n_handlers=st.integers(min_value=0, max_value=5),
    call=st.sampled_from(INVALID_CALLS),
)
def test_invalid_input_leaves_registry_unchanged(n_handlers, call):
    bus = InMemoryEventBus(log_registrations=False)
    log: list[int] = []
    for i in range(n_handlers):
        bus.subscribe(TAG, _recording_handler(i, log))
    before_types = bus.event_types()

    with pytest.raises(InvalidArgumentError):
        call(bus, _recording_handler(99, log))

    assert bus.event_types() == before_types
    assert bus.handler_count(TAG) == n_handlers
    assert bus.messages_processed == 0
    bus.publish(None, UserCreated(user_id="u1"))
    assert log == list(range(n_handlers))
