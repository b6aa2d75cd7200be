"""Local EventBus: ordering, failure isolation, middleware and replay."""

import pytest

from fundraising_events.application.dead_letter_queue import DEAD_LETTER_TABLE, DeadLetterQueueManager
from fundraising_events.application.event_bus import EventBus
from fundraising_events.application.exceptions import EventBusNotConnectedError, ReplayNotEnabledError
from fundraising_events.application.middleware import (
    DeadLetterMiddleware,
    EventMiddleware,
    MetricsMiddleware,
    SchemaValidationMiddleware,
)
from fundraising_events.domain.exceptions import EventValidationError
from fundraising_events.domain.schemas.registry import default_schema_registry
from fundraising_events.infrastructure.database.event_store import RowStoreEventStore
from fundraising_events.observability.metrics import EventMetricsCollector


class Recorder:
    def __init__(self, name, calls, fail=False):
        self.name = name
        self.calls = calls
        self.fail = fail

    async def handle(self, event):
        self.calls.append(self.name)
        if self.fail:
            raise RuntimeError(f"{self.name} broke")


class RecordingMiddleware(EventMiddleware):
    def __init__(self):
        self.errors = []
        self.published = []

    async def after_publish(self, event):
        self.published.append(event.id)

    async def on_error(self, error, event, source):
        self.errors.append((source, str(error)))


@pytest.mark.asyncio
async def test_publish_requires_connect(make_event):
    bus = EventBus()
    with pytest.raises(EventBusNotConnectedError):
        await bus.publish(make_event("campaign.created", {}))


@pytest.mark.asyncio
async def test_handlers_run_in_subscription_order(make_event):
    calls = []
    bus = EventBus()
    await bus.connect()
    bus.subscribe("campaign.created", Recorder("exact", calls))
    bus.subscribe("campaign.*", Recorder("prefix", calls))
    bus.subscribe("*", Recorder("all", calls))
    bus.subscribe("donation.*", Recorder("other", calls))

    await bus.publish(make_event("campaign.created", {}))

    assert calls == ["exact", "prefix", "all"]


@pytest.mark.asyncio
async def test_failing_handler_does_not_stop_the_rest(make_event):
    calls = []
    recorder = RecordingMiddleware()
    bus = EventBus(middleware=[recorder])
    await bus.connect()
    bus.subscribe("campaign.created", Recorder("first", calls, fail=True))
    bus.subscribe("campaign.created", Recorder("second", calls))

    published = await bus.publish(make_event("campaign.created", {}))

    assert calls == ["first", "second"]
    assert recorder.errors == [("first", "first broke")]
    assert recorder.published == [published.id]


@pytest.mark.asyncio
async def test_unsubscribe(make_event):
    calls = []
    bus = EventBus()
    await bus.connect()
    unsubscribe = bus.subscribe("campaign.created", Recorder("a", calls))
    unsubscribe()
    await bus.publish(make_event("campaign.created", {}))
    assert calls == []


@pytest.mark.asyncio
async def test_plain_async_function_handler(make_event):
    seen = []

    async def on_event(event):
        seen.append(event.type)

    bus = EventBus()
    await bus.connect()
    bus.subscribe("donation.*", on_event)
    await bus.publish(make_event("donation.failed", {}))
    assert seen == ["donation.failed"]


@pytest.mark.asyncio
async def test_invalid_payload_rejected_before_dispatch(make_event):
    calls = []
    recorder = RecordingMiddleware()
    bus = EventBus(middleware=[SchemaValidationMiddleware(default_schema_registry()), recorder])
    await bus.connect()
    bus.subscribe("*", Recorder("any", calls))

    with pytest.raises(EventValidationError):
        await bus.publish(make_event("donation.completed", {"donationId": "d1"}))

    assert calls == []
    assert recorder.errors and recorder.errors[0][0] is None


@pytest.mark.asyncio
async def test_persistence_before_dispatch(make_event, row_store):
    order = []
    store = RowStoreEventStore(row_store)
    bus = EventBus(store, enable_persistence=True)
    await bus.connect()

    async def check_persisted(event):
        order.append(len(row_store.rows("event_store")))

    bus.subscribe("*", check_persisted)
    await bus.publish(make_event("campaign.created", {"campaignId": "c1"}))

    assert order == [1]


@pytest.mark.asyncio
async def test_publish_batch_persists_once(make_event, row_store):
    store = RowStoreEventStore(row_store)
    bus = EventBus(store, enable_persistence=True)
    await bus.connect()
    events = [make_event("campaign.created", {"campaignId": f"c{i}"}) for i in range(3)]

    published = await bus.publish_batch(events)

    assert len(published) == 3
    assert row_store.count_writes("event_store") == 1
    assert len(row_store.rows("event_store")) == 3


@pytest.mark.asyncio
async def test_replay_requires_enable_replay():
    bus = EventBus()
    await bus.connect()
    with pytest.raises(ReplayNotEnabledError):
        await bus.replay()


@pytest.mark.asyncio
async def test_replay_redispatches_stored_events(make_event, row_store):
    calls = []
    store = RowStoreEventStore(row_store)
    bus = EventBus(store, enable_persistence=True, enable_replay=True)
    await bus.connect()
    await bus.publish(make_event("campaign.created", {"campaignId": "c1"}))
    bus.subscribe("campaign.*", Recorder("late", calls))

    assert await bus.replay() == 1
    assert calls == ["late"]


@pytest.mark.asyncio
async def test_dead_letter_middleware_parks_failed_handler(make_event, row_store, invoker):
    dead_letters = DeadLetterQueueManager(row_store, invoker)
    metrics = EventMetricsCollector()
    bus = EventBus(middleware=[MetricsMiddleware(metrics), DeadLetterMiddleware(dead_letters)])
    await bus.connect()
    bus.subscribe("campaign.created", Recorder("Broken", [], fail=True))
    event = make_event("campaign.created", {})

    await bus.publish(event)

    rows = row_store.rows(DEAD_LETTER_TABLE)
    assert len(rows) == 1
    assert rows[0]["processor_name"] == "Broken"
    assert rows[0]["original_event_id"] == event.id
    assert rows[0]["failure_count"] == 1
    exported = metrics.export_metrics()
    assert exported["total_published"] == 1
    assert "event_errors" in exported["counters_by_labels"]
