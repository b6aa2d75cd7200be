"""Dead-letter recording, reprocessing and stats."""

import asyncio

import pytest

from fundraising_events.application.dead_letter_queue import DEAD_LETTER_TABLE, DeadLetterQueueManager
from fundraising_events.application.ports import InvocationResult


@pytest.fixture
def dlq(row_store, invoker):
    return DeadLetterQueueManager(row_store, invoker)


@pytest.mark.asyncio
async def test_record_failure_creates_entry(dlq, make_event):
    event = make_event("donation.completed", {"donationId": "d1"})
    entry = await dlq.record_failure(event, "DonationProjectionProcessor", "db down")

    assert entry.failure_count == 1
    assert entry.event_data["id"] == event.id
    assert entry.processor_name == "DonationProjectionProcessor"


@pytest.mark.asyncio
async def test_repeat_failure_bumps_count(dlq, make_event, row_store):
    event = make_event("donation.completed", {})
    await dlq.record_failure(event, "P", "first")
    entry = await dlq.record_failure(event, "P", "second")

    assert entry.failure_count == 2
    assert entry.failure_reason == "second"
    assert len(row_store.rows(DEAD_LETTER_TABLE)) == 1


@pytest.mark.asyncio
async def test_reprocess_success_deletes_entry(dlq, make_event, invoker, row_store):
    event = make_event("donation.completed", {})
    entry = await dlq.record_failure(event, "P", "boom")

    assert await dlq.reprocess_event(entry.id) is True

    assert row_store.rows(DEAD_LETTER_TABLE) == []
    name, body = invoker.calls[0]
    assert name == "event-processor"
    assert body == {"events": [entry.event_data]}


@pytest.mark.asyncio
async def test_reprocess_failure_adds_exactly_one(dlq, make_event, invoker):
    entry = await dlq.record_failure(make_event("donation.completed", {}), "P", "boom")
    invoker.result = InvocationResult(error="still broken")

    assert await dlq.reprocess_event(entry.id) is False

    reloaded = await dlq.get_item(entry.id)
    assert reloaded.failure_count == 2


@pytest.mark.asyncio
async def test_reprocess_invoker_exception_counts_as_failure(dlq, make_event, invoker):
    entry = await dlq.record_failure(make_event("donation.completed", {}), "P", "boom")
    invoker.raises = ConnectionError("unreachable")

    assert await dlq.reprocess_event(entry.id) is False
    assert (await dlq.get_item(entry.id)).failure_count == 2


@pytest.mark.asyncio
async def test_reprocess_missing_entry(dlq, invoker):
    assert await dlq.reprocess_event("nope") is False
    assert invoker.calls == []


@pytest.mark.asyncio
async def test_concurrent_reprocess_invokes_once(dlq, make_event, invoker):
    entry = await dlq.record_failure(make_event("donation.completed", {}), "P", "boom")
    gate = asyncio.Event()

    class SlowInvoker:
        calls = 0

        async def invoke(self, function_name, body):
            SlowInvoker.calls += 1
            await gate.wait()
            return InvocationResult(data={})

    dlq._invoker = SlowInvoker()
    first = asyncio.create_task(dlq.reprocess_event(entry.id))
    await asyncio.sleep(0)
    second = await dlq.reprocess_event(entry.id)
    gate.set()

    assert second is False
    assert await first is True
    assert SlowInvoker.calls == 1


@pytest.mark.asyncio
async def test_reprocess_all_counts(dlq, make_event, invoker):
    await dlq.record_failure(make_event("donation.completed", {}), "A", "x")
    await dlq.record_failure(make_event("donation.completed", {}), "B", "x")

    result = await dlq.reprocess_all()

    assert (result.success, result.failed, result.skipped) == (2, 0, 0)


@pytest.mark.asyncio
async def test_reprocess_all_for_one_processor(dlq, make_event, invoker):
    await dlq.record_failure(make_event("donation.completed", {}), "A", "x")
    await dlq.record_failure(make_event("donation.completed", {}), "B", "x")
    invoker.result = InvocationResult(error="nope")

    result = await dlq.reprocess_all("A")

    assert (result.success, result.failed) == (0, 1)
    assert len(result.errors) == 1


@pytest.mark.asyncio
async def test_stats_and_listing(dlq, make_event):
    event = make_event("donation.completed", {})
    await dlq.record_failure(event, "A", "x")
    await dlq.record_failure(event, "A", "x")
    await dlq.record_failure(make_event("donation.completed", {}), "B", "x")

    stats = await dlq.get_stats()

    assert stats.total == 2
    assert stats.by_processor == {"A": 1, "B": 1}
    assert stats.total_failures == 3
    assert [e.processor_name for e in await dlq.get_items("A")] == ["A"]


@pytest.mark.asyncio
async def test_delete_item(dlq, make_event):
    entry = await dlq.record_failure(make_event("donation.completed", {}), "A", "x")
    assert await dlq.delete_item(entry.id) is True
    assert await dlq.delete_item(entry.id) is False
