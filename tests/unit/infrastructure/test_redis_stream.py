"""RedisEventStream publishing, reconnect backoff and entry decoding."""

import json

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from fundraising_events.domain.models.event import create_event
from fundraising_events.infrastructure.messaging.redis_stream import (
    RedisEventStream,
    from_stream_fields,
    to_stream_fields,
)


class FakeStreamRedis:
    def __init__(self, ping_failures=0):
        self.ping_failures = ping_failures
        self.pings = 0
        self.entries = []

    async def ping(self):
        self.pings += 1
        if self.ping_failures:
            self.ping_failures -= 1
            raise RedisConnectionError("refused")
        return True

    async def xadd(self, stream, fields):
        self.entries.append((f"{len(self.entries) + 1}-0", fields))
        return self.entries[-1][0]

    async def xadd_many(self, stream, entries):
        return [await self.xadd(stream, fields) for fields in entries]

    async def xread(self, stream, last_id="0", count=100):
        return [e for e in self.entries if e[0] > last_id][:count]

    async def xlen(self, stream):
        return len(self.entries)

    async def close(self):
        return None


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def test_stream_fields_are_flat_strings():
    event = create_event("donation.completed", {"amount": 5}, metadata={"clientId": "a"})
    fields = to_stream_fields(event)
    assert all(isinstance(v, str) for v in fields.values())
    assert json.loads(fields["payload"]) == {"amount": 5}
    assert fields["causationId"] == ""
    restored = from_stream_fields(fields)
    assert restored.id == event.id
    assert restored.metadata == {"clientId": "a"}
    assert restored.causation_id is None


@pytest.mark.asyncio
async def test_connect_backs_off_exponentially():
    sleep = RecordingSleep()
    stream = RedisEventStream(FakeStreamRedis(ping_failures=3), reconnect_delay_seconds=0.5, sleep=sleep)

    assert await stream.connect() is True
    assert sleep.delays == [0.5, 1.0, 2.0]
    assert stream.is_connected


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts():
    sleep = RecordingSleep()
    redis = FakeStreamRedis(ping_failures=100)
    stream = RedisEventStream(redis, max_reconnect_attempts=2, reconnect_delay_seconds=1, sleep=sleep)

    assert await stream.connect() is False
    assert sleep.delays == [1, 2]
    assert redis.pings == 3

    assert await stream.publish_to_stream(create_event("campaign.created", {})) is None
    assert redis.pings == 3
    assert redis.entries == []


@pytest.mark.asyncio
async def test_publish_and_read_back():
    redis = FakeStreamRedis()
    stream = RedisEventStream(redis, sleep=RecordingSleep())
    await stream.connect()
    first = create_event("campaign.created", {"campaignId": "c1"})
    others = [create_event("donation.completed", {"n": i}) for i in range(2)]

    entry_id = await stream.publish_to_stream(first)
    ids = await stream.publish_batch(others)

    assert entry_id == "1-0"
    assert ids == ["2-0", "3-0"]
    assert await stream.get_stream_length() == 3
    read = await stream.read_events(last_id="1-0")
    assert [e.event.id for e in read] == [e.id for e in others]


@pytest.mark.asyncio
async def test_malformed_entries_are_skipped():
    redis = FakeStreamRedis()
    redis.entries.append(("1-0", {"type": "campaign.created"}))
    stream = RedisEventStream(redis, sleep=RecordingSleep())
    await stream.connect()
    await stream.publish_to_stream(create_event("campaign.created", {}))

    read = await stream.read_events()

    assert [e.entry_id for e in read] == ["2-0"]
