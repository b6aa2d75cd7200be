"""Best-effort fan-out of events to a Redis stream for consumers in other processes."""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from redis.exceptions import RedisError

from fundraising_events.domain.models.event import DEFAULT_EVENT_VERSION, DomainEvent, parse_timestamp
from fundraising_events.infrastructure.cache.redis_client import RedisClient

logger = logging.getLogger(__name__)

DEFAULT_STREAM_NAME = "events"


def to_stream_fields(event: DomainEvent) -> Dict[str, str]:
    """Stream entries are flat string maps; nested values travel as JSON."""
    return {
        "id": event.id,
        "type": event.type,
        "payload": json.dumps(event.payload, default=str),
        "timestamp": str(event.occurred_at_ms),
        "version": event.version,
        "correlationId": event.correlation_id or "",
        "causationId": event.causation_id or "",
        "metadata": json.dumps(event.metadata or {}, default=str),
    }


def from_stream_fields(fields: Dict[str, str]) -> DomainEvent:
    return DomainEvent(
        id=fields["id"],
        type=fields["type"],
        timestamp=parse_timestamp(fields["timestamp"]),
        payload=json.loads(fields.get("payload") or "{}"),
        version=fields.get("version") or DEFAULT_EVENT_VERSION,
        correlation_id=fields.get("correlationId") or None,
        causation_id=fields.get("causationId") or None,
        metadata=json.loads(fields.get("metadata") or "{}"),
    )


@dataclass(frozen=True)
class StreamEntry:
    entry_id: str
    event: DomainEvent


class RedisEventStream:
    """
    Publisher for the `events` stream. connect() retries with exponential backoff
    (reconnect_delay_seconds * 2**attempt) up to max_reconnect_attempts, then gives up;
    after that the stream stays disconnected until connect() is called again.
    """

    def __init__(
        self,
        redis_client: RedisClient,
        *,
        stream_name: str = DEFAULT_STREAM_NAME,
        max_reconnect_attempts: int = 5,
        reconnect_delay_seconds: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._redis = redis_client
        self._stream = stream_name
        self._max_attempts = max_reconnect_attempts
        self._base_delay = reconnect_delay_seconds
        self._sleep = sleep
        self._connected = False
        self._gave_up = False
        self._reconnect_attempts = 0

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def stream_name(self) -> str:
        return self._stream

    async def connect(self) -> bool:
        """Ping until reachable or out of attempts. Returns the resulting connection state."""
        self._gave_up = False
        self._reconnect_attempts = 0
        while True:
            try:
                await self._redis.ping()
            except (RedisError, OSError) as e:
                if self._reconnect_attempts >= self._max_attempts:
                    self._connected = False
                    self._gave_up = True
                    logger.error(
                        "stream_reconnect_exhausted",
                        extra={"stream": self._stream, "attempts": self._reconnect_attempts, "error": str(e)},
                    )
                    return False
                delay = self._base_delay * (2 ** self._reconnect_attempts)
                self._reconnect_attempts += 1
                logger.warning(
                    "stream_reconnecting",
                    extra={"stream": self._stream, "attempt": self._reconnect_attempts, "delay_seconds": delay},
                )
                await self._sleep(delay)
                continue
            self._connected = True
            self._reconnect_attempts = 0
            logger.info("stream_connected", extra={"stream": self._stream})
            return True

    async def disconnect(self) -> None:
        self._connected = False
        await self._redis.close()

    async def _ensure_connected(self) -> bool:
        if self._connected:
            return True
        if self._gave_up:
            return False
        return await self.connect()

    async def publish_to_stream(self, event: DomainEvent) -> Optional[str]:
        """XADD one event. Returns the entry id, or None when the stream is unavailable."""
        if not await self._ensure_connected():
            logger.warning("stream_publish_skipped", extra={"stream": self._stream, "event_id": event.id})
            return None
        try:
            entry_id = await self._redis.xadd(self._stream, to_stream_fields(event))
        except (RedisError, OSError) as e:
            self._connected = False
            logger.error(
                "stream_publish_failed",
                extra={"stream": self._stream, "event_id": event.id, "error": str(e)},
            )
            await self.connect()
            raise
        logger.debug("stream_published", extra={"stream": self._stream, "entry_id": entry_id})
        return entry_id

    async def publish_batch(self, events: Sequence[DomainEvent]) -> List[str]:
        if not events:
            return []
        if not await self._ensure_connected():
            logger.warning("stream_publish_skipped", extra={"stream": self._stream, "count": len(events)})
            return []
        try:
            return await self._redis.xadd_many(self._stream, [to_stream_fields(e) for e in events])
        except (RedisError, OSError) as e:
            self._connected = False
            logger.error(
                "stream_batch_publish_failed",
                extra={"stream": self._stream, "count": len(events), "error": str(e)},
            )
            await self.connect()
            raise

    async def read_events(self, last_id: str = "0", count: int = 100) -> List[StreamEntry]:
        """Entries after last_id. Entries that do not decode are logged and skipped."""
        entries = []
        for entry_id, fields in await self._redis.xread(self._stream, last_id, count):
            try:
                entries.append(StreamEntry(entry_id=entry_id, event=from_stream_fields(fields)))
            except (KeyError, ValueError) as e:
                logger.warning(
                    "stream_entry_malformed",
                    extra={"stream": self._stream, "entry_id": entry_id, "error": str(e)},
                )
        return entries

    async def get_stream_length(self) -> int:
        return await self._redis.xlen(self._stream)
