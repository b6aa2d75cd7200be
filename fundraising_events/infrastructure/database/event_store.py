"""Append-only event store over the `event_store` table, with a batched write queue."""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from fundraising_events.application.exceptions import EventStoreError
from fundraising_events.application.ports import ChangeFeed, Row, RowStore, Unsubscribe
from fundraising_events.domain.models.event import DEFAULT_EVENT_VERSION, DomainEvent, parse_timestamp

logger = logging.getLogger(__name__)

EVENT_STORE_TABLE = "event_store"

# First payload key present wins.
AGGREGATE_ID_KEYS = ("userId", "campaignId", "donationId", "organizationId")


def extract_aggregate_id(payload: Dict[str, Any]) -> Optional[str]:
    for key in AGGREGATE_ID_KEYS:
        value = payload.get(key)
        if value:
            return str(value)
    return None


def event_to_row(event: DomainEvent) -> Row:
    return {
        "event_id": event.id,
        "event_type": event.type,
        "event_data": event.payload,
        "event_version": event.version,
        "occurred_at": event.timestamp,
        "correlation_id": event.correlation_id,
        "causation_id": event.causation_id,
        "aggregate_id": extract_aggregate_id(event.payload),
        "metadata": event.metadata or {},
    }


def row_to_event(row: Row) -> DomainEvent:
    return DomainEvent(
        id=str(row["event_id"]),
        type=row["event_type"],
        timestamp=parse_timestamp(row["occurred_at"]),
        payload=dict(row.get("event_data") or {}),
        version=row.get("event_version") or DEFAULT_EVENT_VERSION,
        correlation_id=row.get("correlation_id"),
        causation_id=row.get("causation_id"),
        metadata=dict(row.get("metadata") or {}),
    )


class RowStoreEventStore:
    """
    save()/save_batch() are the only write paths and fail loudly with EventStoreError.
    enqueue() buffers events; the buffer flushes at batch_size or every flush_interval_seconds
    once start() has been called. A failed flush puts the batch back at the front of the queue.
    """

    def __init__(
        self,
        row_store: RowStore,
        *,
        change_feed: Optional[ChangeFeed] = None,
        batch_size: int = 50,
        flush_interval_seconds: float = 1.0,
    ) -> None:
        self._rows = row_store
        self._change_feed = change_feed
        self._batch_size = batch_size
        self._flush_interval = flush_interval_seconds
        self._queue: List[DomainEvent] = []
        self._flush_lock = asyncio.Lock()
        self._flush_task: Optional[asyncio.Task] = None

    @property
    def pending(self) -> int:
        return len(self._queue)

    async def save(self, event: DomainEvent) -> None:
        try:
            await self._rows.insert(EVENT_STORE_TABLE, event_to_row(event))
        except Exception as e:
            logger.error(
                "event_persist_failed",
                extra={"event_id": event.id, "event_type": event.type, "error": str(e)},
            )
            raise EventStoreError(f"Failed to persist event {event.id}: {e}") from e
        logger.debug("event_persisted", extra={"event_id": event.id, "event_type": event.type})

    async def save_batch(self, events: Sequence[DomainEvent]) -> None:
        if not events:
            return
        try:
            await self._rows.insert(EVENT_STORE_TABLE, [event_to_row(e) for e in events])
        except Exception as e:
            logger.error("event_batch_persist_failed", extra={"count": len(events), "error": str(e)})
            raise EventStoreError(f"Failed to persist batch of {len(events)} events: {e}") from e
        logger.debug("event_batch_persisted", extra={"count": len(events)})

    async def enqueue(self, event: DomainEvent) -> None:
        self._queue.append(event)
        if len(self._queue) >= self._batch_size:
            await self.flush()

    async def flush(self) -> int:
        """Write up to batch_size queued events. Returns how many were written."""
        async with self._flush_lock:
            if not self._queue:
                return 0
            batch = self._queue[: self._batch_size]
            del self._queue[: len(batch)]
            try:
                await self.save_batch(batch)
            except EventStoreError:
                self._queue[:0] = batch
                raise
            return len(batch)

    async def _flush_periodically(self) -> None:
        while True:
            await asyncio.sleep(self._flush_interval)
            try:
                await self.flush()
            except EventStoreError:
                logger.warning("event_auto_flush_failed", extra={"pending": len(self._queue)})

    def start(self) -> None:
        if self._flush_task is None or self._flush_task.done():
            self._flush_task = asyncio.create_task(self._flush_periodically())

    async def close(self) -> None:
        """Stop the auto-flush task and drain the queue."""
        if self._flush_task is not None:
            self._flush_task.cancel()
            try:
                await self._flush_task
            except asyncio.CancelledError:
                pass
            self._flush_task = None
        while self._queue:
            await self.flush()

    async def get_events(
        self,
        from_timestamp: Optional[datetime] = None,
        to_timestamp: Optional[datetime] = None,
        event_types: Optional[Sequence[str]] = None,
        aggregate_id: Optional[str] = None,
    ) -> List[DomainEvent]:
        where: Dict[str, Any] = {}
        if event_types:
            where["event_type"] = list(event_types)
        if aggregate_id:
            where["aggregate_id"] = aggregate_id
        try:
            rows = await self._rows.select(
                EVENT_STORE_TABLE,
                where,
                gte={"occurred_at": from_timestamp} if from_timestamp else None,
                lte={"occurred_at": to_timestamp} if to_timestamp else None,
                order_by="occurred_at",
            )
        except Exception as e:
            raise EventStoreError(f"Failed to read events: {e}") from e
        return [row_to_event(row) for row in rows]

    async def get_events_by_type(self, event_type: str) -> List[DomainEvent]:
        return await self.get_events(event_types=[event_type])

    async def get_events_by_aggregate(self, aggregate_id: str) -> List[DomainEvent]:
        return await self.get_events(aggregate_id=aggregate_id)

    async def get_events_by_correlation(self, correlation_id: str) -> List[DomainEvent]:
        try:
            rows = await self._rows.select(
                EVENT_STORE_TABLE,
                {"correlation_id": correlation_id},
                order_by="occurred_at",
            )
        except Exception as e:
            raise EventStoreError(f"Failed to read events: {e}") from e
        return [row_to_event(row) for row in rows]

    async def stream_events(self, callback: Callable[[DomainEvent], Awaitable[None]]) -> Unsubscribe:
        """Call back with every event inserted from now on. Returns an async unsubscribe function."""
        if self._change_feed is None:
            raise EventStoreError("Event streaming requires a change feed")

        async def on_insert(row: Row) -> None:
            await callback(row_to_event(row))

        return await self._change_feed.subscribe(EVENT_STORE_TABLE, on_insert)
