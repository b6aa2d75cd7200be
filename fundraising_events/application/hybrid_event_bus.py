"""Bus that combines the event store, local dispatch, a Redis stream and the remote processor."""

import asyncio
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

from fundraising_events.application.event_bus import EventBus
from fundraising_events.application.exceptions import EventBusNotConnectedError
from fundraising_events.application.middleware import EventMiddleware
from fundraising_events.application.ports import ChangeFeed, Handler, Row, Unsubscribe
from fundraising_events.application.remote_trigger import RemoteProcessingTrigger
from fundraising_events.domain.models.event import DomainEvent
from fundraising_events.infrastructure.database.event_store import (
    EVENT_STORE_TABLE,
    RowStoreEventStore,
    row_to_event,
)
from fundraising_events.infrastructure.messaging.redis_stream import RedisEventStream
from fundraising_events.scalability.circuit_breaker import CircuitOpenError

logger = logging.getLogger(__name__)

CLIENT_ID_KEY = "clientId"


class HybridEventBus:
    """
    Publish order is fixed: before_publish middleware -> event store -> local handlers ->
    after_publish -> Redis stream (best effort) -> remote processor (best effort, background).
    A store failure fails the publish before anything is dispatched; stream and remote
    failures are logged and never reach the publisher.

    Every outgoing event is stamped with metadata.clientId. Inserts seen on the change
    feed that carry this bus's own clientId are dropped, so an event is never handled
    twice locally; foreign events go to local handlers only.
    """

    def __init__(
        self,
        store: RowStoreEventStore,
        *,
        stream: Optional[RedisEventStream] = None,
        trigger: Optional[RemoteProcessingTrigger] = None,
        change_feed: Optional[ChangeFeed] = None,
        middleware: Sequence[EventMiddleware] = (),
        enable_remote_publish: bool = True,
        enable_remote_trigger: bool = True,
        enable_replay: bool = True,
        client_id: Optional[str] = None,
    ) -> None:
        self._store = store
        self._stream = stream
        self._trigger = trigger
        self._change_feed = change_feed
        self._enable_remote_publish = enable_remote_publish
        self._enable_remote_trigger = enable_remote_trigger
        self._client_id = client_id or str(uuid.uuid4())
        # Persistence is done here, so the local bus never writes.
        self._local = EventBus(store, middleware, enable_persistence=False, enable_replay=enable_replay)
        self._pending_triggers: Set[asyncio.Task] = set()
        self._unsubscribe_feed: Optional[Unsubscribe] = None
        self._connected = False

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def local_bus(self) -> EventBus:
        return self._local

    async def connect(self) -> None:
        if self._connected:
            return
        await self._local.connect()
        if self._stream is not None and self._enable_remote_publish:
            await self._stream.connect()
        self._store.start()
        if self._change_feed is not None:
            self._unsubscribe_feed = await self._change_feed.subscribe(
                EVENT_STORE_TABLE, self._on_external_insert
            )
        self._connected = True
        logger.info("hybrid_event_bus_connected", extra={"client_id": self._client_id})

    async def disconnect(self) -> None:
        if self._unsubscribe_feed is not None:
            await self._unsubscribe_feed()
            self._unsubscribe_feed = None
        await self.drain()
        await self._store.close()
        if self._stream is not None and self._stream.is_connected:
            await self._stream.disconnect()
        await self._local.disconnect()
        self._connected = False
        logger.info("hybrid_event_bus_disconnected", extra={"client_id": self._client_id})

    # --- subscriptions delegate to the local bus ---

    def subscribe(self, event_type: str, handler: Handler) -> Callable[[], None]:
        return self._local.subscribe(event_type, handler)

    def unsubscribe(self, event_type: str, handler: Handler) -> None:
        self._local.unsubscribe(event_type, handler)

    def unsubscribe_all(self) -> None:
        self._local.unsubscribe_all()

    # --- publishing ---

    def _stamp(self, event: DomainEvent) -> DomainEvent:
        return event.with_metadata(**{CLIENT_ID_KEY: self._client_id})

    def _require_connected(self) -> None:
        if not self._connected:
            raise EventBusNotConnectedError("Hybrid event bus is not connected")

    async def publish(self, event: DomainEvent) -> DomainEvent:
        self._require_connected()
        stamped = self._stamp(event)
        try:
            prepared = await self._local.prepare(stamped)
            await self._store.save(prepared)
            await self._local.dispatch(prepared)
            await self._local.finalize(prepared)
        except Exception as e:
            await self._local.report_error(e, stamped)
            raise
        await self._publish_remote([prepared])
        self._schedule_trigger([prepared])
        return prepared

    async def publish_batch(self, events: Sequence[DomainEvent]) -> List[DomainEvent]:
        self._require_connected()
        if not events:
            return []
        prepared: List[DomainEvent] = []
        current: Optional[DomainEvent] = None
        try:
            for event in events:
                current = self._stamp(event)
                prepared.append(await self._local.prepare(current))
            await self._store.save_batch(prepared)
            for event in prepared:
                current = event
                await self._local.dispatch(event)
                await self._local.finalize(event)
        except Exception as e:
            await self._local.report_error(e, current)
            raise
        await self._publish_remote(prepared)
        self._schedule_trigger(prepared)
        return prepared

    async def replay(self, from_timestamp: Optional[datetime] = None) -> int:
        return await self._local.replay(from_timestamp)

    # --- best-effort fan-out ---

    async def _publish_remote(self, events: List[DomainEvent]) -> None:
        if self._stream is None or not self._enable_remote_publish:
            return
        try:
            if len(events) == 1:
                await self._stream.publish_to_stream(events[0])
            else:
                await self._stream.publish_batch(events)
        except Exception as e:
            logger.error(
                "remote_publish_failed",
                extra={"count": len(events), "event_id": events[0].id, "error": str(e)},
            )

    def _schedule_trigger(self, events: List[DomainEvent]) -> None:
        if self._trigger is None or not self._enable_remote_trigger:
            return
        task = asyncio.create_task(self._run_trigger(events))
        self._pending_triggers.add(task)
        task.add_done_callback(self._pending_triggers.discard)

    async def _run_trigger(self, events: List[DomainEvent]) -> None:
        try:
            if len(events) == 1:
                await self._trigger.trigger(events[0])
            else:
                await self._trigger.trigger_batch(events)
        except CircuitOpenError:
            logger.warning(
                "remote_trigger_skipped",
                extra={"count": len(events), "event_id": events[0].id, "reason": "circuit_open"},
            )
        except Exception as e:
            logger.error(
                "remote_trigger_failed",
                extra={"count": len(events), "event_id": events[0].id, "error": str(e)},
            )

    async def drain(self) -> None:
        """Wait for outstanding remote triggers."""
        if self._pending_triggers:
            await asyncio.gather(*list(self._pending_triggers), return_exceptions=True)

    # --- events written by other processes ---

    async def _on_external_insert(self, row: Row) -> None:
        try:
            event = row_to_event(row)
        except (KeyError, TypeError, ValueError) as e:
            logger.error("external_event_malformed", extra={"error": str(e)})
            return
        if event.metadata.get(CLIENT_ID_KEY) == self._client_id:
            return
        logger.debug(
            "external_event_received",
            extra={"event_id": event.id, "event_type": event.type, "origin": event.metadata.get(CLIENT_ID_KEY)},
        )
        await self._local.dispatch(event)

    def circuit_breaker_stats(self) -> Optional[Dict[str, Any]]:
        return self._trigger.breaker.stats() if self._trigger is not None else None
