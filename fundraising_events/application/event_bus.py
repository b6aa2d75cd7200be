"""In-process event dispatcher with middleware, optional persistence and replay."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from fundraising_events.application.exceptions import EventBusNotConnectedError, ReplayNotEnabledError
from fundraising_events.application.middleware import EventMiddleware
from fundraising_events.application.ports import EventStore, Handler
from fundraising_events.core.context import correlation_id_ctx, event_id_ctx
from fundraising_events.domain.event_types import matches
from fundraising_events.domain.models.event import DomainEvent

logger = logging.getLogger(__name__)


def handler_name(handler: Handler) -> str:
    """Stable name used for logs, dead letters and idempotency."""
    for candidate in (getattr(handler, "name", None), getattr(handler, "__qualname__", None)):
        if isinstance(candidate, str):
            return candidate
    return type(handler).__name__


def _callable_for(handler: Handler):
    # Objects whose class defines handle() are handlers; anything else is called directly.
    if hasattr(type(handler), "handle"):
        return handler.handle
    return handler


@dataclass(frozen=True)
class _Subscription:
    pattern: str
    handler: Handler


class EventBus:
    """
    Handlers run one after another in subscription order. A failing handler is reported
    through on_error middleware and never stops the rest. Middleware and persistence
    failures run on_error and are re-raised to the publisher.
    """

    def __init__(
        self,
        store: Optional[EventStore] = None,
        middleware: Sequence[EventMiddleware] = (),
        *,
        enable_persistence: bool = False,
        enable_replay: bool = False,
    ) -> None:
        self._store = store
        self._middleware: List[EventMiddleware] = list(middleware)
        self._enable_persistence = enable_persistence
        self._enable_replay = enable_replay
        self._subscriptions: List[_Subscription] = []
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def connect(self) -> None:
        self._connected = True
        logger.info("event_bus_connected", extra={"persistence": self._enable_persistence})

    async def disconnect(self) -> None:
        self._connected = False
        logger.info("event_bus_disconnected")

    def use(self, middleware: EventMiddleware) -> None:
        self._middleware.append(middleware)

    # --- subscriptions ---

    def subscribe(self, event_type: str, handler: Handler) -> Callable[[], None]:
        """Register handler for an exact type, "prefix*" or "*". Returns an unsubscribe callable."""
        pattern = str(getattr(event_type, "value", event_type))
        subscription = _Subscription(pattern, handler)
        if subscription not in self._subscriptions:
            self._subscriptions.append(subscription)
            logger.debug("handler_subscribed", extra={"pattern": pattern, "handler": handler_name(handler)})
        return lambda: self.unsubscribe(pattern, handler)

    def unsubscribe(self, event_type: str, handler: Handler) -> None:
        pattern = str(getattr(event_type, "value", event_type))
        subscription = _Subscription(pattern, handler)
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def unsubscribe_all(self) -> None:
        self._subscriptions.clear()

    def handlers_for(self, event_type: str) -> List[Handler]:
        return [s.handler for s in self._subscriptions if matches(s.pattern, event_type)]

    # --- pipeline building blocks ---

    async def prepare(self, event: DomainEvent) -> DomainEvent:
        """Run before_publish middleware in order; each may replace the event."""
        for middleware in self._middleware:
            event = await middleware.before_publish(event)
        return event

    async def dispatch(self, event: DomainEvent) -> None:
        """Deliver to matching local handlers only. Never raises for handler failures."""
        correlation_token = correlation_id_ctx.set(event.correlation_id or event.id)
        event_token = event_id_ctx.set(event.id)
        try:
            for handler in self.handlers_for(event.type):
                name = handler_name(handler)
                try:
                    await _callable_for(handler)(event)
                except Exception as e:
                    logger.error(
                        "event_handler_failed",
                        extra={"event_id": event.id, "event_type": event.type, "handler": name, "error": str(e)},
                    )
                    await self.report_error(e, event, source=name)
        finally:
            event_id_ctx.reset(event_token)
            correlation_id_ctx.reset(correlation_token)

    async def finalize(self, event: DomainEvent) -> None:
        for middleware in self._middleware:
            await middleware.after_publish(event)

    async def report_error(
        self,
        error: Exception,
        event: Optional[DomainEvent],
        source: Optional[str] = None,
    ) -> None:
        """Run every on_error hook. A failing hook is logged so it cannot mask the original error."""
        for middleware in self._middleware:
            try:
                await middleware.on_error(error, event, source)
            except Exception as e:
                logger.error(
                    "error_middleware_failed",
                    extra={"middleware": type(middleware).__name__, "error": str(e)},
                )

    def _require_connected(self) -> None:
        if not self._connected:
            raise EventBusNotConnectedError("Event bus is not connected")

    # --- publishing ---

    async def publish(self, event: DomainEvent) -> DomainEvent:
        """before_publish -> persist (optional) -> dispatch -> after_publish. Returns the published event."""
        self._require_connected()
        try:
            prepared = await self.prepare(event)
            if self._enable_persistence and self._store is not None:
                await self._store.save(prepared)
            await self.dispatch(prepared)
            await self.finalize(prepared)
        except Exception as e:
            await self.report_error(e, event)
            raise
        return prepared

    async def publish_batch(self, events: Sequence[DomainEvent]) -> List[DomainEvent]:
        """Same pipeline per event, but persisted with one batch write before any dispatch."""
        self._require_connected()
        prepared: List[DomainEvent] = []
        current: Optional[DomainEvent] = None
        try:
            for event in events:
                current = event
                prepared.append(await self.prepare(event))
            if prepared and self._enable_persistence and self._store is not None:
                await self._store.save_batch(prepared)
            for event in prepared:
                current = event
                await self.dispatch(event)
                await self.finalize(event)
        except Exception as e:
            await self.report_error(e, current)
            raise
        return prepared

    async def replay(self, from_timestamp: Optional[datetime] = None) -> int:
        """Re-dispatch stored events (oldest first) to local handlers. Returns how many."""
        if not self._enable_replay or self._store is None:
            raise ReplayNotEnabledError("Replay requires enable_replay and an event store")
        events = await self._store.get_events(from_timestamp)
        for event in events:
            await self.dispatch(event)
        logger.info("events_replayed", extra={"count": len(events)})
        return len(events)
