"""Explicit wiring of the event system. The application owns one EventSystem; there is no global bus."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.ext.asyncio import AsyncEngine

from fundraising_events.application.dead_letter_queue import DeadLetterQueueManager
from fundraising_events.application.hybrid_event_bus import HybridEventBus
from fundraising_events.application.idempotency import EventIdempotencyTracker
from fundraising_events.application.middleware import (
    DeadLetterMiddleware,
    EventMiddleware,
    LoggingMiddleware,
    MetricsMiddleware,
    SchemaValidationMiddleware,
)
from fundraising_events.application.ports import FunctionInvoker, InvocationResult, RowStore
from fundraising_events.application.processors.base import IdempotentProcessor
from fundraising_events.application.processors.registry import build_processors, register_processors
from fundraising_events.application.remote_trigger import RemoteProcessingTrigger
from fundraising_events.application.replay import EventReplayService
from fundraising_events.application.versioning import EventVersionManager, register_default_migrations
from fundraising_events.config.settings import AppSettings, get_settings
from fundraising_events.domain.schemas.registry import SchemaRegistry, default_schema_registry
from fundraising_events.governance.audit_logger import AuditLogger
from fundraising_events.governance.audit_repository import RowStoreAuditRepository
from fundraising_events.infrastructure.cache.idempotency_redis import RedisIdempotencyTracker
from fundraising_events.infrastructure.cache.redis_client import RedisClient
from fundraising_events.infrastructure.database.event_store import RowStoreEventStore
from fundraising_events.infrastructure.database.row_store import SqlAlchemyRowStore
from fundraising_events.infrastructure.database.session import build_engine, create_schema
from fundraising_events.infrastructure.functions.http_invoker import HttpFunctionInvoker
from fundraising_events.infrastructure.messaging.redis_stream import RedisEventStream
from fundraising_events.infrastructure.realtime.change_feed import InProcessChangeFeed
from fundraising_events.observability.metrics import EventMetricsCollector
from fundraising_events.scalability.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)

Tracker = Union[EventIdempotencyTracker, RedisIdempotencyTracker]


class UnconfiguredInvoker:
    """Invoker used when no functions endpoint is configured: every call reports an error."""

    async def invoke(self, function_name: str, body: Dict[str, Any]) -> InvocationResult:
        return InvocationResult(error=f"Remote function '{function_name}' is not configured")


@dataclass
class EventSystem:
    settings: AppSettings
    row_store: RowStore
    change_feed: InProcessChangeFeed
    event_store: RowStoreEventStore
    bus: HybridEventBus
    idempotency: Tracker
    dead_letters: DeadLetterQueueManager
    versions: EventVersionManager
    schemas: SchemaRegistry
    metrics: EventMetricsCollector
    audit: AuditLogger
    replay: EventReplayService
    invoker: FunctionInvoker
    processors: List[IdempotentProcessor] = field(default_factory=list)
    engine: Optional[AsyncEngine] = None
    redis: Optional[RedisClient] = None

    async def start(self, *, create_tables: bool = False) -> None:
        if create_tables and self.engine is not None:
            await create_schema(self.engine)
        self.idempotency.start()
        await self.bus.connect()
        logger.info("event_system_started", extra={"processors": len(self.processors)})

    async def stop(self) -> None:
        await self.bus.disconnect()
        await self.idempotency.stop()
        if isinstance(self.invoker, HttpFunctionInvoker):
            await self.invoker.aclose()
        if self.redis is not None:
            await self.redis.close()
        if self.engine is not None:
            await self.engine.dispose()
        logger.info("event_system_stopped")


def build_event_system(
    settings: Optional[AppSettings] = None,
    *,
    row_store: Optional[RowStore] = None,
    change_feed: Optional[InProcessChangeFeed] = None,
    invoker: Optional[FunctionInvoker] = None,
    redis_client: Optional[RedisClient] = None,
) -> EventSystem:
    """
    Build every component from settings. Tests pass their own row store, change feed
    and invoker; anything not passed is created from settings.
    """
    settings = settings or get_settings()
    change_feed = change_feed or InProcessChangeFeed()

    engine: Optional[AsyncEngine] = None
    if row_store is None:
        engine = build_engine(settings.database_url, echo=settings.debug)
        row_store = SqlAlchemyRowStore(engine, change_feed=change_feed)

    if redis_client is None and settings.redis_url:
        redis_client = RedisClient(settings.redis_url)

    if invoker is None:
        if settings.functions_base_url:
            invoker = HttpFunctionInvoker(
                settings.functions_base_url,
                api_key=settings.functions_api_key,
                timeout=settings.functions_timeout_seconds,
            )
        else:
            invoker = UnconfiguredInvoker()

    metrics = EventMetricsCollector()
    schemas = default_schema_registry()
    versions = register_default_migrations(EventVersionManager())
    audit = AuditLogger(RowStoreAuditRepository(row_store))

    idempotency: Tracker
    if settings.idempotency_backend == "redis" and redis_client is not None:
        idempotency = RedisIdempotencyTracker(
            redis_client,
            processing_ttl_seconds=settings.idempotency_processing_ttl_seconds,
            terminal_ttl_seconds=settings.idempotency_terminal_ttl_seconds,
        )
    else:
        if settings.idempotency_backend == "redis":
            logger.warning("idempotency_redis_unavailable", extra={"fallback": "memory"})
        idempotency = EventIdempotencyTracker(
            processing_ttl_seconds=settings.idempotency_processing_ttl_seconds,
            terminal_ttl_seconds=settings.idempotency_terminal_ttl_seconds,
            sweep_interval_seconds=settings.idempotency_sweep_interval_seconds,
        )

    event_store = RowStoreEventStore(
        row_store,
        change_feed=change_feed,
        batch_size=settings.store_batch_size,
        flush_interval_seconds=settings.store_flush_interval_seconds,
    )
    dead_letters = DeadLetterQueueManager(row_store, invoker, function_name=settings.event_processor_function)

    breaker = CircuitBreaker(
        failure_threshold=settings.trigger_failure_threshold,
        reset_timeout_seconds=settings.trigger_reset_timeout_seconds,
        half_open_attempts=settings.trigger_half_open_attempts,
        name="remote-trigger",
        metrics_callback=metrics if settings.enable_metrics else None,
    )
    trigger = RemoteProcessingTrigger(invoker, breaker, function_name=settings.event_processor_function)

    stream = None
    if redis_client is not None:
        stream = RedisEventStream(
            redis_client,
            stream_name=settings.event_stream_name,
            max_reconnect_attempts=settings.stream_max_reconnect_attempts,
            reconnect_delay_seconds=settings.stream_reconnect_delay_seconds,
        )

    middleware: List[EventMiddleware] = [SchemaValidationMiddleware(schemas), LoggingMiddleware()]
    if settings.enable_metrics:
        middleware.append(MetricsMiddleware(metrics))
    middleware.append(DeadLetterMiddleware(dead_letters))

    bus = HybridEventBus(
        event_store,
        stream=stream,
        trigger=trigger,
        change_feed=change_feed,
        middleware=middleware,
        enable_remote_publish=settings.enable_remote_publish,
        enable_remote_trigger=settings.enable_remote_trigger and settings.functions_base_url is not None,
        enable_replay=settings.enable_replay,
    )

    processors = build_processors(
        row_store,
        idempotency,
        audit,
        versions=versions,
        metrics=metrics if settings.enable_metrics else None,
    )
    register_processors(bus, processors)

    return EventSystem(
        settings=settings,
        row_store=row_store,
        change_feed=change_feed,
        event_store=event_store,
        bus=bus,
        idempotency=idempotency,
        dead_letters=dead_letters,
        versions=versions,
        schemas=schemas,
        metrics=metrics,
        audit=audit,
        replay=EventReplayService(event_store, invoker, function_name=settings.event_processor_function),
        invoker=invoker,
        processors=processors,
        engine=engine,
        redis=redis_client,
    )
