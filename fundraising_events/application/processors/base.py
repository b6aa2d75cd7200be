"""Template for idempotent write processors."""

import logging
import time
from typing import ClassVar, Optional, Type, TypeVar

from fundraising_events.application.idempotency import EventIdempotencyTracker
from fundraising_events.application.ports import RowStore
from fundraising_events.application.versioning import EventVersionManager
from fundraising_events.domain.models.event import DomainEvent
from fundraising_events.domain.schemas.base import EventPayload
from fundraising_events.observability.metrics import EventMetricsCollector

logger = logging.getLogger(__name__)

P = TypeVar("P", bound=EventPayload)


class IdempotentProcessor:
    """
    handle(): claim (event, processor) -> optional version upgrade -> apply() ->
    mark complete. A failing apply() marks the claim failed and re-raises so the bus
    reports it (and the dead-letter middleware parks the event).

    Subclasses set event_type (exact type or "prefix*") and implement apply().
    """

    event_type: ClassVar[str]
    expected_version: ClassVar[Optional[str]] = None

    def __init__(
        self,
        store: RowStore,
        idempotency: EventIdempotencyTracker,
        *,
        versions: Optional[EventVersionManager] = None,
        metrics: Optional[EventMetricsCollector] = None,
    ) -> None:
        self._store = store
        self._idempotency = idempotency
        self._versions = versions
        self._metrics = metrics

    @property
    def name(self) -> str:
        return type(self).__name__

    async def handle(self, event: DomainEvent) -> None:
        if not await self._idempotency.should_process(event.id, self.name):
            logger.info(
                "event_skipped_duplicate",
                extra={"event_id": event.id, "event_type": event.type, "processor": self.name},
            )
            return
        started = time.perf_counter()
        try:
            await self.apply(self._upgrade(event))
        except Exception as e:
            await self._idempotency.mark_failed(event.id, self.name, str(e) or e.__class__.__name__)
            self._record(started, success=False)
            logger.error(
                "event_processing_failed",
                extra={"event_id": event.id, "event_type": event.type, "processor": self.name, "error": str(e)},
            )
            raise
        await self._idempotency.mark_complete(event.id, self.name)
        self._record(started, success=True)
        logger.info(
            "event_processed",
            extra={"event_id": event.id, "event_type": event.type, "processor": self.name},
        )

    def _upgrade(self, event: DomainEvent) -> DomainEvent:
        if self.expected_version is None or self._versions is None:
            return event
        return self._versions.migrate_event(event, self.expected_version)

    def _record(self, started: float, *, success: bool) -> None:
        if self._metrics is not None:
            elapsed_ms = (time.perf_counter() - started) * 1000
            self._metrics.record_event_processed(self.name, elapsed_ms, success)

    @staticmethod
    def parse(event: DomainEvent, model: Type[P]) -> P:
        """Typed view of a payload already validated at the bus boundary."""
        return model.model_validate(event.payload)

    async def apply(self, event: DomainEvent) -> None:
        raise NotImplementedError
