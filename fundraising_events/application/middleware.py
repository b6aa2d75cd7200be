"""Bus middleware: hooks run before publish, after publish and on every error."""

import logging
from typing import TYPE_CHECKING, Optional

from fundraising_events.domain.models.event import DomainEvent
from fundraising_events.domain.schemas.registry import SchemaRegistry
from fundraising_events.observability.failure_classifier import FailureClassifier
from fundraising_events.observability.metrics import EventMetricsCollector

if TYPE_CHECKING:
    from fundraising_events.application.dead_letter_queue import DeadLetterQueueManager

logger = logging.getLogger(__name__)


class EventMiddleware:
    """
    Base middleware; every hook is a no-op. before_publish may return a replacement
    event and may raise to abort the publish. source names the failing handler, or is
    None when the publish itself failed.
    """

    async def before_publish(self, event: DomainEvent) -> DomainEvent:
        return event

    async def after_publish(self, event: DomainEvent) -> None:
        return None

    async def on_error(self, error: Exception, event: Optional[DomainEvent], source: Optional[str]) -> None:
        return None


class SchemaValidationMiddleware(EventMiddleware):
    """Reject events whose type is unregistered or whose payload fails its schema."""

    def __init__(self, registry: SchemaRegistry) -> None:
        self._registry = registry

    async def before_publish(self, event: DomainEvent) -> DomainEvent:
        self._registry.validate(event)
        return event


class LoggingMiddleware(EventMiddleware):
    async def before_publish(self, event: DomainEvent) -> DomainEvent:
        logger.debug(
            "event_publishing",
            extra={"event_id": event.id, "event_type": event.type, "correlation_id": event.correlation_id},
        )
        return event

    async def after_publish(self, event: DomainEvent) -> None:
        logger.info("event_published", extra={"event_id": event.id, "event_type": event.type})

    async def on_error(self, error: Exception, event: Optional[DomainEvent], source: Optional[str]) -> None:
        logger.error(
            "event_pipeline_error",
            extra={
                "event_id": event.id if event else None,
                "event_type": event.type if event else None,
                "source": source,
                "failure_category": FailureClassifier.classify(error).value,
                "error": str(error),
            },
        )


class MetricsMiddleware(EventMiddleware):
    def __init__(self, metrics: EventMetricsCollector) -> None:
        self._metrics = metrics

    async def after_publish(self, event: DomainEvent) -> None:
        self._metrics.record_event_published(event.type)

    async def on_error(self, error: Exception, event: Optional[DomainEvent], source: Optional[str]) -> None:
        self._metrics.increment("event_errors", 1, category=FailureClassifier.classify(error).value)


class DeadLetterMiddleware(EventMiddleware):
    """Park events whose handler failed. Publish-level failures are the publisher's problem and are skipped."""

    def __init__(self, dead_letters: "DeadLetterQueueManager") -> None:
        self._dead_letters = dead_letters

    async def on_error(self, error: Exception, event: Optional[DomainEvent], source: Optional[str]) -> None:
        if source is None or event is None:
            return
        await self._dead_letters.record_failure(event, source, str(error) or error.__class__.__name__)
