"""Ask the remote processing function to handle events, through a circuit breaker."""

import logging
from typing import Any, Dict, Sequence

from fundraising_events.application.exceptions import RemoteTriggerError
from fundraising_events.application.ports import FunctionInvoker, InvocationResult
from fundraising_events.domain.models.event import DomainEvent
from fundraising_events.scalability.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)

EVENT_PROCESSOR_FUNCTION = "event-processor"


class RemoteProcessingTrigger:
    """
    A returned invocation error is raised as RemoteTriggerError inside the breaker so it
    counts as a failure. CircuitOpenError propagates untouched when the breaker is open.
    """

    def __init__(
        self,
        invoker: FunctionInvoker,
        breaker: CircuitBreaker,
        *,
        function_name: str = EVENT_PROCESSOR_FUNCTION,
    ) -> None:
        self._invoker = invoker
        self._breaker = breaker
        self._function_name = function_name

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    async def _invoke(self, body: Dict[str, Any]) -> InvocationResult:
        result = await self._invoker.invoke(self._function_name, body)
        if result.error is not None:
            raise RemoteTriggerError(f"{self._function_name} returned an error: {result.error}")
        return result

    async def trigger(self, event: DomainEvent) -> InvocationResult:
        result = await self._breaker.call(self._invoke, {"event": event.to_message()})
        logger.debug("remote_trigger_sent", extra={"event_id": event.id, "event_type": event.type})
        return result

    async def trigger_batch(self, events: Sequence[DomainEvent]) -> InvocationResult:
        result = await self._breaker.call(self._invoke, {"events": [e.to_message() for e in events]})
        logger.debug("remote_trigger_batch_sent", extra={"count": len(events)})
        return result
