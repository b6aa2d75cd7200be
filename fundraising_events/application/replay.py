"""Re-run stored events through the remote processor."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from fundraising_events.application.ports import EventStore, FunctionInvoker
from fundraising_events.application.remote_trigger import EVENT_PROCESSOR_FUNCTION
from fundraising_events.domain.models.event import DomainEvent

logger = logging.getLogger(__name__)


@dataclass
class ReplayResult:
    dry_run: bool
    events: List[DomainEvent] = field(default_factory=list)
    replayed: List[str] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)


class EventReplayService:
    """
    Selects events by time range, type and aggregate (oldest first). A dry run only
    lists them; otherwise each is sent to the processor function on its own so one
    failure does not stop the rest.
    """

    def __init__(
        self,
        store: EventStore,
        invoker: FunctionInvoker,
        *,
        function_name: str = EVENT_PROCESSOR_FUNCTION,
    ) -> None:
        self._store = store
        self._invoker = invoker
        self._function_name = function_name

    async def replay(
        self,
        from_timestamp: Optional[datetime] = None,
        to_timestamp: Optional[datetime] = None,
        event_types: Optional[Sequence[str]] = None,
        aggregate_id: Optional[str] = None,
        *,
        dry_run: bool = True,
    ) -> ReplayResult:
        events = await self._store.get_events(from_timestamp, to_timestamp, event_types, aggregate_id)
        logger.info("replay_selected", extra={"count": len(events), "dry_run": dry_run})
        result = ReplayResult(dry_run=dry_run, events=events)
        if dry_run:
            return result

        for event in events:
            try:
                outcome = await self._invoker.invoke(self._function_name, {"event": event.to_message()})
                error = outcome.error
            except Exception as e:
                error = str(e) or e.__class__.__name__
            if error is None:
                result.replayed.append(event.id)
            else:
                result.errors.append({"eventId": event.id, "error": error})
                logger.warning("replay_event_failed", extra={"event_id": event.id, "error": error})
        logger.info("replay_finished", extra={"replayed": len(result.replayed), "failed": len(result.errors)})
        return result
