"""In-memory idempotency tracker: at most one successful run per (event, processor)."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

PROCESSING = "processing"
COMPLETED = "completed"
FAILED_PREFIX = "failed:"


def idempotency_key(event_id: str, processor_name: str) -> str:
    return f"{event_id}:{processor_name}"


@dataclass
class _Entry:
    value: str
    expires_at: float


class EventIdempotencyTracker:
    """
    should_process() claims the slot with a short-lived "processing" marker, so a
    concurrent or redelivered copy of the event is refused while the first copy runs.
    mark_complete()/mark_failed() overwrite the marker with a longer-lived terminal value.

    Claim-and-check has no await between them, so it is atomic on one event loop.
    State is per process; use RedisIdempotencyTracker when several instances consume the same events.
    """

    def __init__(
        self,
        *,
        processing_ttl_seconds: float = 300,
        terminal_ttl_seconds: float = 86400,
        sweep_interval_seconds: float = 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._processing_ttl = processing_ttl_seconds
        self._terminal_ttl = terminal_ttl_seconds
        self._sweep_interval = sweep_interval_seconds
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}
        self._sweep_task: Optional[asyncio.Task] = None

    def __len__(self) -> int:
        return len(self._entries)

    def _live(self, key: str) -> Optional[_Entry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry

    def _put(self, key: str, value: str, ttl: float) -> None:
        self._entries[key] = _Entry(value=value, expires_at=self._clock() + ttl)

    async def should_process(self, event_id: str, processor_name: str) -> bool:
        key = idempotency_key(event_id, processor_name)
        existing = self._live(key)
        if existing is not None:
            logger.debug(
                "event_already_claimed",
                extra={"event_id": event_id, "processor": processor_name, "state": existing.value},
            )
            return False
        self._put(key, PROCESSING, self._processing_ttl)
        return True

    async def mark_complete(self, event_id: str, processor_name: str) -> None:
        self._put(idempotency_key(event_id, processor_name), COMPLETED, self._terminal_ttl)

    async def mark_failed(self, event_id: str, processor_name: str, reason: str) -> None:
        self._put(
            idempotency_key(event_id, processor_name),
            f"{FAILED_PREFIX}{reason}",
            self._terminal_ttl,
        )

    async def get_status(self, event_id: str, processor_name: str) -> Optional[str]:
        entry = self._live(idempotency_key(event_id, processor_name))
        return entry.value if entry else None

    def sweep(self) -> int:
        """Drop expired entries. Returns how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug("idempotency_entries_swept", extra={"count": len(expired)})
        return len(expired)

    async def _sweep_periodically(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            self.sweep()

    def start(self) -> None:
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._sweep_periodically())

    async def stop(self) -> None:
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None
