"""Dead-letter queue: events a processor could not handle, with manual and bulk reprocessing."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from fundraising_events.application.ports import FunctionInvoker, Row, RowStore
from fundraising_events.application.remote_trigger import EVENT_PROCESSOR_FUNCTION
from fundraising_events.domain.models.dead_letter import DeadLetterEntry
from fundraising_events.domain.models.event import DomainEvent, parse_timestamp, utc_now

logger = logging.getLogger(__name__)

DEAD_LETTER_TABLE = "event_dead_letter_queue"


@dataclass
class ReprocessResult:
    success: int = 0
    failed: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DeadLetterStats:
    total: int
    by_processor: Dict[str, int]
    total_failures: int


def _entry_from_row(row: Row) -> DeadLetterEntry:
    return DeadLetterEntry(
        id=str(row["id"]),
        original_event_id=row["original_event_id"],
        event_data=dict(row.get("event_data") or {}),
        processor_name=row["processor_name"],
        failure_reason=row.get("failure_reason") or "",
        failure_count=int(row.get("failure_count") or 0),
        first_failed_at=parse_timestamp(row["first_failed_at"]),
        last_failed_at=parse_timestamp(row["last_failed_at"]),
    )


class DeadLetterQueueManager:
    """
    Entries are created on a processor's first unrecoverable failure and removed only
    after a successful reprocess. An entry being reprocessed is claimed, so concurrent
    sweeps in this process skip it instead of invoking the processor twice.
    """

    def __init__(
        self,
        row_store: RowStore,
        invoker: FunctionInvoker,
        *,
        function_name: str = EVENT_PROCESSOR_FUNCTION,
    ) -> None:
        self._rows = row_store
        self._invoker = invoker
        self._function_name = function_name
        self._in_flight: Set[str] = set()

    async def record_failure(self, event: DomainEvent, processor_name: str, reason: str) -> DeadLetterEntry:
        """Park event for processor_name; a repeat failure of the same pair bumps failure_count."""
        now = utc_now()
        existing = await self._rows.select(
            DEAD_LETTER_TABLE,
            {"original_event_id": event.id, "processor_name": processor_name},
            limit=1,
        )
        if existing:
            row = existing[0]
            updated = await self._rows.update(
                DEAD_LETTER_TABLE,
                {
                    "failure_count": int(row.get("failure_count") or 0) + 1,
                    "failure_reason": reason,
                    "last_failed_at": now,
                },
                {"id": row["id"]},
            )
            entry = _entry_from_row(updated[0] if updated else row)
        else:
            inserted = await self._rows.insert(
                DEAD_LETTER_TABLE,
                {
                    "original_event_id": event.id,
                    "event_data": event.to_message(),
                    "processor_name": processor_name,
                    "failure_reason": reason,
                    "failure_count": 1,
                    "first_failed_at": now,
                    "last_failed_at": now,
                },
            )
            entry = _entry_from_row(inserted[0])
        logger.warning(
            "event_dead_lettered",
            extra={
                "event_id": event.id,
                "event_type": event.type,
                "processor": processor_name,
                "failure_count": entry.failure_count,
            },
        )
        return entry

    async def get_item(self, dlq_id: str) -> Optional[DeadLetterEntry]:
        rows = await self._rows.select(DEAD_LETTER_TABLE, {"id": dlq_id}, limit=1)
        return _entry_from_row(rows[0]) if rows else None

    async def get_items(
        self,
        processor_name: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[DeadLetterEntry]:
        """Entries newest failure first, optionally for one processor."""
        rows = await self._rows.select(
            DEAD_LETTER_TABLE,
            {"processor_name": processor_name} if processor_name else None,
            order_by="last_failed_at",
            descending=True,
            limit=limit,
            offset=offset,
        )
        return [_entry_from_row(row) for row in rows]

    async def delete_item(self, dlq_id: str) -> bool:
        return await self._rows.delete(DEAD_LETTER_TABLE, {"id": dlq_id}) > 0

    async def reprocess_event(self, dlq_id: str) -> bool:
        """
        Re-run the remote processor on one entry. Success deletes the entry; failure adds
        exactly one to failure_count. Returns False for a missing or already-claimed entry.
        """
        if dlq_id in self._in_flight:
            logger.info("dead_letter_reprocess_in_progress", extra={"dlq_id": dlq_id})
            return False
        self._in_flight.add(dlq_id)
        try:
            return await self._reprocess(dlq_id)
        finally:
            self._in_flight.discard(dlq_id)

    async def _reprocess(self, dlq_id: str) -> bool:
        entry = await self.get_item(dlq_id)
        if entry is None:
            logger.warning("dead_letter_not_found", extra={"dlq_id": dlq_id})
            return False
        try:
            result = await self._invoker.invoke(self._function_name, {"events": [entry.event_data]})
            error = result.error
        except Exception as e:
            error = str(e) or e.__class__.__name__
        if error is None:
            await self._rows.delete(DEAD_LETTER_TABLE, {"id": dlq_id})
            logger.info(
                "dead_letter_reprocessed",
                extra={"dlq_id": dlq_id, "event_id": entry.original_event_id, "processor": entry.processor_name},
            )
            return True
        await self._rows.update(
            DEAD_LETTER_TABLE,
            {"failure_count": entry.failure_count + 1, "last_failed_at": utc_now()},
            {"id": dlq_id},
        )
        logger.error(
            "dead_letter_reprocess_failed",
            extra={"dlq_id": dlq_id, "event_id": entry.original_event_id, "error": error},
        )
        return False

    async def reprocess_all(self, processor_name: Optional[str] = None) -> ReprocessResult:
        result = ReprocessResult()
        for entry in await self.get_items(processor_name):
            if entry.id in self._in_flight:
                result.skipped += 1
                continue
            if await self.reprocess_event(entry.id):
                result.success += 1
            else:
                result.failed += 1
                result.errors.append(f"Failed to reprocess {entry.id}")
        logger.info(
            "dead_letter_bulk_reprocess_finished",
            extra={"success": result.success, "failed": result.failed, "skipped": result.skipped},
        )
        return result

    async def get_stats(self) -> DeadLetterStats:
        rows = await self._rows.select(DEAD_LETTER_TABLE)
        by_processor: Dict[str, int] = {}
        total_failures = 0
        for row in rows:
            by_processor[row["processor_name"]] = by_processor.get(row["processor_name"], 0) + 1
            total_failures += int(row.get("failure_count") or 0)
        return DeadLetterStats(total=len(rows), by_processor=by_processor, total_failures=total_failures)

