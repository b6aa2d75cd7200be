"""Dead-letter admin API: list, inspect, reprocess and delete failed events."""

from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from fundraising_events.api.dependencies import get_dead_letters
from fundraising_events.application.dead_letter_queue import DeadLetterQueueManager
from fundraising_events.domain.schemas.responses import (
    DeadLetterResponse,
    DeadLetterStatsResponse,
    ReprocessAllRequest,
    ReprocessResponse,
)

router = APIRouter()


@router.get("", response_model=List[DeadLetterResponse])
async def list_dead_letters(
    dead_letters: Annotated[DeadLetterQueueManager, Depends(get_dead_letters)],
    processor_name: Optional[str] = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    offset: Annotated[int, Query(ge=0)] = 0,
):
    """Entries newest failure first, optionally for one processor."""
    entries = await dead_letters.get_items(processor_name, limit=limit, offset=offset)
    return [DeadLetterResponse.from_entry(e) for e in entries]


@router.get("/stats", response_model=DeadLetterStatsResponse)
async def dead_letter_stats(dead_letters: Annotated[DeadLetterQueueManager, Depends(get_dead_letters)]):
    stats = await dead_letters.get_stats()
    return DeadLetterStatsResponse(
        total=stats.total, by_processor=stats.by_processor, total_failures=stats.total_failures
    )


@router.post("/reprocess", response_model=ReprocessResponse)
async def reprocess_all(
    dead_letters: Annotated[DeadLetterQueueManager, Depends(get_dead_letters)],
    body: Optional[ReprocessAllRequest] = None,
):
    """Reprocess every entry (or one processor's). Entries already being reprocessed are skipped."""
    result = await dead_letters.reprocess_all(body.processor_name if body else None)
    return ReprocessResponse(
        success=result.success, failed=result.failed, skipped=result.skipped, errors=result.errors
    )


@router.get("/{dlq_id}", response_model=DeadLetterResponse)
async def get_dead_letter(
    dlq_id: str,
    dead_letters: Annotated[DeadLetterQueueManager, Depends(get_dead_letters)],
):
    entry = await dead_letters.get_item(dlq_id)
    if entry is None:
        return JSONResponse(status_code=404, content={"detail": "Dead letter not found"})
    return DeadLetterResponse.from_entry(entry)


@router.post("/{dlq_id}/reprocess", response_model=ReprocessResponse)
async def reprocess_dead_letter(
    dlq_id: str,
    dead_letters: Annotated[DeadLetterQueueManager, Depends(get_dead_letters)],
):
    if await dead_letters.get_item(dlq_id) is None:
        return JSONResponse(status_code=404, content={"detail": "Dead letter not found"})
    if await dead_letters.reprocess_event(dlq_id):
        return ReprocessResponse(success=1, failed=0)
    return ReprocessResponse(success=0, failed=1, errors=[f"Failed to reprocess {dlq_id}"])


@router.delete("/{dlq_id}", status_code=204)
async def delete_dead_letter(
    dlq_id: str,
    dead_letters: Annotated[DeadLetterQueueManager, Depends(get_dead_letters)],
):
    if not await dead_letters.delete_item(dlq_id):
        return JSONResponse(status_code=404, content={"detail": "Dead letter not found"})
    return None
