"""Events admin API: replay, metrics and remote-trigger circuit state."""

from typing import Annotated

from fastapi import APIRouter, Depends

from fundraising_events.api.dependencies import get_bus, get_metrics, get_replay_service
from fundraising_events.application.hybrid_event_bus import HybridEventBus
from fundraising_events.application.replay import EventReplayService
from fundraising_events.domain.schemas.responses import ReplayedEventSummary, ReplayRequest, ReplayResponse
from fundraising_events.observability.metrics import EventMetricsCollector

router = APIRouter()


@router.post("/replay", response_model=ReplayResponse)
async def replay_events(
    body: ReplayRequest,
    replay: Annotated[EventReplayService, Depends(get_replay_service)],
):
    """Select stored events by range, type and aggregate; re-run them unless dry_run."""
    result = await replay.replay(
        body.from_timestamp,
        body.to_timestamp,
        body.event_types,
        body.aggregate_id,
        dry_run=body.dry_run,
    )
    return ReplayResponse(
        dry_run=result.dry_run,
        events_selected=len(result.events),
        events=[ReplayedEventSummary(id=e.id, type=e.type, timestamp=e.timestamp) for e in result.events],
        replayed_events=result.replayed,
        errors=result.errors,
    )


@router.get("/metrics")
async def event_metrics(metrics: Annotated[EventMetricsCollector, Depends(get_metrics)]):
    return metrics.export_metrics()


@router.get("/circuit-breaker")
async def circuit_breaker(bus: Annotated[HybridEventBus, Depends(get_bus)]):
    """Remote-trigger breaker state; null when no remote trigger is configured."""
    return {"circuit_breaker": bus.circuit_breaker_stats()}
