"""FastAPI dependency injection: the EventSystem owned by the app, and its parts."""

from typing import Annotated

from fastapi import Depends, Request

from fundraising_events.application.dead_letter_queue import DeadLetterQueueManager
from fundraising_events.application.hybrid_event_bus import HybridEventBus
from fundraising_events.application.replay import EventReplayService
from fundraising_events.bootstrap import EventSystem
from fundraising_events.observability.metrics import EventMetricsCollector


def get_event_system(request: Request) -> EventSystem:
    """Return the EventSystem created at startup (request.app.state.event_system)."""
    return request.app.state.event_system


def get_bus(system: Annotated[EventSystem, Depends(get_event_system)]) -> HybridEventBus:
    return system.bus


def get_dead_letters(system: Annotated[EventSystem, Depends(get_event_system)]) -> DeadLetterQueueManager:
    return system.dead_letters


def get_replay_service(system: Annotated[EventSystem, Depends(get_event_system)]) -> EventReplayService:
    return system.replay


def get_metrics(system: Annotated[EventSystem, Depends(get_event_system)]) -> EventMetricsCollector:
    return system.metrics


def get_correlation_id(request: Request) -> str:
    """Extract correlation_id from request.state (set by middleware)."""
    return getattr(request.state, "correlation_id", "") or ""
