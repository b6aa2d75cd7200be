# fundraising_events/api/routers/health.py

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from fundraising_events.api.dependencies import get_event_system
from fundraising_events.bootstrap import EventSystem

router = APIRouter()


@router.get("/health")
async def health(request: Request, system: Annotated[EventSystem, Depends(get_event_system)]):
    """Health check with bus connection state and correlation ID from request state."""
    settings = system.settings
    return {
        "status": "ok" if system.bus.is_connected else "degraded",
        "bus_connected": system.bus.is_connected,
        "correlation_id": request.state.correlation_id,
        "environment": settings.environment,
        "version": settings.version,
    }
