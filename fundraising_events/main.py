# fundraising_events/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from fundraising_events.api.middleware import CorrelationIdMiddleware, RequestLoggingMiddleware
from fundraising_events.api.routers import dead_letters, events, health
from fundraising_events.application.exceptions import (
    ApplicationError,
    EventBusNotConnectedError,
    RecordNotFoundError,
    ReplayNotEnabledError,
)
from fundraising_events.bootstrap import EventSystem, build_event_system
from fundraising_events.config.logging import configure_logging
from fundraising_events.config.settings import get_settings
from fundraising_events.domain.exceptions import DomainError, EventValidationError
from fundraising_events.security.exceptions import SecurityError

logger = logging.getLogger(__name__)


def create_app(system: Optional[EventSystem] = None) -> FastAPI:
    """Build the admin API. The EventSystem is created here (or passed in) and owned by the app lifespan."""
    settings = system.settings if system is not None else get_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        event_system = system or build_event_system(settings)
        await event_system.start()
        app.state.event_system = event_system
        try:
            yield
        finally:
            await event_system.stop()

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    # Middleware order: last added runs first (outermost). Request flow: CorrelationId -> RequestLogging.
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    @app.exception_handler(EventValidationError)
    async def event_validation_error_handler(request, exc: EventValidationError):
        return JSONResponse(status_code=422, content={"detail": exc.message})

    @app.exception_handler(DomainError)
    async def domain_error_handler(request, exc: DomainError):
        return JSONResponse(status_code=400, content={"detail": exc.message})

    @app.exception_handler(SecurityError)
    async def security_error_handler(request, exc: SecurityError):
        return JSONResponse(status_code=403, content={"detail": exc.message})

    @app.exception_handler(RecordNotFoundError)
    async def not_found_error_handler(request, exc: RecordNotFoundError):
        return JSONResponse(status_code=404, content={"detail": exc.message})

    @app.exception_handler(ReplayNotEnabledError)
    async def replay_disabled_error_handler(request, exc: ReplayNotEnabledError):
        return JSONResponse(status_code=409, content={"detail": exc.message})

    @app.exception_handler(EventBusNotConnectedError)
    async def bus_not_connected_error_handler(request, exc: EventBusNotConnectedError):
        return JSONResponse(status_code=503, content={"detail": exc.message})

    @app.exception_handler(ApplicationError)
    async def application_error_handler(request, exc: ApplicationError):
        return JSONResponse(status_code=500, content={"detail": exc.message})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request, exc: Exception):
        logger.error("unhandled_error", extra={"path": request.url.path, "error": str(exc)})
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error"},
        )

    # Routers: /health, /dead-letters, /events
    app.include_router(health.router)
    app.include_router(dead_letters.router, prefix="/dead-letters")
    app.include_router(events.router, prefix="/events")
    return app
