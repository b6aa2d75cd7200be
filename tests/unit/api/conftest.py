"""Fixtures for API tests: an EventSystem over the in-memory row store, and an AsyncClient."""

import pytest
from httpx import ASGITransport, AsyncClient

from fundraising_events.bootstrap import build_event_system
from fundraising_events.config.settings import AppSettings
from fundraising_events.main import create_app


@pytest.fixture
async def system(feed_row_store, change_feed, invoker):
    """Started EventSystem; no database, Redis or remote functions."""
    system = build_event_system(
        AppSettings(environment="test", redis_url=None, functions_base_url=None),
        row_store=feed_row_store,
        change_feed=change_feed,
        invoker=invoker,
    )
    await system.start()
    yield system
    await system.stop()


@pytest.fixture
async def async_client(system):
    """ASGITransport does not run the lifespan, so the started system is attached directly."""
    app = create_app(system)
    app.state.event_system = system
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
