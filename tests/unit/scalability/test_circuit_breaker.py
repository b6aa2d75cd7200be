"""CircuitBreaker: state transitions CLOSED -> OPEN -> HALF_OPEN."""

import asyncio

import pytest

from fundraising_events.observability.metrics import EventMetricsCollector
from fundraising_events.scalability.circuit_breaker import CircuitBreaker, CircuitOpenError, CircuitState


async def ok():
    return 1


async def fail():
    raise ValueError("fail")


@pytest.mark.asyncio
async def test_closed_success():
    cb = CircuitBreaker(failure_threshold=3, reset_timeout_seconds=0.1)

    async def answer():
        return 42

    assert await cb.call(answer) == 42
    assert cb.state == CircuitState.CLOSED


@pytest.mark.asyncio
async def test_opens_after_threshold():
    cb = CircuitBreaker(failure_threshold=3, reset_timeout_seconds=10.0, name="remote")

    for _ in range(3):
        with pytest.raises(ValueError):
            await cb.call(fail)
    assert cb.state == CircuitState.OPEN

    with pytest.raises(CircuitOpenError, match="OPEN"):
        await cb.call(fail)


@pytest.mark.asyncio
async def test_success_resets_failure_count():
    cb = CircuitBreaker(failure_threshold=2)
    with pytest.raises(ValueError):
        await cb.call(fail)
    await cb.call(ok)
    with pytest.raises(ValueError):
        await cb.call(fail)
    assert cb.state == CircuitState.CLOSED


@pytest.mark.asyncio
async def test_half_open_closes_after_required_successes():
    cb = CircuitBreaker(failure_threshold=2, reset_timeout_seconds=0.05, half_open_attempts=2)
    for _ in range(2):
        with pytest.raises(ValueError):
            await cb.call(fail)
    await asyncio.sleep(0.1)

    assert await cb.call(ok) == 1
    assert cb.state == CircuitState.HALF_OPEN
    await cb.call(ok)
    assert cb.state == CircuitState.CLOSED


@pytest.mark.asyncio
async def test_half_open_failure_reopens():
    cb = CircuitBreaker(failure_threshold=1, reset_timeout_seconds=0.05, half_open_attempts=3)
    with pytest.raises(ValueError):
        await cb.call(fail)
    await asyncio.sleep(0.1)

    with pytest.raises(ValueError):
        await cb.call(fail)

    assert cb.state == CircuitState.OPEN
    with pytest.raises(CircuitOpenError):
        await cb.call(ok)


@pytest.mark.asyncio
async def test_metrics_callback_and_stats():
    metrics = EventMetricsCollector()
    cb = CircuitBreaker(failure_threshold=5, name="remote-trigger", metrics_callback=metrics)
    await cb.call(ok)
    with pytest.raises(ValueError):
        await cb.call(fail)

    labels = metrics.export_metrics()["counters_by_labels"]
    assert labels["circuit_breaker_success"] == {"circuit_breaker_success:category=remote-trigger": 1}
    assert labels["circuit_breaker_failure"] == {"circuit_breaker_failure:category=remote-trigger": 1}
    stats = cb.stats()
    assert stats["name"] == "remote-trigger"
    assert stats["state"] == "closed"
    assert stats["failures"] == 1
