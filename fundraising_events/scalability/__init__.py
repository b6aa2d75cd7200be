"""Scalability layer: circuit breaker for remote calls. No FastAPI."""

from fundraising_events.scalability.circuit_breaker import CircuitBreaker, CircuitOpenError, CircuitState

__all__ = [
    "CircuitBreaker",
    "CircuitOpenError",
    "CircuitState",
]
