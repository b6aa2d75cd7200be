"""Event pipeline metrics. Thread-safe, in-memory. No real Prometheus dependency."""

import threading
import time
from collections import deque
from typing import Any, Deque, Literal

Health = Literal["healthy", "degraded", "critical"]

# Rolling window for latency averages.
_LATENCY_WINDOW = 100
CRITICAL_CONSECUTIVE_FAILURES = 5
DEGRADED_FAILURE_RATE = 0.2


class _ProcessorStats:
    def __init__(self) -> None:
        self.total_processed = 0
        self.total_failed = 0
        self.consecutive_failures = 0
        self.last_processed_at: float | None = None
        self.latencies: Deque[float] = deque(maxlen=_LATENCY_WINDOW)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_processed": self.total_processed,
            "total_failed": self.total_failed,
            "consecutive_failures": self.consecutive_failures,
            "last_processed_at": self.last_processed_at,
            "average_processing_time_ms": (
                sum(self.latencies) / len(self.latencies) if self.latencies else 0.0
            ),
        }


class EventMetricsCollector:
    """
    In-memory registry for the event bus, processors, sagas and circuit breakers.
    Generic counters (increment) are shared with CircuitBreaker's metrics callback.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._reset_state()

    def _reset_state(self) -> None:
        self._counters: dict[str, float] = {}
        self._counters_by_labels: dict[str, dict[str, float]] = {}
        self._events_by_type: dict[str, int] = {}
        self._total_published = 0
        self._total_processed = 0
        self._total_failed = 0
        self._latencies: Deque[float] = deque(maxlen=_LATENCY_WINDOW)
        self._processors: dict[str, _ProcessorStats] = {}
        self._saga_started = 0
        self._saga_completed = 0
        self._saga_failed = 0
        self._saga_compensated = 0
        self._saga_steps_total = 0
        self._saga_finished = 0

    def increment(
        self,
        name: str,
        value: float = 1.0,
        *,
        category: str | None = None,
    ) -> None:
        """Increment a counter. Optional category for dimensional metrics."""
        with self._lock:
            if category is not None:
                key = f"{name}:category={category}"
                labels = self._counters_by_labels.setdefault(name, {})
                labels[key] = labels.get(key, 0) + value
            else:
                self._counters[name] = self._counters.get(name, 0) + value

    def record_event_published(self, event_type: str) -> None:
        with self._lock:
            self._total_published += 1
            self._events_by_type[event_type] = self._events_by_type.get(event_type, 0) + 1

    def record_event_processed(self, processor_name: str, duration_ms: float, success: bool) -> None:
        with self._lock:
            if success:
                self._total_processed += 1
            else:
                self._total_failed += 1
            stats = self._processors.setdefault(processor_name, _ProcessorStats())
            stats.total_processed += 1
            stats.last_processed_at = time.time()
            if success:
                stats.consecutive_failures = 0
            else:
                stats.total_failed += 1
                stats.consecutive_failures += 1
            stats.latencies.append(duration_ms)
            self._latencies.append(duration_ms)

    def record_saga_started(self) -> None:
        with self._lock:
            self._saga_started += 1

    def record_saga_completed(self, steps: int) -> None:
        with self._lock:
            self._saga_completed += 1
            self._saga_finished += 1
            self._saga_steps_total += steps

    def record_saga_failed(self, steps: int, compensated: bool) -> None:
        with self._lock:
            self._saga_failed += 1
            if compensated:
                self._saga_compensated += 1
            self._saga_finished += 1
            self._saga_steps_total += steps

    def _saga_success_rate(self) -> float:
        if not self._saga_started:
            return 100.0
        return self._saga_completed / self._saga_started * 100

    def processor_health(self, processor_name: str) -> Health:
        with self._lock:
            stats = self._processors.get(processor_name)
            if stats is None:
                return "healthy"
            if stats.consecutive_failures >= CRITICAL_CONSECUTIVE_FAILURES:
                return "critical"
            if stats.total_failed / stats.total_processed > DEGRADED_FAILURE_RATE:
                return "degraded"
            return "healthy"

    def saga_health(self) -> Health:
        with self._lock:
            rate = self._saga_success_rate()
        if rate < 70:
            return "critical"
        if rate < 90:
            return "degraded"
        return "healthy"

    def export_metrics(self) -> dict[str, Any]:
        """Export all metrics as a dict."""
        with self._lock:
            return {
                "total_published": self._total_published,
                "total_processed": self._total_processed,
                "total_failed": self._total_failed,
                "average_processing_time_ms": (
                    sum(self._latencies) / len(self._latencies) if self._latencies else 0.0
                ),
                "events_by_type": dict(self._events_by_type),
                "processors": {name: s.to_dict() for name, s in self._processors.items()},
                "sagas": {
                    "total_started": self._saga_started,
                    "total_completed": self._saga_completed,
                    "total_failed": self._saga_failed,
                    "total_compensated": self._saga_compensated,
                    "average_steps": (
                        self._saga_steps_total / self._saga_finished if self._saga_finished else 0.0
                    ),
                    "success_rate": self._saga_success_rate(),
                },
                "counters": dict(self._counters),
                "counters_by_labels": {k: dict(v) for k, v in self._counters_by_labels.items()},
            }

    def reset(self) -> None:
        """Reset all metrics (for tests)."""
        with self._lock:
            self._reset_state()
