"""Observability layer: event metrics and failure classification. No external SaaS."""

from fundraising_events.observability.failure_classifier import FailureCategory, FailureClassifier
from fundraising_events.observability.metrics import EventMetricsCollector

__all__ = [
    "EventMetricsCollector",
    "FailureCategory",
    "FailureClassifier",
]
