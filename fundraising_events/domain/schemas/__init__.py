"""Payload schemas per event type and the registry that validates them."""

from fundraising_events.domain.schemas.base import EventPayload
from fundraising_events.domain.schemas.registry import SchemaRegistry, default_schema_registry

__all__ = [
    "EventPayload",
    "SchemaRegistry",
    "default_schema_registry",
]
