"""Domain layer: event envelope, event types, payload schemas, exceptions. Pure business logic only."""

from fundraising_events.domain.event_types import WILDCARD, EventType, matches
from fundraising_events.domain.exceptions import (
    DomainError,
    EventValidationError,
    InvalidStatusTransitionError,
    MigrationPathNotFoundError,
    SlugConflictError,
    UnregisteredEventTypeError,
)
from fundraising_events.domain.models import DomainEvent, caused_by, create_event
from fundraising_events.domain.schemas import SchemaRegistry, default_schema_registry

__all__ = [
    "DomainError",
    "DomainEvent",
    "EventType",
    "EventValidationError",
    "InvalidStatusTransitionError",
    "MigrationPathNotFoundError",
    "SchemaRegistry",
    "SlugConflictError",
    "UnregisteredEventTypeError",
    "WILDCARD",
    "caused_by",
    "create_event",
    "default_schema_registry",
    "matches",
]
