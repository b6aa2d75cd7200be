"""Domain models. Pure business entities."""

from fundraising_events.domain.models.dead_letter import DeadLetterEntry
from fundraising_events.domain.models.event import (
    DEFAULT_EVENT_VERSION,
    DomainEvent,
    caused_by,
    create_event,
    parse_timestamp,
    utc_now,
)
from fundraising_events.domain.models.payout import PayoutStatus, validate_payout_transition
from fundraising_events.domain.models.saga import (
    SagaStatus,
    SagaStepStatus,
    validate_saga_transition,
)

__all__ = [
    "DEFAULT_EVENT_VERSION",
    "DeadLetterEntry",
    "DomainEvent",
    "PayoutStatus",
    "SagaStatus",
    "SagaStepStatus",
    "caused_by",
    "create_event",
    "parse_timestamp",
    "utc_now",
    "validate_payout_transition",
    "validate_saga_transition",
]
