"""Saga lifecycle. Status changes are validated against the transition table."""

from enum import Enum
from typing import Dict, FrozenSet

from fundraising_events.domain.exceptions import InvalidStatusTransitionError


class SagaStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    COMPENSATING = "compensating"
    FAILED = "failed"


class SagaStepStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    COMPENSATED = "compensated"


_SAGA_TRANSITIONS: Dict[SagaStatus, FrozenSet[SagaStatus]] = {
    SagaStatus.PENDING: frozenset({SagaStatus.IN_PROGRESS}),
    SagaStatus.IN_PROGRESS: frozenset({SagaStatus.COMPLETED, SagaStatus.COMPENSATING}),
    SagaStatus.COMPENSATING: frozenset({SagaStatus.FAILED}),
    SagaStatus.COMPLETED: frozenset(),
    SagaStatus.FAILED: frozenset(),
}


def validate_saga_transition(current: SagaStatus, new: SagaStatus) -> None:
    """Raises InvalidStatusTransitionError if the saga may not move from current to new."""
    if new not in _SAGA_TRANSITIONS.get(current, frozenset()):
        raise InvalidStatusTransitionError(
            f"Invalid saga transition from {current.value} to {new.value}"
        )
