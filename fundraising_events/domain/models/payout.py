"""Payout request lifecycle."""

from enum import Enum
from typing import Dict, FrozenSet

from fundraising_events.domain.exceptions import InvalidStatusTransitionError


class PayoutStatus(str, Enum):
    PENDING = "pending"
    INFO_REQUIRED = "info_required"
    APPROVED = "approved"
    DENIED = "denied"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


_PAYOUT_TRANSITIONS: Dict[PayoutStatus, FrozenSet[PayoutStatus]] = {
    PayoutStatus.PENDING: frozenset(
        {PayoutStatus.APPROVED, PayoutStatus.DENIED, PayoutStatus.CANCELLED, PayoutStatus.INFO_REQUIRED}
    ),
    PayoutStatus.INFO_REQUIRED: frozenset(
        {PayoutStatus.APPROVED, PayoutStatus.DENIED, PayoutStatus.CANCELLED}
    ),
    PayoutStatus.APPROVED: frozenset({PayoutStatus.PROCESSING, PayoutStatus.CANCELLED}),
    PayoutStatus.PROCESSING: frozenset({PayoutStatus.COMPLETED, PayoutStatus.FAILED}),
    # A failed transfer may be retried.
    PayoutStatus.FAILED: frozenset({PayoutStatus.PROCESSING}),
    PayoutStatus.COMPLETED: frozenset(),
    PayoutStatus.DENIED: frozenset(),
    PayoutStatus.CANCELLED: frozenset(),
}


def validate_payout_transition(current: PayoutStatus, new: PayoutStatus) -> None:
    """Raises InvalidStatusTransitionError if a payout request may not move from current to new."""
    if new not in _PAYOUT_TRANSITIONS.get(current, frozenset()):
        raise InvalidStatusTransitionError(
            f"Invalid payout transition from {current.value} to {new.value}"
        )
