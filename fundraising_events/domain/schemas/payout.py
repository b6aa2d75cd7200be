"""Payout request event payloads."""

from decimal import Decimal, InvalidOperation
from typing import List, Optional

from pydantic import Field, field_validator

from fundraising_events.domain.schemas.base import EventPayload


class PayoutRequestedPayload(EventPayload):
    request_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    bank_account_id: str = Field(..., min_length=1)
    amount_str: str
    currency: str = "USD"
    fundraiser_id: Optional[str] = None
    creator_notes: Optional[str] = None
    is_first_payout: bool = False
    risk_score: int = Field(default=0, ge=0, le=100)

    @field_validator("amount_str")
    @classmethod
    def amount_is_positive_decimal(cls, v: str) -> str:
        try:
            amount = Decimal(v)
        except InvalidOperation as exc:
            raise ValueError("amountStr must be a decimal string") from exc
        if amount <= 0:
            raise ValueError("amountStr must be positive")
        return v


class PayoutApprovedPayload(EventPayload):
    request_id: str = Field(..., min_length=1)
    approved_by: str = Field(..., min_length=1)
    approved_at: str
    admin_notes: Optional[str] = None


class PayoutDeniedPayload(EventPayload):
    request_id: str = Field(..., min_length=1)
    denied_by: str = Field(..., min_length=1)
    denial_reason: str = Field(..., min_length=1)
    denied_at: str
    admin_notes: Optional[str] = None


class PayoutProcessingPayload(EventPayload):
    request_id: str = Field(..., min_length=1)
    stripe_transfer_id: Optional[str] = None
    estimated_arrival_date: Optional[str] = None


class PayoutCompletedPayload(EventPayload):
    request_id: str = Field(..., min_length=1)
    stripe_transfer_id: str
    actual_arrival_date: str
    completed_at: str


class PayoutFailedPayload(EventPayload):
    request_id: str = Field(..., min_length=1)
    failure_reason: str
    failed_at: str
    is_retryable: bool = False
    stripe_error: Optional[str] = None


class PayoutCancelledPayload(EventPayload):
    request_id: str = Field(..., min_length=1)
    cancelled_by: str = Field(..., min_length=1)
    cancellation_reason: str
    cancelled_at: str


class PayoutInfoRequiredPayload(EventPayload):
    request_id: str = Field(..., min_length=1)
    message: str
    required_info: List[str] = Field(default_factory=list)
