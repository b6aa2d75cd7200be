"""Donation event payloads."""

from typing import Optional

from pydantic import Field

from fundraising_events.domain.schemas.base import EventPayload


class DonationCompletedPayload(EventPayload):
    donation_id: str = Field(..., min_length=1)
    campaign_id: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    donor_id: Optional[str] = None
    currency: str = "USD"
    payment_method: Optional[str] = None
    is_anonymous: bool = False


class DonationRefundedPayload(EventPayload):
    donation_id: str = Field(..., min_length=1)
    refund_amount: float = Field(..., gt=0)
    campaign_id: Optional[str] = None
    donor_id: Optional[str] = None
    reason: Optional[str] = None


class DonationFailedPayload(EventPayload):
    donation_id: str = Field(..., min_length=1)
    reason: str
    retryable: bool = False
    campaign_id: Optional[str] = None
