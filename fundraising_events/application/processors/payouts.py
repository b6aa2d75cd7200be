"""Payout request write model, one processor per lifecycle event."""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from fundraising_events.application.exceptions import RecordNotFoundError
from fundraising_events.application.idempotency import EventIdempotencyTracker
from fundraising_events.application.ports import AuditSink, RowStore
from fundraising_events.application.processors.base import IdempotentProcessor
from fundraising_events.domain.event_types import EventType
from fundraising_events.domain.models.event import DomainEvent, parse_timestamp, utc_now
from fundraising_events.domain.models.payout import PayoutStatus, validate_payout_transition
from fundraising_events.domain.schemas.payout import (
    PayoutApprovedPayload,
    PayoutCancelledPayload,
    PayoutCompletedPayload,
    PayoutDeniedPayload,
    PayoutFailedPayload,
    PayoutInfoRequiredPayload,
    PayoutProcessingPayload,
    PayoutRequestedPayload,
)

logger = logging.getLogger(__name__)

PAYOUT_REQUESTS = "payout_requests"
PAYOUT_TAX_RECORDS = "payout_tax_records"
RESOURCE_TYPE = "payout_request"


class _PayoutProcessor(IdempotentProcessor):
    def __init__(
        self,
        store: RowStore,
        idempotency: EventIdempotencyTracker,
        *,
        audit: AuditSink,
        **kwargs: Any,
    ) -> None:
        super().__init__(store, idempotency, **kwargs)
        self._audit = audit

    async def _load(self, request_id: str) -> Dict[str, Any]:
        rows = await self._store.select(PAYOUT_REQUESTS, {"id": request_id}, limit=1)
        if not rows:
            raise RecordNotFoundError(f"Payout request {request_id} not found")
        return rows[0]

    async def _transition(self, request_id: str, new: PayoutStatus, values: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Move a request to `new` after validating the lifecycle. Returns the stored row
        before the change, or None when the request is already in `new`.
        """
        request = await self._load(request_id)
        current = PayoutStatus(request["status"])
        if current == new:
            logger.info("payout_status_unchanged", extra={"request_id": request_id, "status": new.value})
            return None
        validate_payout_transition(current, new)
        await self._store.update(
            PAYOUT_REQUESTS,
            {**values, "status": new.value, "updated_at": utc_now()},
            {"id": request_id},
        )
        logger.info(
            "payout_status_changed",
            extra={"request_id": request_id, "from_status": current.value, "to_status": new.value},
        )
        return request


class PayoutRequestedProcessor(_PayoutProcessor):
    event_type = EventType.PAYOUT_REQUESTED.value

    async def apply(self, event: DomainEvent) -> None:
        p = self.parse(event, PayoutRequestedPayload)
        await self._store.insert(
            PAYOUT_REQUESTS,
            {
                "id": p.request_id,
                "user_id": p.user_id,
                "fundraiser_id": p.fundraiser_id,
                "bank_account_id": p.bank_account_id,
                "amount_str": p.amount_str,
                "currency": p.currency,
                "status": PayoutStatus.PENDING.value,
                "creator_notes": p.creator_notes,
                "is_first_payout": p.is_first_payout,
                "risk_score": p.risk_score,
                "requested_at": event.timestamp,
            },
        )
        await self._audit.log(
            p.user_id,
            "payout_requested",
            RESOURCE_TYPE,
            p.request_id,
            {
                "amount": p.amount_str,
                "currency": p.currency,
                "fundraiser_id": p.fundraiser_id,
                "risk_score": p.risk_score,
                "is_first_payout": p.is_first_payout,
            },
        )


class PayoutApprovedProcessor(_PayoutProcessor):
    event_type = EventType.PAYOUT_APPROVED.value

    async def apply(self, event: DomainEvent) -> None:
        p = self.parse(event, PayoutApprovedPayload)
        changed = await self._transition(
            p.request_id,
            PayoutStatus.APPROVED,
            {"approved_by": p.approved_by, "approved_at": parse_timestamp(p.approved_at), "admin_notes": p.admin_notes},
        )
        if changed is not None:
            await self._audit.log(
                p.approved_by, "payout_approved", RESOURCE_TYPE, p.request_id, {"admin_notes": p.admin_notes}
            )


class PayoutDeniedProcessor(_PayoutProcessor):
    event_type = EventType.PAYOUT_DENIED.value

    async def apply(self, event: DomainEvent) -> None:
        p = self.parse(event, PayoutDeniedPayload)
        changed = await self._transition(
            p.request_id,
            PayoutStatus.DENIED,
            {
                "denied_by": p.denied_by,
                "denied_at": parse_timestamp(p.denied_at),
                "denial_reason": p.denial_reason,
                "admin_notes": p.admin_notes,
            },
        )
        if changed is not None:
            await self._audit.log(
                p.denied_by,
                "payout_denied",
                RESOURCE_TYPE,
                p.request_id,
                {"denial_reason": p.denial_reason, "admin_notes": p.admin_notes},
            )


class PayoutProcessingProcessor(_PayoutProcessor):
    event_type = EventType.PAYOUT_PROCESSING.value

    async def apply(self, event: DomainEvent) -> None:
        p = self.parse(event, PayoutProcessingPayload)
        await self._transition(
            p.request_id,
            PayoutStatus.PROCESSING,
            {
                "stripe_transfer_id": p.stripe_transfer_id,
                "estimated_arrival_date": p.estimated_arrival_date,
                "processing_started_at": event.timestamp,
            },
        )


class PayoutCompletedProcessor(_PayoutProcessor):
    """Completes the request and adds the amount to the owner's yearly payout totals."""

    event_type = EventType.PAYOUT_COMPLETED.value

    async def apply(self, event: DomainEvent) -> None:
        p = self.parse(event, PayoutCompletedPayload)
        completed_at = parse_timestamp(p.completed_at)
        request = await self._transition(
            p.request_id,
            PayoutStatus.COMPLETED,
            {
                "stripe_transfer_id": p.stripe_transfer_id,
                "actual_arrival_date": p.actual_arrival_date,
                "completed_at": completed_at,
            },
        )
        if request is not None:
            await self._add_to_tax_record(request["user_id"], completed_at.year, Decimal(request["amount_str"]))

    async def _add_to_tax_record(self, user_id: str, tax_year: int, amount: Decimal) -> None:
        key = {"user_id": user_id, "tax_year": tax_year}
        rows = await self._store.select(PAYOUT_TAX_RECORDS, key, limit=1)
        if not rows:
            await self._store.insert(
                PAYOUT_TAX_RECORDS,
                {**key, "total_payouts_str": str(amount), "payout_count": 1, "updated_at": utc_now()},
            )
            return
        record = rows[0]
        await self._store.update(
            PAYOUT_TAX_RECORDS,
            {
                "total_payouts_str": str(Decimal(record["total_payouts_str"]) + amount),
                "payout_count": record["payout_count"] + 1,
                "updated_at": utc_now(),
            },
            key,
        )


class PayoutFailedProcessor(_PayoutProcessor):
    event_type = EventType.PAYOUT_FAILED.value

    async def apply(self, event: DomainEvent) -> None:
        p = self.parse(event, PayoutFailedPayload)
        await self._transition(
            p.request_id,
            PayoutStatus.FAILED,
            {
                "failure_reason": p.failure_reason,
                "stripe_error": p.stripe_error,
                "is_retryable": p.is_retryable,
                "failed_at": parse_timestamp(p.failed_at),
            },
        )


class PayoutCancelledProcessor(_PayoutProcessor):
    event_type = EventType.PAYOUT_CANCELLED.value

    async def apply(self, event: DomainEvent) -> None:
        p = self.parse(event, PayoutCancelledPayload)
        changed = await self._transition(
            p.request_id,
            PayoutStatus.CANCELLED,
            {
                "cancelled_by": p.cancelled_by,
                "cancellation_reason": p.cancellation_reason,
                "cancelled_at": parse_timestamp(p.cancelled_at),
            },
        )
        if changed is not None:
            await self._audit.log(
                p.cancelled_by,
                "payout_cancelled",
                RESOURCE_TYPE,
                p.request_id,
                {"cancellation_reason": p.cancellation_reason},
            )


class PayoutInfoRequiredProcessor(_PayoutProcessor):
    event_type = EventType.PAYOUT_INFO_REQUIRED.value

    async def apply(self, event: DomainEvent) -> None:
        p = self.parse(event, PayoutInfoRequiredPayload)
        await self._transition(
            p.request_id,
            PayoutStatus.INFO_REQUIRED,
            {"info_required_message": p.message, "required_info": list(p.required_info)},
        )


PAYOUT_PROCESSORS = (
    PayoutRequestedProcessor,
    PayoutApprovedProcessor,
    PayoutDeniedProcessor,
    PayoutProcessingProcessor,
    PayoutCompletedProcessor,
    PayoutFailedProcessor,
    PayoutCancelledProcessor,
    PayoutInfoRequiredProcessor,
)
