"""Donation effects on campaign read models and donor history."""

import logging
from typing import Any, Dict, Optional

from fundraising_events.application.processors.base import IdempotentProcessor
from fundraising_events.domain.event_types import EventType
from fundraising_events.domain.models.event import DomainEvent, utc_now
from fundraising_events.domain.schemas.donation import (
    DonationCompletedPayload,
    DonationFailedPayload,
    DonationRefundedPayload,
)

logger = logging.getLogger(__name__)

STATS_PROJECTION = "campaign_stats_projection"
SUMMARY_PROJECTION = "campaign_summary_projection"
DONOR_HISTORY_PROJECTION = "donor_history_projection"
DONATIONS = "donations"


def _average(total: float, count: int) -> float:
    return round(total / count, 2) if count > 0 else 0.0


class DonationProjectionProcessor(IdempotentProcessor):
    """
    completed: add to campaign stats, summary totals and donor history.
    refunded: subtract the refunded amount (campaign/donor resolved from the
    donations table when the event omits them). failed: logged only.
    """

    event_type = "donation.*"

    async def apply(self, event: DomainEvent) -> None:
        if event.type == EventType.DONATION_COMPLETED:
            await self._completed(self.parse(event, DonationCompletedPayload))
        elif event.type == EventType.DONATION_REFUNDED:
            await self._refunded(self.parse(event, DonationRefundedPayload))
        elif event.type == EventType.DONATION_FAILED:
            payload = self.parse(event, DonationFailedPayload)
            logger.info(
                "donation_failed",
                extra={"donation_id": payload.donation_id, "reason": payload.reason, "retryable": payload.retryable},
            )

    async def _first(self, table: str, where: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        rows = await self._store.select(table, where, limit=1)
        return rows[0] if rows else None

    async def _completed(self, payload: DonationCompletedPayload) -> None:
        now = utc_now()
        new_donor = False
        if payload.donor_id:
            key = {"user_id": payload.donor_id, "campaign_id": payload.campaign_id}
            history = await self._first(DONOR_HISTORY_PROJECTION, key)
            if history is None:
                new_donor = True
                await self._store.insert(
                    DONOR_HISTORY_PROJECTION,
                    {
                        **key,
                        "total_donated": payload.amount,
                        "donation_count": 1,
                        "first_donated_at": now,
                        "last_donated_at": now,
                    },
                )
            else:
                await self._store.update(
                    DONOR_HISTORY_PROJECTION,
                    {
                        "total_donated": history["total_donated"] + payload.amount,
                        "donation_count": history["donation_count"] + 1,
                        "last_donated_at": now,
                    },
                    key,
                )

        stats = await self._first(STATS_PROJECTION, {"campaign_id": payload.campaign_id})
        total = (stats["total_donations"] if stats else 0) + payload.amount
        count = (stats["donation_count"] if stats else 0) + 1
        donors = (stats["unique_donors"] if stats else 0) + (1 if new_donor else 0)
        values = {
            "total_donations": total,
            "donation_count": count,
            "unique_donors": donors,
            "average_donation": _average(total, count),
            "last_donation_at": now,
            "updated_at": now,
        }
        if stats is None:
            await self._store.insert(STATS_PROJECTION, {"campaign_id": payload.campaign_id, **values})
        else:
            await self._store.update(STATS_PROJECTION, values, {"campaign_id": payload.campaign_id})

        await self._store.update(
            SUMMARY_PROJECTION,
            {"total_raised": total, "donor_count": donors, "updated_at": now},
            {"campaign_id": payload.campaign_id},
        )

    async def _refunded(self, payload: DonationRefundedPayload) -> None:
        campaign_id = payload.campaign_id
        donor_id = payload.donor_id
        if campaign_id is None:
            donation = await self._first(DONATIONS, {"id": payload.donation_id})
            if donation is None:
                logger.warning("refund_donation_not_found", extra={"donation_id": payload.donation_id})
                return
            campaign_id = donation["fundraiser_id"]
            donor_id = donor_id or donation["donor_user_id"]
        if campaign_id is None:
            return

        now = utc_now()
        stats = await self._first(STATS_PROJECTION, {"campaign_id": campaign_id})
        if stats is None:
            logger.warning("refund_stats_missing", extra={"campaign_id": campaign_id})
            return
        total = max(0.0, stats["total_donations"] - payload.refund_amount)
        count = stats["donation_count"]
        await self._store.update(
            STATS_PROJECTION,
            {"total_donations": total, "average_donation": _average(total, count), "updated_at": now},
            {"campaign_id": campaign_id},
        )
        await self._store.update(
            SUMMARY_PROJECTION,
            {"total_raised": total, "updated_at": now},
            {"campaign_id": campaign_id},
        )

        if donor_id:
            key = {"user_id": donor_id, "campaign_id": campaign_id}
            history = await self._first(DONOR_HISTORY_PROJECTION, key)
            if history is not None:
                await self._store.update(
                    DONOR_HISTORY_PROJECTION,
                    {"total_donated": max(0.0, history["total_donated"] - payload.refund_amount)},
                    key,
                )
