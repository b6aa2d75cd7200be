"""Campaign write model and campaign read-model projections."""

import logging
from typing import Any, Dict, Optional

from fundraising_events.application.exceptions import RecordNotFoundError
from fundraising_events.application.processors.base import IdempotentProcessor
from fundraising_events.domain.event_types import EventType
from fundraising_events.domain.models.event import DomainEvent, utc_now
from fundraising_events.domain.schemas.campaign import (
    CampaignCreatedPayload,
    CampaignDeletedPayload,
    CampaignGoalReachedPayload,
    CampaignStatusChangedPayload,
    CampaignUpdatedPayload,
)
from fundraising_events.domain.validators.campaign_validator import (
    days_remaining,
    derive_slug,
    html_to_text,
    normalize_email,
    story_to_html,
)
from fundraising_events.security.passcode import hash_passcode

logger = logging.getLogger(__name__)

FUNDRAISERS = "fundraisers"
PROJECT_MILESTONES = "project_milestones"
FUNDRAISER_IMAGES = "fundraiser_images"
CAMPAIGN_ACCESS_RULES = "campaign_access_rules"
SUMMARY_PROJECTION = "campaign_summary_projection"
STATS_PROJECTION = "campaign_stats_projection"
SEARCH_PROJECTION = "campaign_search_projection"

PLACEHOLDER_COVER_IMAGE = "/placeholder.svg"

# campaign.updated change keys (wire name) -> fundraisers column
UPDATABLE_COLUMNS = {
    "title": "title",
    "slug": "slug",
    "summary": "summary",
    "goalAmount": "goal_amount",
    "currency": "currency",
    "categoryId": "category_id",
    "beneficiaryName": "beneficiary_name",
    "location": "location",
    "coverImage": "cover_image",
    "endDate": "end_date",
    "status": "status",
    "visibility": "visibility",
    "type": "type",
    "isDiscoverable": "is_discoverable",
    "tags": "tags",
    "linkToken": "link_token",
}


def fundraiser_row(payload: CampaignCreatedPayload) -> Dict[str, Any]:
    """fundraisers columns for a new campaign, without secrets."""
    return {
        "id": payload.campaign_id,
        "title": payload.title,
        "slug": payload.slug or derive_slug(payload.title, payload.campaign_id),
        "summary": payload.summary or payload.description,
        "story_html": story_to_html(payload.story or payload.description),
        "goal_amount": payload.goal_amount,
        "currency": payload.currency,
        "category_id": payload.category_id,
        "beneficiary_name": payload.beneficiary_name,
        "location": payload.location,
        "cover_image": payload.cover_image or PLACEHOLDER_COVER_IMAGE,
        "end_date": payload.end_date,
        "owner_user_id": payload.user_id,
        "status": payload.status,
        "visibility": payload.visibility,
        "type": payload.type,
        "is_discoverable": payload.is_discoverable,
        "is_project": payload.is_project,
        "link_token": payload.link_token,
        "tags": list(payload.tags),
    }


class CampaignWriteProcessor(IdempotentProcessor):
    """Keeps the `fundraisers` write model in step with campaign events."""

    event_type = "campaign.*"

    async def apply(self, event: DomainEvent) -> None:
        if event.type == EventType.CAMPAIGN_CREATED:
            await self._created(self.parse(event, CampaignCreatedPayload))
        elif event.type == EventType.CAMPAIGN_UPDATED:
            await self._updated(self.parse(event, CampaignUpdatedPayload))
        elif event.type == EventType.CAMPAIGN_STATUS_CHANGED:
            await self._status_changed(self.parse(event, CampaignStatusChangedPayload))

    async def _created(self, payload: CampaignCreatedPayload) -> None:
        row = fundraiser_row(payload)
        row["passcode_hash"] = hash_passcode(payload.passcode) if payload.passcode else None
        row["created_at"] = utc_now()
        await self._store.insert(FUNDRAISERS, row)

        if payload.is_project and payload.milestones:
            await self._store.insert(
                PROJECT_MILESTONES,
                [
                    {
                        "fundraiser_id": payload.campaign_id,
                        "title": m.title,
                        "description": m.description,
                        "target_amount": m.target_amount,
                        "due_date": m.due_date,
                        "currency": payload.currency,
                        "created_by": payload.user_id,
                    }
                    for m in payload.milestones
                ],
            )

        if payload.cover_image_id:
            await self._link_cover_image(payload.cover_image_id, payload.campaign_id, payload.user_id)

        if payload.visibility != "public" and payload.allowlist_emails:
            await self._store.insert(
                CAMPAIGN_ACCESS_RULES,
                [
                    {
                        "campaign_id": payload.campaign_id,
                        "rule_type": "email_allowlist",
                        "rule_value": normalize_email(email),
                        "created_by": payload.user_id,
                    }
                    for email in payload.allowlist_emails
                ],
            )

    async def _link_cover_image(self, image_id: str, campaign_id: str, user_id: str) -> None:
        # The campaign is usable without its cover; a failed link is not fatal.
        try:
            await self._store.update(
                FUNDRAISER_IMAGES,
                {"fundraiser_id": campaign_id},
                {"id": image_id, "user_id": user_id},
            )
        except Exception as e:
            logger.warning(
                "cover_image_link_failed",
                extra={"campaign_id": campaign_id, "image_id": image_id, "error": str(e)},
            )

    async def _updated(self, payload: CampaignUpdatedPayload) -> None:
        values: Dict[str, Any] = {}
        for key, value in payload.changes.items():
            column = UPDATABLE_COLUMNS.get(key) or (key if key in UPDATABLE_COLUMNS.values() else None)
            if column is not None:
                values[column] = value
            elif key == "story":
                values["story_html"] = story_to_html(value)
            elif key == "passcode":
                values["passcode_hash"] = hash_passcode(value) if value else None
            else:
                logger.warning("campaign_change_ignored", extra={"campaign_id": payload.campaign_id, "field": key})
        if not values:
            return
        values["updated_at"] = utc_now()
        rows = await self._store.update(
            FUNDRAISERS,
            values,
            {"id": payload.campaign_id, "owner_user_id": payload.user_id},
        )
        if not rows:
            raise RecordNotFoundError(
                f"Campaign {payload.campaign_id} not found for owner {payload.user_id}"
            )

    async def _status_changed(self, payload: CampaignStatusChangedPayload) -> None:
        rows = await self._store.update(
            FUNDRAISERS,
            {"status": payload.new_status, "updated_at": utc_now()},
            {"id": payload.campaign_id},
        )
        if not rows:
            raise RecordNotFoundError(f"Campaign {payload.campaign_id} not found")


class CampaignProjectionProcessor(IdempotentProcessor):
    """Maintains the summary, stats and search read models keyed by campaign_id."""

    event_type = "campaign.*"

    async def apply(self, event: DomainEvent) -> None:
        if event.type == EventType.CAMPAIGN_CREATED:
            await self._created(self.parse(event, CampaignCreatedPayload))
        elif event.type == EventType.CAMPAIGN_UPDATED:
            await self._refresh(self.parse(event, CampaignUpdatedPayload).campaign_id)
        elif event.type == EventType.CAMPAIGN_STATUS_CHANGED:
            await self._status_changed(self.parse(event, CampaignStatusChangedPayload))
        elif event.type == EventType.CAMPAIGN_GOAL_REACHED:
            await self._goal_reached(self.parse(event, CampaignGoalReachedPayload))
        elif event.type == EventType.CAMPAIGN_DELETED:
            await self._deleted(self.parse(event, CampaignDeletedPayload))

    async def _fundraiser(self, campaign_id: str) -> Optional[Dict[str, Any]]:
        rows = await self._store.select(FUNDRAISERS, {"id": campaign_id}, limit=1)
        return rows[0] if rows else None

    @staticmethod
    def _summary_fields(campaign: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "title": campaign["title"],
            "slug": campaign.get("slug"),
            "summary": campaign.get("summary"),
            "cover_image": campaign.get("cover_image"),
            "goal_amount": campaign["goal_amount"],
            "status": campaign.get("status"),
            "visibility": campaign.get("visibility"),
            "category_id": campaign.get("category_id"),
            "owner_user_id": campaign.get("owner_user_id"),
            "end_date": campaign.get("end_date"),
            "days_remaining": days_remaining(campaign.get("end_date")),
        }

    @staticmethod
    def _search_fields(campaign: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "title": campaign["title"],
            "slug": campaign.get("slug"),
            "summary": campaign.get("summary"),
            "story_text": html_to_text(campaign.get("story_html")),
            "beneficiary_name": campaign.get("beneficiary_name"),
            "location": campaign.get("location"),
            "tags": campaign.get("tags") or [],
            "status": campaign.get("status"),
            "visibility": campaign.get("visibility"),
        }

    async def _created(self, payload: CampaignCreatedPayload) -> None:
        # Prefer the stored write model; fall back to the event when it is not visible yet.
        campaign = await self._fundraiser(payload.campaign_id) or fundraiser_row(payload)
        campaign_id = payload.campaign_id
        # Donations can be projected before the campaign; summary totals follow the stats row.
        stats = await self._store.select(STATS_PROJECTION, {"campaign_id": campaign_id}, limit=1)
        total_raised = stats[0]["total_donations"] if stats else 0
        donor_count = stats[0]["unique_donors"] if stats else 0
        await self._store.upsert(
            SUMMARY_PROJECTION,
            {
                "campaign_id": campaign_id,
                **self._summary_fields(campaign),
                "total_raised": total_raised,
                "donor_count": donor_count,
            },
            on_conflict=["campaign_id"],
        )
        # Donations may already have been counted; never reset existing stats.
        await self._store.upsert(
            STATS_PROJECTION,
            {
                "campaign_id": campaign_id,
                "total_donations": 0,
                "donation_count": 0,
                "unique_donors": 0,
                "average_donation": 0,
                "view_count": 0,
                "share_count": 0,
                "comment_count": 0,
                "update_count": 0,
            },
            on_conflict=["campaign_id"],
            ignore_duplicates=True,
        )
        await self._store.upsert(
            SEARCH_PROJECTION,
            {"campaign_id": campaign_id, **self._search_fields(campaign)},
            on_conflict=["campaign_id"],
        )

    async def _refresh(self, campaign_id: str) -> None:
        campaign = await self._fundraiser(campaign_id)
        if campaign is None:
            logger.warning("projection_source_missing", extra={"campaign_id": campaign_id})
            return
        now = utc_now()
        summary = self._summary_fields(campaign)
        summary.pop("owner_user_id")
        await self._store.update(SUMMARY_PROJECTION, {**summary, "updated_at": now}, {"campaign_id": campaign_id})
        await self._store.update(
            SEARCH_PROJECTION,
            {**self._search_fields(campaign), "updated_at": now},
            {"campaign_id": campaign_id},
        )

    async def _status_changed(self, payload: CampaignStatusChangedPayload) -> None:
        values = {"status": payload.new_status, "updated_at": utc_now()}
        await self._store.update(SUMMARY_PROJECTION, values, {"campaign_id": payload.campaign_id})
        await self._store.update(SEARCH_PROJECTION, values, {"campaign_id": payload.campaign_id})

    async def _goal_reached(self, payload: CampaignGoalReachedPayload) -> None:
        await self._store.update(
            SUMMARY_PROJECTION,
            {"total_raised": payload.total_raised, "donor_count": payload.donor_count, "updated_at": utc_now()},
            {"campaign_id": payload.campaign_id},
        )

    async def _deleted(self, payload: CampaignDeletedPayload) -> None:
        for table in (SUMMARY_PROJECTION, STATS_PROJECTION, SEARCH_PROJECTION):
            await self._store.delete(table, {"campaign_id": payload.campaign_id})
