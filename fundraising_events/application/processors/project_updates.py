"""Project update posts and the campaign update counter."""

import logging

from fundraising_events.application.exceptions import RecordNotFoundError
from fundraising_events.application.processors.base import IdempotentProcessor
from fundraising_events.domain.event_types import EventType
from fundraising_events.domain.models.event import DomainEvent, utc_now
from fundraising_events.domain.schemas.project import (
    ProjectUpdateCreatedPayload,
    ProjectUpdateDeletedPayload,
    ProjectUpdateEditedPayload,
)

logger = logging.getLogger(__name__)

PROJECT_UPDATES = "project_updates"
STATS_PROJECTION = "campaign_stats_projection"


class ProjectUpdateProcessor(IdempotentProcessor):
    event_type = "project.update.*"

    async def apply(self, event: DomainEvent) -> None:
        if event.type == EventType.PROJECT_UPDATE_CREATED:
            p = self.parse(event, ProjectUpdateCreatedPayload)
            await self._store.insert(
                PROJECT_UPDATES,
                {
                    "id": p.update_id,
                    "fundraiser_id": p.fundraiser_id,
                    "author_id": p.author_id,
                    "title": p.title,
                    "body": p.body,
                    "visibility": p.visibility,
                    "milestone_id": p.milestone_id,
                    "attachments": [a.model_dump() for a in p.attachments],
                    "used_ai": p.used_ai,
                    "created_at": event.timestamp,
                },
            )
            await self._adjust_update_count(p.fundraiser_id, 1)
        elif event.type == EventType.PROJECT_UPDATE_EDITED:
            p = self.parse(event, ProjectUpdateEditedPayload)
            values = p.changes.model_dump(exclude_none=True)
            if not values:
                return
            rows = await self._store.update(
                PROJECT_UPDATES,
                {**values, "updated_at": utc_now()},
                {"id": p.update_id, "author_id": p.author_id},
            )
            if not rows:
                raise RecordNotFoundError(f"Project update {p.update_id} not found for author {p.author_id}")
        elif event.type == EventType.PROJECT_UPDATE_DELETED:
            p = self.parse(event, ProjectUpdateDeletedPayload)
            deleted = await self._store.delete(PROJECT_UPDATES, {"id": p.update_id, "author_id": p.author_id})
            if deleted:
                await self._adjust_update_count(p.fundraiser_id, -1)

    async def _adjust_update_count(self, campaign_id: str, delta: int) -> None:
        rows = await self._store.select(STATS_PROJECTION, {"campaign_id": campaign_id}, limit=1)
        if not rows:
            logger.debug("update_count_skipped", extra={"campaign_id": campaign_id})
            return
        await self._store.update(
            STATS_PROJECTION,
            {"update_count": max(0, rows[0]["update_count"] + delta), "updated_at": utc_now()},
            {"campaign_id": campaign_id},
        )
