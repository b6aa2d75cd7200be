"""Organization write model: creation, verification review, edits and removal."""

import logging
from typing import Any, Dict

from fundraising_events.application.exceptions import RecordNotFoundError
from fundraising_events.application.processors.base import IdempotentProcessor
from fundraising_events.domain.event_types import EventType
from fundraising_events.domain.models.event import DomainEvent, parse_timestamp, utc_now
from fundraising_events.domain.schemas.organization import (
    OrganizationCreatedPayload,
    OrganizationDeletedPayload,
    OrganizationRejectedPayload,
    OrganizationUpdatedPayload,
    OrganizationVerifiedPayload,
)

logger = logging.getLogger(__name__)

ORGANIZATIONS = "organizations"

# organization.updated change keys (wire name) -> organizations column
UPDATABLE_COLUMNS = {
    "legalName": "legal_name",
    "dbaName": "dba_name",
    "website": "website",
    "description": "description",
}


class OrganizationWriteProcessor(IdempotentProcessor):
    """Keeps the `organizations` table in step with organization events."""

    event_type = "organization.*"

    async def apply(self, event: DomainEvent) -> None:
        if event.type == EventType.ORGANIZATION_CREATED:
            await self._created(self.parse(event, OrganizationCreatedPayload))
        elif event.type == EventType.ORGANIZATION_VERIFIED:
            await self._verified(self.parse(event, OrganizationVerifiedPayload))
        elif event.type == EventType.ORGANIZATION_REJECTED:
            await self._rejected(self.parse(event, OrganizationRejectedPayload))
        elif event.type == EventType.ORGANIZATION_UPDATED:
            await self._updated(self.parse(event, OrganizationUpdatedPayload))
        elif event.type == EventType.ORGANIZATION_DELETED:
            await self._deleted(self.parse(event, OrganizationDeletedPayload))

    async def _update(self, organization_id: str, values: Dict[str, Any]) -> None:
        rows = await self._store.update(
            ORGANIZATIONS, {**values, "updated_at": utc_now()}, {"id": organization_id}
        )
        if not rows:
            raise RecordNotFoundError(f"Organization {organization_id} not found")

    async def _created(self, payload: OrganizationCreatedPayload) -> None:
        await self._store.upsert(
            ORGANIZATIONS,
            {
                "id": payload.organization_id,
                "legal_name": payload.legal_name,
                "dba_name": payload.dba_name,
                "created_by": payload.created_by,
                "verification_status": payload.verification_status,
            },
            on_conflict=["id"],
            ignore_duplicates=True,
        )

    async def _verified(self, payload: OrganizationVerifiedPayload) -> None:
        await self._update(
            payload.organization_id,
            {
                "verification_status": "verified",
                "verified_by": payload.verified_by,
                "verified_at": parse_timestamp(payload.verified_at),
                "rejected_by": None,
                "rejection_reason": None,
            },
        )

    async def _rejected(self, payload: OrganizationRejectedPayload) -> None:
        await self._update(
            payload.organization_id,
            {
                "verification_status": "rejected",
                "rejected_by": payload.rejected_by,
                "rejection_reason": payload.reason,
            },
        )

    async def _updated(self, payload: OrganizationUpdatedPayload) -> None:
        values: Dict[str, Any] = {}
        for key, value in payload.changes.items():
            column = UPDATABLE_COLUMNS.get(key)
            if column is None:
                logger.warning(
                    "organization_change_ignored",
                    extra={"organization_id": payload.organization_id, "field": key},
                )
                continue
            values[column] = value
        if values:
            await self._update(payload.organization_id, values)

    async def _deleted(self, payload: OrganizationDeletedPayload) -> None:
        removed = await self._store.delete(ORGANIZATIONS, {"id": payload.organization_id})
        logger.info(
            "organization_deleted",
            extra={
                "organization_id": payload.organization_id,
                "deleted_by": payload.deleted_by,
                "removed": removed,
            },
        )
