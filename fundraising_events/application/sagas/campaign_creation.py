"""Campaign creation saga: follow-up steps after the campaign row is written."""

import logging
from typing import Any, Dict, List, Optional

from fundraising_events.application.exceptions import RecordNotFoundError
from fundraising_events.application.ports import RowStore
from fundraising_events.application.processors.base import IdempotentProcessor
from fundraising_events.application.sagas.base import SagaOrchestrator, SagaStep
from fundraising_events.domain.event_types import EventType
from fundraising_events.domain.models.event import DomainEvent, utc_now
from fundraising_events.domain.schemas.campaign import CampaignCreatedPayload
from fundraising_events.domain.validators.campaign_validator import derive_slug, validate_slug_owner
from fundraising_events.observability.metrics import EventMetricsCollector

logger = logging.getLogger(__name__)

SAGA_TYPE = "campaign_creation"
FUNDRAISERS = "fundraisers"
SLUG_RESERVATIONS = "slug_reservations"
PROFILES = "profiles"
SUMMARY_PROJECTION = "campaign_summary_projection"
PROJECTION_TABLES = ("campaign_summary_projection", "campaign_stats_projection", "campaign_search_projection")

CREATOR_ROLE = "creator"
PROMOTABLE_ROLES = frozenset({"visitor", "donor"})


class CampaignCreationSaga:
    """
    Steps: validate_and_reserve_slug, confirm_campaign_record, update_user_role,
    confirm_projections, update_profile_stats. The saga instance is keyed by the id of the
    campaign.created event it orchestrates. Each step records what it changed so its
    compensation only undoes its own work.
    """

    def __init__(
        self,
        store: RowStore,
        event_id: str,
        payload: CampaignCreatedPayload,
        *,
        metrics: Optional[EventMetricsCollector] = None,
    ) -> None:
        self._store = store
        self._event_id = event_id
        self._payload = payload
        self._metrics = metrics
        self._slug: Optional[str] = None
        self._reserved_slug = False
        self._previous_role: Optional[str] = None
        self._previous_campaign_count: Optional[int] = None

    async def _first(self, table: str, where: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        rows = await self._store.select(table, where, limit=1)
        return rows[0] if rows else None

    def steps(self) -> List[SagaStep]:
        return [
            SagaStep("validate_and_reserve_slug", self._reserve_slug, self._release_slug),
            SagaStep("confirm_campaign_record", self._confirm_campaign, self._delete_campaign),
            SagaStep("update_user_role", self._promote_owner, self._restore_owner_role),
            SagaStep("confirm_projections", self._confirm_projections, self._delete_projections),
            SagaStep("update_profile_stats", self._refresh_campaign_count, self._restore_campaign_count),
        ]

    async def execute(self) -> str:
        orchestrator = SagaOrchestrator(
            self._store,
            SAGA_TYPE,
            self._event_id,
            {"campaignId": self._payload.campaign_id, "userId": self._payload.user_id, "title": self._payload.title},
            self.steps(),
            metrics=self._metrics,
        )
        return await orchestrator.execute()

    async def _reserve_slug(self) -> None:
        p = self._payload
        campaign = await self._first(FUNDRAISERS, {"id": p.campaign_id})
        self._slug = (campaign or {}).get("slug") or p.slug or derive_slug(p.title, p.campaign_id)
        reservation = await self._first(SLUG_RESERVATIONS, {"slug": self._slug})
        validate_slug_owner(self._slug, reservation["campaign_id"] if reservation else None, p.campaign_id)
        if reservation is None:
            await self._store.insert(SLUG_RESERVATIONS, {"slug": self._slug, "campaign_id": p.campaign_id})
            self._reserved_slug = True

    async def _release_slug(self) -> None:
        if self._reserved_slug:
            await self._store.delete(SLUG_RESERVATIONS, {"slug": self._slug, "campaign_id": self._payload.campaign_id})

    async def _confirm_campaign(self) -> None:
        if await self._first(FUNDRAISERS, {"id": self._payload.campaign_id}) is None:
            raise RecordNotFoundError(f"Campaign {self._payload.campaign_id} was not written")

    async def _delete_campaign(self) -> None:
        await self._store.delete(
            FUNDRAISERS, {"id": self._payload.campaign_id, "owner_user_id": self._payload.user_id}
        )

    async def _promote_owner(self) -> None:
        profile = await self._first(PROFILES, {"id": self._payload.user_id})
        if profile is None or profile["role"] not in PROMOTABLE_ROLES:
            return
        self._previous_role = profile["role"]
        await self._store.update(
            PROFILES, {"role": CREATOR_ROLE, "updated_at": utc_now()}, {"id": self._payload.user_id}
        )

    async def _restore_owner_role(self) -> None:
        if self._previous_role is not None:
            await self._store.update(
                PROFILES, {"role": self._previous_role, "updated_at": utc_now()}, {"id": self._payload.user_id}
            )

    async def _confirm_projections(self) -> None:
        if await self._first(SUMMARY_PROJECTION, {"campaign_id": self._payload.campaign_id}) is None:
            raise RecordNotFoundError(f"Campaign {self._payload.campaign_id} has no summary projection")

    async def _delete_projections(self) -> None:
        for table in PROJECTION_TABLES:
            await self._store.delete(table, {"campaign_id": self._payload.campaign_id})

    async def _refresh_campaign_count(self) -> None:
        profile = await self._first(PROFILES, {"id": self._payload.user_id})
        if profile is None:
            return
        campaigns = await self._store.select(FUNDRAISERS, {"owner_user_id": self._payload.user_id})
        self._previous_campaign_count = profile["campaign_count"]
        await self._store.update(
            PROFILES, {"campaign_count": len(campaigns), "updated_at": utc_now()}, {"id": self._payload.user_id}
        )

    async def _restore_campaign_count(self) -> None:
        if self._previous_campaign_count is not None:
            await self._store.update(
                PROFILES, {"campaign_count": self._previous_campaign_count}, {"id": self._payload.user_id}
            )


class CampaignCreationSagaHandler(IdempotentProcessor):
    """Runs the creation saga once the write and projection processors have handled the event."""

    event_type = EventType.CAMPAIGN_CREATED.value

    async def apply(self, event: DomainEvent) -> None:
        payload = self.parse(event, CampaignCreatedPayload)
        await CampaignCreationSaga(self._store, event.id, payload, metrics=self._metrics).execute()
