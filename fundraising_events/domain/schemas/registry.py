"""Schema registry: one payload model per event type, checked once at the bus boundary."""

from typing import Dict, Iterable, Tuple, Type

from pydantic import ValidationError

from fundraising_events.domain.event_types import EventType
from fundraising_events.domain.exceptions import (
    EventValidationError,
    UnregisteredEventTypeError,
)
from fundraising_events.domain.models.event import DomainEvent
from fundraising_events.domain.schemas import (
    admin,
    campaign,
    donation,
    organization,
    payout,
    project,
    storage,
    user,
)
from fundraising_events.domain.schemas.base import EventPayload


class SchemaRegistry:
    """Maps event type -> pydantic payload model."""

    def __init__(self) -> None:
        self._schemas: Dict[str, Type[EventPayload]] = {}

    def register(self, event_type: str, model: Type[EventPayload]) -> None:
        self._schemas[str(getattr(event_type, "value", event_type))] = model

    def register_many(self, entries: Iterable[Tuple[str, Type[EventPayload]]]) -> None:
        for event_type, model in entries:
            self.register(event_type, model)

    def is_registered(self, event_type: str) -> bool:
        return event_type in self._schemas

    def schema_for(self, event_type: str) -> Type[EventPayload]:
        try:
            return self._schemas[event_type]
        except KeyError:
            raise UnregisteredEventTypeError(
                f"No payload schema registered for event type '{event_type}'"
            ) from None

    def validate(self, event: DomainEvent) -> EventPayload:
        """Parse event.payload with its registered model. Raises EventValidationError on bad input."""
        model = self.schema_for(event.type)
        try:
            return model.model_validate(event.payload)
        except ValidationError as exc:
            raise EventValidationError(
                f"Invalid payload for event type '{event.type}': {exc.error_count()} error(s)",
                errors=exc.errors(include_url=False),
            ) from exc

    @property
    def event_types(self) -> list:
        return sorted(self._schemas)


_DEFAULT_SCHEMAS = (
    (EventType.CAMPAIGN_CREATED, campaign.CampaignCreatedPayload),
    (EventType.CAMPAIGN_UPDATED, campaign.CampaignUpdatedPayload),
    (EventType.CAMPAIGN_DELETED, campaign.CampaignDeletedPayload),
    (EventType.CAMPAIGN_GOAL_REACHED, campaign.CampaignGoalReachedPayload),
    (EventType.CAMPAIGN_STATUS_CHANGED, campaign.CampaignStatusChangedPayload),
    (EventType.DONATION_COMPLETED, donation.DonationCompletedPayload),
    (EventType.DONATION_REFUNDED, donation.DonationRefundedPayload),
    (EventType.DONATION_FAILED, donation.DonationFailedPayload),
    (EventType.USER_REGISTERED, user.UserRegisteredPayload),
    (EventType.USER_FOLLOWED_USER, user.UserFollowedUserPayload),
    (EventType.USER_UNFOLLOWED_USER, user.UserUnfollowedUserPayload),
    (EventType.USER_FOLLOWED_ORGANIZATION, user.UserFollowedOrganizationPayload),
    (EventType.USER_UNFOLLOWED_ORGANIZATION, user.UserUnfollowedOrganizationPayload),
    (EventType.USER_PROFILE_UPDATED, user.UserProfileUpdatedPayload),
    (EventType.ORGANIZATION_CREATED, organization.OrganizationCreatedPayload),
    (EventType.ORGANIZATION_VERIFIED, organization.OrganizationVerifiedPayload),
    (EventType.ORGANIZATION_REJECTED, organization.OrganizationRejectedPayload),
    (EventType.ORGANIZATION_UPDATED, organization.OrganizationUpdatedPayload),
    (EventType.ORGANIZATION_DELETED, organization.OrganizationDeletedPayload),
    (EventType.ROLE_ASSIGNED, admin.RoleAssignedPayload),
    (EventType.ROLE_REVOKED, admin.RoleRevokedPayload),
    (EventType.IMAGE_UPLOADED, storage.ImageUploadedPayload),
    (EventType.IMAGE_DELETED, storage.ImageDeletedPayload),
    (EventType.IMAGE_LINKED, storage.ImageLinkedPayload),
    (EventType.IMAGE_OPTIMIZED, storage.ImageOptimizedPayload),
    (EventType.PAYOUT_REQUESTED, payout.PayoutRequestedPayload),
    (EventType.PAYOUT_APPROVED, payout.PayoutApprovedPayload),
    (EventType.PAYOUT_DENIED, payout.PayoutDeniedPayload),
    (EventType.PAYOUT_PROCESSING, payout.PayoutProcessingPayload),
    (EventType.PAYOUT_COMPLETED, payout.PayoutCompletedPayload),
    (EventType.PAYOUT_FAILED, payout.PayoutFailedPayload),
    (EventType.PAYOUT_CANCELLED, payout.PayoutCancelledPayload),
    (EventType.PAYOUT_INFO_REQUIRED, payout.PayoutInfoRequiredPayload),
    (EventType.PROJECT_UPDATE_CREATED, project.ProjectUpdateCreatedPayload),
    (EventType.PROJECT_UPDATE_EDITED, project.ProjectUpdateEditedPayload),
    (EventType.PROJECT_UPDATE_DELETED, project.ProjectUpdateDeletedPayload),
)


def default_schema_registry() -> SchemaRegistry:
    """Registry with a schema for every EventType."""
    registry = SchemaRegistry()
    registry.register_many(_DEFAULT_SCHEMAS)
    return registry
