"""Event type names and the wildcard matching rule used by subscriptions."""

from enum import Enum

WILDCARD = "*"


class EventType(str, Enum):
    """Every event type known to the platform, named "<aggregate>.<action>"."""

    CAMPAIGN_CREATED = "campaign.created"
    CAMPAIGN_UPDATED = "campaign.updated"
    CAMPAIGN_DELETED = "campaign.deleted"
    CAMPAIGN_GOAL_REACHED = "campaign.goal_reached"
    CAMPAIGN_STATUS_CHANGED = "campaign.status_changed"

    DONATION_COMPLETED = "donation.completed"
    DONATION_REFUNDED = "donation.refunded"
    DONATION_FAILED = "donation.failed"

    USER_REGISTERED = "user.registered"
    USER_FOLLOWED_USER = "user.followed_user"
    USER_UNFOLLOWED_USER = "user.unfollowed_user"
    USER_FOLLOWED_ORGANIZATION = "user.followed_organization"
    USER_UNFOLLOWED_ORGANIZATION = "user.unfollowed_organization"
    USER_PROFILE_UPDATED = "user.profile_updated"

    ORGANIZATION_CREATED = "organization.created"
    ORGANIZATION_VERIFIED = "organization.verified"
    ORGANIZATION_REJECTED = "organization.rejected"
    ORGANIZATION_UPDATED = "organization.updated"
    ORGANIZATION_DELETED = "organization.deleted"

    ROLE_ASSIGNED = "admin.user.role_assigned"
    ROLE_REVOKED = "admin.user.role_revoked"

    IMAGE_UPLOADED = "storage.image.uploaded"
    IMAGE_DELETED = "storage.image.deleted"
    IMAGE_LINKED = "storage.image.linked"
    IMAGE_OPTIMIZED = "storage.image.optimized"

    PAYOUT_REQUESTED = "payout.requested"
    PAYOUT_APPROVED = "payout.approved"
    PAYOUT_DENIED = "payout.denied"
    PAYOUT_PROCESSING = "payout.processing"
    PAYOUT_COMPLETED = "payout.completed"
    PAYOUT_FAILED = "payout.failed"
    PAYOUT_CANCELLED = "payout.cancelled"
    PAYOUT_INFO_REQUIRED = "payout.info_required"

    PROJECT_UPDATE_CREATED = "project.update.created"
    PROJECT_UPDATE_EDITED = "project.update.edited"
    PROJECT_UPDATE_DELETED = "project.update.deleted"


def matches(pattern: str, event_type: str) -> bool:
    """
    True when a subscription pattern selects event_type.
    "*" selects everything; "campaign.*" or "user.followed_*" select by prefix.
    """
    pattern = str(pattern.value if isinstance(pattern, EventType) else pattern)
    event_type = str(event_type.value if isinstance(event_type, EventType) else event_type)
    if pattern == WILDCARD or pattern == event_type:
        return True
    if pattern.endswith(WILDCARD):
        return event_type.startswith(pattern[:-1])
    return False
