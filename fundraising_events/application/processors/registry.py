"""Construction and subscription of the platform's processors."""

from typing import Any, Callable, List, Optional, Protocol

from fundraising_events.application.idempotency import EventIdempotencyTracker
from fundraising_events.application.ports import AuditSink, Handler, RowStore
from fundraising_events.application.processors.base import IdempotentProcessor
from fundraising_events.application.processors.campaign import (
    CampaignProjectionProcessor,
    CampaignWriteProcessor,
)
from fundraising_events.application.processors.donation_projection import DonationProjectionProcessor
from fundraising_events.application.processors.images import ImageMetadataProcessor
from fundraising_events.application.processors.organizations import OrganizationWriteProcessor
from fundraising_events.application.processors.payouts import PAYOUT_PROCESSORS
from fundraising_events.application.processors.project_updates import ProjectUpdateProcessor
from fundraising_events.application.processors.roles import (
    RoleAssignmentWriteProcessor,
    RoleRevocationWriteProcessor,
)
from fundraising_events.application.processors.subscriptions import (
    ActivityFeedProcessor,
    CountProjectionProcessor,
    SubscriptionDeleteProcessor,
    SubscriptionWriteProcessor,
)
from fundraising_events.application.processors.user_search import UserSearchProjectionProcessor
from fundraising_events.application.sagas.campaign_creation import CampaignCreationSagaHandler
from fundraising_events.application.versioning import EventVersionManager
from fundraising_events.observability.metrics import EventMetricsCollector
from fundraising_events.security.rbac import RoleHierarchyPolicy


class Subscriber(Protocol):
    def subscribe(self, event_type: str, handler: Handler) -> Callable[[], None]:
        ...


def build_processors(
    store: RowStore,
    idempotency: EventIdempotencyTracker,
    audit: AuditSink,
    *,
    versions: Optional[EventVersionManager] = None,
    metrics: Optional[EventMetricsCollector] = None,
    policy: Optional[RoleHierarchyPolicy] = None,
) -> List[IdempotentProcessor]:
    """
    Every processor in subscription order. The saga handler comes after the campaign
    write and projection processors because its steps confirm their rows, and the
    follow count projection after the subscription processors whose rows it counts.
    """
    common: dict[str, Any] = {"versions": versions, "metrics": metrics}
    processors: List[IdempotentProcessor] = [
        CampaignWriteProcessor(store, idempotency, **common),
        CampaignProjectionProcessor(store, idempotency, **common),
        CampaignCreationSagaHandler(store, idempotency, **common),
        DonationProjectionProcessor(store, idempotency, **common),
        RoleAssignmentWriteProcessor(store, idempotency, audit=audit, policy=policy, **common),
        RoleRevocationWriteProcessor(store, idempotency, audit=audit, policy=policy, **common),
        ImageMetadataProcessor(store, idempotency, **common),
        SubscriptionWriteProcessor(store, idempotency, **common),
        SubscriptionDeleteProcessor(store, idempotency, **common),
        ActivityFeedProcessor(store, idempotency, **common),
        CountProjectionProcessor(store, idempotency, **common),
        UserSearchProjectionProcessor(store, idempotency, **common),
        OrganizationWriteProcessor(store, idempotency, **common),
        ProjectUpdateProcessor(store, idempotency, **common),
    ]
    processors.extend(cls(store, idempotency, audit=audit, **common) for cls in PAYOUT_PROCESSORS)
    return processors


def register_processors(bus: Subscriber, processors: List[IdempotentProcessor]) -> List[Callable[[], None]]:
    """Subscribe each processor to its own event type. Returns the unsubscribe callables."""
    return [bus.subscribe(p.event_type, p) for p in processors]
