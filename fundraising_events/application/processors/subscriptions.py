"""Follow relationships between users and organizations, and what follows from them."""

from typing import Tuple

from fundraising_events.application.processors.base import IdempotentProcessor
from fundraising_events.domain.event_types import EventType
from fundraising_events.domain.models.event import DomainEvent, utc_now
from fundraising_events.domain.schemas.user import (
    UserFollowedOrganizationPayload,
    UserFollowedUserPayload,
    UserUnfollowedOrganizationPayload,
    UserUnfollowedUserPayload,
)

SUBSCRIPTIONS = "subscriptions"
USER_ACTIVITIES = "user_activities"
PROFILES = "profiles"
SUBSCRIPTION_KEY = ["follower_id", "following_id", "following_type"]
FOLLOW_TYPES = frozenset(
    t.value
    for t in (
        EventType.USER_FOLLOWED_USER,
        EventType.USER_UNFOLLOWED_USER,
        EventType.USER_FOLLOWED_ORGANIZATION,
        EventType.USER_UNFOLLOWED_ORGANIZATION,
    )
)


def _follow_target(event: DomainEvent) -> Tuple[str, str, str]:
    """(follower_id, following_id, following_type) for any follow or unfollow event."""
    if event.type == EventType.USER_FOLLOWED_USER:
        p = IdempotentProcessor.parse(event, UserFollowedUserPayload)
        return p.follower_id, p.followed_user_id, "user"
    if event.type == EventType.USER_UNFOLLOWED_USER:
        p = IdempotentProcessor.parse(event, UserUnfollowedUserPayload)
        return p.follower_id, p.unfollowed_user_id, "user"
    if event.type == EventType.USER_FOLLOWED_ORGANIZATION:
        o = IdempotentProcessor.parse(event, UserFollowedOrganizationPayload)
        return o.follower_id, o.organization_id, "organization"
    if event.type == EventType.USER_UNFOLLOWED_ORGANIZATION:
        o = IdempotentProcessor.parse(event, UserUnfollowedOrganizationPayload)
        return o.follower_id, o.organization_id, "organization"
    raise ValueError(f"Not a follow event: {event.type}")


class SubscriptionWriteProcessor(IdempotentProcessor):
    """Inserts the follow row; an existing row is left as it is."""

    event_type = "user.followed_*"

    async def apply(self, event: DomainEvent) -> None:
        follower_id, following_id, following_type = _follow_target(event)
        await self._store.upsert(
            SUBSCRIPTIONS,
            {"follower_id": follower_id, "following_id": following_id, "following_type": following_type},
            on_conflict=SUBSCRIPTION_KEY,
            ignore_duplicates=True,
        )


class SubscriptionDeleteProcessor(IdempotentProcessor):
    event_type = "user.unfollowed_*"

    async def apply(self, event: DomainEvent) -> None:
        follower_id, following_id, following_type = _follow_target(event)
        await self._store.delete(
            SUBSCRIPTIONS,
            {"follower_id": follower_id, "following_id": following_id, "following_type": following_type},
        )


class ActivityFeedProcessor(IdempotentProcessor):
    """One `followed` activity per follow event for the actor's feed."""

    event_type = "user.followed_*"

    async def apply(self, event: DomainEvent) -> None:
        follower_id, following_id, following_type = _follow_target(event)
        await self._store.insert(
            USER_ACTIVITIES,
            {
                "actor_id": follower_id,
                "activity_type": "followed",
                "target_type": following_type,
                "target_id": following_id,
                "metadata": {"event_id": event.id, "correlation_id": event.correlation_id},
            },
        )


class CountProjectionProcessor(IdempotentProcessor):
    """
    Recounts following_count for the follower and, for user follows, follower_count
    for the followed user. Counts come from the subscriptions table, so this runs
    after the subscription write and delete processors.
    """

    event_type = "user.*"

    async def apply(self, event: DomainEvent) -> None:
        if event.type not in FOLLOW_TYPES:
            return
        follower_id, following_id, following_type = _follow_target(event)
        now = utc_now()

        following = await self._store.select(SUBSCRIPTIONS, {"follower_id": follower_id})
        await self._store.update(
            PROFILES, {"following_count": len(following), "updated_at": now}, {"id": follower_id}
        )

        if following_type == "user":
            followers = await self._store.select(
                SUBSCRIPTIONS, {"following_id": following_id, "following_type": "user"}
            )
            await self._store.update(
                PROFILES, {"follower_count": len(followers), "updated_at": now}, {"id": following_id}
            )
