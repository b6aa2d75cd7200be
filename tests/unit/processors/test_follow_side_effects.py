"""Activity feed entries and follower/following counts driven by follow events."""

import pytest

from fundraising_events.application.processors.subscriptions import (
    ActivityFeedProcessor,
    CountProjectionProcessor,
    SubscriptionDeleteProcessor,
    SubscriptionWriteProcessor,
)


@pytest.fixture
async def profiles(row_store):
    await row_store.insert("profiles", [{"id": "u1"}, {"id": "u2"}, {"id": "u3"}])


@pytest.fixture
def follow(row_store, tracker):
    writer = SubscriptionWriteProcessor(row_store, tracker)
    deleter = SubscriptionDeleteProcessor(row_store, tracker)
    counts = CountProjectionProcessor(row_store, tracker)

    async def _run(event):
        for processor in (writer, deleter, counts):
            if event.type.startswith(processor.event_type.rstrip("*")):
                await processor.handle(event)

    return _run


def _profile(row_store, user_id):
    return next(p for p in row_store.rows("profiles") if p["id"] == user_id)


@pytest.mark.asyncio
async def test_activity_recorded_for_follow(row_store, tracker, make_event):
    activity = ActivityFeedProcessor(row_store, tracker)
    event = make_event("user.followed_organization", {"followerId": "u1", "organizationId": "o1"})

    await activity.handle(event)
    await activity.handle(event)

    [row] = row_store.rows("user_activities")
    assert (row["actor_id"], row["activity_type"], row["target_type"], row["target_id"]) == (
        "u1",
        "followed",
        "organization",
        "o1",
    )
    assert row["metadata"] == {"event_id": event.id, "correlation_id": "corr-1"}


@pytest.mark.asyncio
async def test_counts_follow_and_unfollow(follow, row_store, make_event, profiles):
    await follow(make_event("user.followed_user", {"followerId": "u1", "followedUserId": "u2"}))
    await follow(make_event("user.followed_user", {"followerId": "u3", "followedUserId": "u2"}))
    await follow(make_event("user.followed_organization", {"followerId": "u1", "organizationId": "o1"}))

    assert _profile(row_store, "u1")["following_count"] == 2
    assert _profile(row_store, "u2")["follower_count"] == 2

    await follow(make_event("user.unfollowed_user", {"followerId": "u1", "unfollowedUserId": "u2"}))

    assert _profile(row_store, "u1")["following_count"] == 1
    assert _profile(row_store, "u2")["follower_count"] == 1


@pytest.mark.asyncio
async def test_count_projection_ignores_non_follow_user_events(row_store, tracker, make_event, profiles):
    counts = CountProjectionProcessor(row_store, tracker)
    writes = row_store.count_writes()

    await counts.handle(make_event("user.registered", {"userId": "u1", "email": "u1@example.com"}))

    assert row_store.count_writes() == writes
