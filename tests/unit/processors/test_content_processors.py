"""Image metadata, follow subscriptions and project update processors."""

import pytest

from fundraising_events.application.exceptions import RecordNotFoundError
from fundraising_events.application.processors.images import ImageMetadataProcessor
from fundraising_events.application.processors.project_updates import ProjectUpdateProcessor
from fundraising_events.application.processors.subscriptions import (
    SubscriptionDeleteProcessor,
    SubscriptionWriteProcessor,
)

UPLOADED = {
    "imageId": "img-1",
    "userId": "u1",
    "storagePath": "u1/cover.png",
    "publicUrl": "https://cdn.example.com/u1/cover.png",
    "fileName": "cover.png",
    "fileSize": 2048,
    "mimeType": "image/png",
    "imageType": "cover",
    "bucket": "fundraiser-images",
}


@pytest.fixture
def images(row_store, tracker):
    return ImageMetadataProcessor(row_store, tracker)


@pytest.mark.asyncio
async def test_image_upload_is_stored_once(images, row_store, make_event):
    await images.handle(make_event("storage.image.uploaded", UPLOADED))
    await images.handle(make_event("storage.image.uploaded", {**UPLOADED, "fileName": "other.png"}))

    [image] = row_store.rows("fundraiser_images")
    assert image["file_name"] == "cover.png"
    assert image["public_url"] == UPLOADED["publicUrl"]


@pytest.mark.asyncio
async def test_cover_link_updates_campaign(images, row_store, make_event):
    await row_store.insert("fundraisers", {"id": "c1", "owner_user_id": "u1", "title": "T", "cover_image": "/placeholder.svg"})
    await images.handle(make_event("storage.image.uploaded", UPLOADED))

    await images.handle(
        make_event("storage.image.linked", {"imageId": "img-1", "fundraiserId": "c1", "userId": "u1", "imageType": "cover"})
    )

    assert row_store.rows("fundraiser_images")[0]["fundraiser_id"] == "c1"
    assert row_store.rows("fundraisers")[0]["cover_image"] == UPLOADED["publicUrl"]


@pytest.mark.asyncio
async def test_gallery_link_leaves_cover(images, row_store, make_event):
    await row_store.insert("fundraisers", {"id": "c1", "owner_user_id": "u1", "title": "T", "cover_image": "/placeholder.svg"})
    await images.handle(make_event("storage.image.uploaded", {**UPLOADED, "imageType": "gallery"}))

    await images.handle(
        make_event("storage.image.linked", {"imageId": "img-1", "fundraiserId": "c1", "userId": "u1", "imageType": "gallery"})
    )

    assert row_store.rows("fundraisers")[0]["cover_image"] == "/placeholder.svg"


@pytest.mark.asyncio
async def test_image_optimized_and_deleted(images, row_store, make_event):
    await images.handle(make_event("storage.image.uploaded", UPLOADED))

    await images.handle(
        make_event(
            "storage.image.optimized",
            {
                "imageId": "img-1",
                "originalSize": 2048,
                "optimizedSize": 1024,
                "compressionRatio": 0.5,
                "format": "webp",
                "optimizedUrl": "https://cdn.example.com/u1/cover.webp",
            },
        )
    )
    assert row_store.rows("fundraiser_images")[0]["format"] == "webp"

    await images.handle(
        make_event(
            "storage.image.deleted",
            {"imageId": "img-1", "userId": "u1", "storagePath": "u1/cover.png", "bucket": "fundraiser-images", "reason": "user_deleted"},
        )
    )
    assert row_store.rows("fundraiser_images") == []


@pytest.mark.asyncio
async def test_follow_and_unfollow(row_store, tracker, make_event):
    follow = SubscriptionWriteProcessor(row_store, tracker)
    unfollow = SubscriptionDeleteProcessor(row_store, tracker)

    await follow.handle(make_event("user.followed_user", {"followerId": "u1", "followedUserId": "u2"}))
    await follow.handle(make_event("user.followed_user", {"followerId": "u1", "followedUserId": "u2"}))
    await follow.handle(make_event("user.followed_organization", {"followerId": "u1", "organizationId": "o1"}))

    targets = sorted((r["following_id"], r["following_type"]) for r in row_store.rows("subscriptions"))
    assert targets == [("o1", "organization"), ("u2", "user")]

    await unfollow.handle(make_event("user.unfollowed_user", {"followerId": "u1", "unfollowedUserId": "u2"}))

    assert [r["following_id"] for r in row_store.rows("subscriptions")] == ["o1"]


@pytest.fixture
def updates(row_store, tracker):
    return ProjectUpdateProcessor(row_store, tracker)


def _update_created(make_event):
    return make_event(
        "project.update.created",
        {
            "updateId": "up1",
            "fundraiserId": "c1",
            "authorId": "u1",
            "title": "Week one",
            "body": "We started.",
            "attachments": [{"type": "image", "url": "https://cdn.example.com/a.png"}],
            "usedAI": True,
        },
    )


@pytest.mark.asyncio
async def test_project_update_created_bumps_count(updates, row_store, make_event):
    await row_store.insert("campaign_stats_projection", {"campaign_id": "c1"})

    await updates.handle(_update_created(make_event))

    [update] = row_store.rows("project_updates")
    assert update["id"] == "up1"
    assert update["used_ai"] is True
    assert update["attachments"] == [{"type": "image", "url": "https://cdn.example.com/a.png"}]
    assert row_store.rows("campaign_stats_projection")[0]["update_count"] == 1


@pytest.mark.asyncio
async def test_project_update_edit_by_author_only(updates, row_store, make_event):
    await updates.handle(_update_created(make_event))

    await updates.handle(
        make_event(
            "project.update.edited",
            {"updateId": "up1", "fundraiserId": "c1", "authorId": "u1", "changes": {"title": "Week 1"}},
        )
    )
    assert row_store.rows("project_updates")[0]["title"] == "Week 1"
    assert row_store.rows("project_updates")[0]["body"] == "We started."

    with pytest.raises(RecordNotFoundError):
        await updates.handle(
            make_event(
                "project.update.edited",
                {"updateId": "up1", "fundraiserId": "c1", "authorId": "u2", "changes": {"title": "Hijack"}},
            )
        )


@pytest.mark.asyncio
async def test_project_update_deleted_decrements_count(updates, row_store, make_event):
    await row_store.insert("campaign_stats_projection", {"campaign_id": "c1"})
    await updates.handle(_update_created(make_event))

    await updates.handle(
        make_event("project.update.deleted", {"updateId": "up1", "fundraiserId": "c1", "authorId": "u1"})
    )

    assert row_store.rows("project_updates") == []
    assert row_store.rows("campaign_stats_projection")[0]["update_count"] == 0
