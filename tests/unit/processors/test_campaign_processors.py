"""Campaign write model and projection processors."""

import pytest

from fundraising_events.application.exceptions import RecordNotFoundError
from fundraising_events.application.processors.campaign import (
    PLACEHOLDER_COVER_IMAGE,
    CampaignProjectionProcessor,
    CampaignWriteProcessor,
)
from fundraising_events.application.processors.donation_projection import DonationProjectionProcessor
from fundraising_events.security.passcode import verify_passcode

CREATED = {
    "campaignId": "c1",
    "userId": "u1",
    "title": "Help Rebuild",
    "goalAmount": 5000,
    "categoryId": "cat1",
    "visibility": "public",
}


@pytest.fixture
def writer(row_store, tracker):
    return CampaignWriteProcessor(row_store, tracker)


@pytest.fixture
def projector(row_store, tracker):
    return CampaignProjectionProcessor(row_store, tracker)


@pytest.mark.asyncio
async def test_created_inserts_fundraiser(writer, row_store, make_event):
    await writer.handle(make_event("campaign.created", CREATED))

    rows = row_store.rows("fundraisers")
    assert len(rows) == 1
    row = rows[0]
    assert row["id"] == "c1"
    assert row["owner_user_id"] == "u1"
    assert row["goal_amount"] == 5000
    assert row["slug"] == "help-rebuild-c1"
    assert row["cover_image"] == PLACEHOLDER_COVER_IMAGE
    assert row["passcode_hash"] is None


@pytest.mark.asyncio
async def test_same_event_twice_writes_once(writer, row_store, make_event):
    event = make_event("campaign.created", CREATED)
    await writer.handle(event)
    writes = row_store.count_writes()

    await writer.handle(event)

    assert row_store.count_writes() == writes
    assert len(row_store.rows("fundraisers")) == 1


@pytest.mark.asyncio
async def test_created_with_passcode_milestones_and_allowlist(writer, row_store, make_event):
    payload = {
        **CREATED,
        "visibility": "private",
        "passcode": "open sesame",
        "isProject": True,
        "milestones": [{"title": "Roof", "targetAmount": 1000}],
        "allowlistEmails": [" Friend@Example.com "],
        "coverImageId": "img-1",
    }
    await row_store.insert("fundraiser_images", {"id": "img-1", "user_id": "u1"})

    await writer.handle(make_event("campaign.created", payload))

    row = row_store.rows("fundraisers")[0]
    assert verify_passcode("open sesame", row["passcode_hash"])
    milestone = row_store.rows("project_milestones")[0]
    assert milestone["fundraiser_id"] == "c1"
    assert milestone["target_amount"] == 1000
    rule = row_store.rows("campaign_access_rules")[0]
    assert (rule["rule_type"], rule["rule_value"]) == ("email_allowlist", "friend@example.com")
    assert row_store.rows("fundraiser_images")[0]["fundraiser_id"] == "c1"


@pytest.mark.asyncio
async def test_cover_link_failure_is_not_fatal(writer, row_store, make_event, tracker):
    row_store.fail_on.add(("update", "fundraiser_images"))
    event = make_event("campaign.created", {**CREATED, "coverImageId": "img-1"})

    await writer.handle(event)

    assert len(row_store.rows("fundraisers")) == 1
    assert await tracker.get_status(event.id, writer.name) == "completed"


@pytest.mark.asyncio
async def test_public_campaign_has_no_access_rules(writer, row_store, make_event):
    await writer.handle(make_event("campaign.created", {**CREATED, "allowlistEmails": ["a@b.c"]}))
    assert row_store.rows("campaign_access_rules") == []


@pytest.mark.asyncio
async def test_updated_maps_changes_for_owner(writer, row_store, make_event):
    await writer.handle(make_event("campaign.created", CREATED))

    await writer.handle(
        make_event(
            "campaign.updated",
            {"campaignId": "c1", "userId": "u1", "changes": {"title": "New", "goalAmount": 9000, "story": "a\nb"}},
        )
    )

    row = row_store.rows("fundraisers")[0]
    assert row["title"] == "New"
    assert row["goal_amount"] == 9000
    assert row["story_html"] == "a<br>b"
    assert row["updated_at"] is not None


@pytest.mark.asyncio
async def test_updated_by_non_owner_fails(writer, row_store, make_event, tracker):
    await writer.handle(make_event("campaign.created", CREATED))
    event = make_event("campaign.updated", {"campaignId": "c1", "userId": "intruder", "changes": {"title": "X"}})

    with pytest.raises(RecordNotFoundError):
        await writer.handle(event)

    assert row_store.rows("fundraisers")[0]["title"] == "Help Rebuild"
    assert (await tracker.get_status(event.id, writer.name)).startswith("failed:")


@pytest.mark.asyncio
async def test_status_changed(writer, row_store, make_event):
    await writer.handle(make_event("campaign.created", CREATED))
    await writer.handle(
        make_event("campaign.status_changed", {"campaignId": "c1", "previousStatus": "active", "newStatus": "paused"})
    )
    assert row_store.rows("fundraisers")[0]["status"] == "paused"


@pytest.mark.asyncio
async def test_projections_created(writer, projector, row_store, make_event):
    event = make_event("campaign.created", CREATED)
    await writer.handle(event)
    await projector.handle(event)

    summary = row_store.rows("campaign_summary_projection")[0]
    assert summary["campaign_id"] == "c1"
    assert summary["title"] == "Help Rebuild"
    assert summary["total_raised"] == 0
    assert summary["donor_count"] == 0
    assert summary["category_id"] == "cat1"
    assert row_store.rows("campaign_stats_projection")[0]["donation_count"] == 0
    assert row_store.rows("campaign_search_projection")[0]["slug"] == "help-rebuild-c1"


@pytest.mark.asyncio
async def test_projection_falls_back_to_event_payload(projector, row_store, make_event):
    await projector.handle(make_event("campaign.created", CREATED))
    assert row_store.rows("campaign_summary_projection")[0]["title"] == "Help Rebuild"


@pytest.mark.asyncio
async def test_projection_keeps_existing_stats(projector, row_store, make_event):
    await row_store.insert("campaign_stats_projection", {"campaign_id": "c1", "donation_count": 4})

    await projector.handle(make_event("campaign.created", CREATED))

    stats = row_store.rows("campaign_stats_projection")
    assert len(stats) == 1
    assert stats[0]["donation_count"] == 4


@pytest.mark.asyncio
async def test_projection_refresh_after_update(writer, projector, row_store, make_event):
    created = make_event("campaign.created", CREATED)
    await writer.handle(created)
    await projector.handle(created)
    updated = make_event("campaign.updated", {"campaignId": "c1", "userId": "u1", "changes": {"title": "Renamed"}})
    await writer.handle(updated)

    await projector.handle(updated)

    assert row_store.rows("campaign_summary_projection")[0]["title"] == "Renamed"
    assert row_store.rows("campaign_search_projection")[0]["title"] == "Renamed"


@pytest.mark.asyncio
async def test_goal_reached_and_deleted(projector, row_store, make_event):
    await projector.handle(make_event("campaign.created", CREATED))

    await projector.handle(
        make_event(
            "campaign.goal_reached",
            {"campaignId": "c1", "goalAmount": 5000, "totalRaised": 5100, "donorCount": 12},
        )
    )
    summary = row_store.rows("campaign_summary_projection")[0]
    assert (summary["total_raised"], summary["donor_count"]) == (5100, 12)

    await projector.handle(make_event("campaign.deleted", {"campaignId": "c1", "userId": "u1"}))
    for table in ("campaign_summary_projection", "campaign_stats_projection", "campaign_search_projection"):
        assert row_store.rows(table) == []


@pytest.mark.asyncio
async def test_donation_before_creation_keeps_summary_totals(projector, row_store, tracker, make_event):
    donations = DonationProjectionProcessor(row_store, tracker)
    await donations.handle(
        make_event("donation.completed", {"donationId": "d1", "campaignId": "c1", "amount": 50, "donorId": "u9"})
    )

    await projector.handle(make_event("campaign.created", CREATED))

    stats = row_store.rows("campaign_stats_projection")[0]
    summary = row_store.rows("campaign_summary_projection")[0]
    assert stats["total_donations"] == 50
    assert (summary["total_raised"], summary["donor_count"]) == (50, 1)
    assert summary["title"] == "Help Rebuild"
