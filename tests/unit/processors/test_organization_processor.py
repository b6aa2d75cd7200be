"""Organization write model."""

from datetime import datetime, timezone

import pytest

from fundraising_events.application.exceptions import RecordNotFoundError
from fundraising_events.application.processors.organizations import OrganizationWriteProcessor

CREATED = {"organizationId": "o1", "legalName": "Rebuild Trust", "createdBy": "u1", "verificationStatus": "pending"}


@pytest.fixture
def processor(row_store, tracker):
    return OrganizationWriteProcessor(row_store, tracker)


@pytest.fixture
async def organization(processor, make_event):
    await processor.handle(make_event("organization.created", CREATED))


@pytest.mark.asyncio
async def test_created_inserts_once(processor, row_store, make_event):
    await processor.handle(make_event("organization.created", CREATED))
    await processor.handle(make_event("organization.created", {**CREATED, "legalName": "Other"}))

    [org] = row_store.rows("organizations")
    assert org["id"] == "o1"
    assert org["legal_name"] == "Rebuild Trust"
    assert org["verification_status"] == "pending"


@pytest.mark.asyncio
async def test_verified_then_rejected(processor, row_store, make_event, organization):
    await processor.handle(
        make_event("organization.verified", {"organizationId": "o1", "verifiedBy": "admin-1", "verifiedAt": 1704067200000})
    )
    org = row_store.rows("organizations")[0]
    assert org["verification_status"] == "verified"
    assert org["verified_at"] == datetime(2024, 1, 1, tzinfo=timezone.utc)

    await processor.handle(
        make_event("organization.rejected", {"organizationId": "o1", "rejectedBy": "admin-1", "reason": "bad docs"})
    )
    org = row_store.rows("organizations")[0]
    assert (org["verification_status"], org["rejection_reason"]) == ("rejected", "bad docs")


@pytest.mark.asyncio
async def test_updated_maps_known_fields(processor, row_store, make_event, organization):
    await processor.handle(
        make_event(
            "organization.updated",
            {"organizationId": "o1", "updatedBy": "u1", "changes": {"dbaName": "Rebuild", "ein": "12-3"}},
        )
    )

    org = row_store.rows("organizations")[0]
    assert org["dba_name"] == "Rebuild"
    assert "ein" not in org


@pytest.mark.asyncio
async def test_unknown_organization(processor, make_event):
    with pytest.raises(RecordNotFoundError):
        await processor.handle(
            make_event("organization.rejected", {"organizationId": "nope", "rejectedBy": "a", "reason": "r"})
        )


@pytest.mark.asyncio
async def test_deleted(processor, row_store, make_event, organization):
    await processor.handle(make_event("organization.deleted", {"organizationId": "o1", "deletedBy": "admin-1"}))
    assert row_store.rows("organizations") == []
