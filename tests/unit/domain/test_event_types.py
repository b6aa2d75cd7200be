"""Subscription pattern matching and the event envelope."""

from datetime import datetime, timezone

import pytest

from fundraising_events.domain.event_types import EventType, matches
from fundraising_events.domain.models.event import (
    DomainEvent,
    caused_by,
    create_event,
    parse_timestamp,
)


@pytest.mark.parametrize(
    "pattern,event_type,expected",
    [
        ("*", "campaign.created", True),
        ("campaign.created", "campaign.created", True),
        ("campaign.*", "campaign.status_changed", True),
        ("campaign.*", "donation.completed", False),
        ("user.followed_*", "user.followed_organization", True),
        ("user.followed_*", "user.unfollowed_user", False),
        ("donation.completed", "donation.refunded", False),
    ],
)
def test_matches(pattern, event_type, expected):
    assert matches(pattern, event_type) is expected


def test_matches_accepts_enum_members():
    assert matches(EventType.DONATION_COMPLETED, "donation.completed")


def test_create_event_fresh_id_and_utc_timestamp():
    a = create_event(EventType.CAMPAIGN_CREATED, {"campaignId": "c1"})
    b = create_event(EventType.CAMPAIGN_CREATED, {"campaignId": "c1"})
    assert a.id != b.id
    assert a.type == "campaign.created"
    assert a.timestamp.tzinfo is not None
    assert a.version == "1.0.0"


def test_caused_by_keeps_correlation_chain():
    parent = create_event("campaign.created", {}, correlation_id="corr-9")
    child = caused_by(parent, "campaign.updated", {"campaignId": "c1"})
    assert child.correlation_id == "corr-9"
    assert child.causation_id == parent.id


def test_caused_by_falls_back_to_parent_id():
    parent = create_event("campaign.created", {})
    child = caused_by(parent, "campaign.updated", {})
    assert child.correlation_id == parent.id


def test_with_metadata_returns_new_event():
    event = create_event("campaign.created", {}, metadata={"a": 1})
    stamped = event.with_metadata(clientId="x")
    assert stamped.metadata == {"a": 1, "clientId": "x"}
    assert event.metadata == {"a": 1}


def test_message_round_trip():
    event = create_event("donation.completed", {"amount": 5}, correlation_id="c")
    restored = DomainEvent.from_message(event.to_message())
    assert restored.id == event.id
    assert restored.payload == {"amount": 5}
    assert restored.correlation_id == "c"
    assert restored.occurred_at_ms == event.occurred_at_ms


def test_message_does_not_share_payload_or_metadata():
    event = create_event("donation.completed", {"amount": 5}, metadata={"clientId": "a"})
    message = event.to_message()
    message["payload"]["amount"] = 999
    message["metadata"]["clientId"] = "b"
    assert event.payload == {"amount": 5}
    assert event.metadata == {"clientId": "a"}


def test_parse_timestamp_forms():
    expected = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert parse_timestamp(1704067200000) == expected
    assert parse_timestamp("1704067200000") == expected
    assert parse_timestamp("2024-01-01T00:00:00Z") == expected
    assert parse_timestamp(datetime(2024, 1, 1)) == expected
    with pytest.raises(ValueError):
        parse_timestamp(None)
