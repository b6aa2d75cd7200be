"""Payload schemas registered per event type."""

import pytest

from fundraising_events.domain.event_types import EventType
from fundraising_events.domain.exceptions import EventValidationError, UnregisteredEventTypeError
from fundraising_events.domain.models.event import create_event
from fundraising_events.domain.schemas.campaign import CampaignCreatedPayload
from fundraising_events.domain.schemas.registry import SchemaRegistry, default_schema_registry


def test_every_event_type_has_a_schema():
    registry = default_schema_registry()
    for event_type in EventType:
        assert registry.is_registered(event_type.value), event_type


def test_valid_campaign_payload_parses_camel_case():
    registry = default_schema_registry()
    event = create_event(
        EventType.CAMPAIGN_CREATED,
        {"campaignId": "c1", "userId": "u1", "title": "  Help Rebuild ", "goalAmount": 5000},
    )
    payload = registry.validate(event)
    assert isinstance(payload, CampaignCreatedPayload)
    assert payload.campaign_id == "c1"
    assert payload.title == "Help Rebuild"
    assert payload.visibility == "public"


def test_missing_required_field_rejected():
    registry = default_schema_registry()
    event = create_event(EventType.DONATION_COMPLETED, {"donationId": "d1", "amount": 10})
    with pytest.raises(EventValidationError) as exc_info:
        registry.validate(event)
    assert exc_info.value.errors


def test_non_positive_amount_rejected():
    registry = default_schema_registry()
    event = create_event(
        EventType.DONATION_COMPLETED,
        {"donationId": "d1", "campaignId": "c1", "amount": 0},
    )
    with pytest.raises(EventValidationError):
        registry.validate(event)


def test_empty_campaign_changes_rejected():
    registry = default_schema_registry()
    event = create_event(
        EventType.CAMPAIGN_UPDATED,
        {"campaignId": "c1", "userId": "u1", "changes": {}},
    )
    with pytest.raises(EventValidationError):
        registry.validate(event)


def test_unregistered_type():
    registry = SchemaRegistry()
    with pytest.raises(UnregisteredEventTypeError):
        registry.validate(create_event("mystery.happened", {}))
