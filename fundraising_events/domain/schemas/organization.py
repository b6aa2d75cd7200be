"""Organization lifecycle event payloads."""

from typing import Any, Dict, Literal, Optional, Union

from pydantic import Field, field_validator

from fundraising_events.domain.schemas.base import EventPayload

VerificationStatus = Literal["pending", "verified", "rejected"]


class OrganizationCreatedPayload(EventPayload):
    organization_id: str = Field(..., min_length=1)
    legal_name: str = Field(..., min_length=1, max_length=255)
    created_by: str = Field(..., min_length=1)
    verification_status: VerificationStatus = "pending"
    dba_name: Optional[str] = None


class OrganizationVerifiedPayload(EventPayload):
    organization_id: str = Field(..., min_length=1)
    verified_by: str = Field(..., min_length=1)
    # epoch millis or ISO-8601
    verified_at: Union[int, float, str]


class OrganizationRejectedPayload(EventPayload):
    organization_id: str = Field(..., min_length=1)
    rejected_by: str = Field(..., min_length=1)
    reason: str = Field(..., min_length=1)


class OrganizationUpdatedPayload(EventPayload):
    organization_id: str = Field(..., min_length=1)
    updated_by: str = Field(..., min_length=1)
    changes: Dict[str, Any]

    @field_validator("changes")
    @classmethod
    def changes_not_empty(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        if not v:
            raise ValueError("changes must not be empty")
        return v


class OrganizationDeletedPayload(EventPayload):
    organization_id: str = Field(..., min_length=1)
    deleted_by: str = Field(..., min_length=1)
    reason: Optional[str] = None
