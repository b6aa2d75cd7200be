"""Campaign event payloads."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, field_validator

from fundraising_events.domain.schemas.base import EventPayload

CampaignStatus = Literal["draft", "active", "paused", "completed", "cancelled"]
CampaignVisibility = Literal["public", "private", "unlisted"]


class MilestoneInput(EventPayload):
    title: str = Field(..., min_length=1)
    target_amount: float = Field(..., gt=0)
    description: Optional[str] = None
    due_date: Optional[str] = None


class CampaignCreatedPayload(EventPayload):
    campaign_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    goal_amount: float = Field(..., gt=0)
    visibility: CampaignVisibility = "public"
    category_id: Optional[str] = None
    description: Optional[str] = None
    slug: Optional[str] = None
    summary: Optional[str] = None
    story: Optional[str] = None
    currency: str = "USD"
    beneficiary_name: Optional[str] = None
    location: Optional[str] = None
    cover_image: Optional[str] = None
    cover_image_id: Optional[str] = None
    end_date: Optional[str] = None
    status: CampaignStatus = "active"
    type: str = "personal"
    is_discoverable: bool = True
    is_project: bool = False
    milestones: List[MilestoneInput] = Field(default_factory=list)
    allowlist_emails: List[str] = Field(default_factory=list)
    link_token: Optional[str] = None
    passcode: Optional[str] = None
    tags: List[str] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("title must not be blank")
        return v.strip()


class CampaignUpdatedPayload(EventPayload):
    campaign_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    changes: Dict[str, Any]
    previous_values: Optional[Dict[str, Any]] = None

    @field_validator("changes")
    @classmethod
    def changes_not_empty(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        if not v:
            raise ValueError("changes must not be empty")
        return v


class CampaignDeletedPayload(EventPayload):
    campaign_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    reason: Optional[str] = None


class CampaignGoalReachedPayload(EventPayload):
    campaign_id: str = Field(..., min_length=1)
    goal_amount: float
    total_raised: float
    donor_count: int = Field(..., ge=0)


class CampaignStatusChangedPayload(EventPayload):
    campaign_id: str = Field(..., min_length=1)
    previous_status: CampaignStatus
    new_status: CampaignStatus
    reason: Optional[str] = None
