"""Project update event payloads."""

from typing import List, Literal, Optional

from pydantic import Field

from fundraising_events.domain.schemas.base import EventPayload

UpdateVisibility = Literal["public", "donors_only"]


class UpdateAttachment(EventPayload):
    type: Literal["image", "document"]
    url: str


class ProjectUpdateCreatedPayload(EventPayload):
    update_id: str = Field(..., min_length=1)
    fundraiser_id: str = Field(..., min_length=1)
    author_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    body: str
    visibility: UpdateVisibility = "public"
    milestone_id: Optional[str] = None
    attachments: List[UpdateAttachment] = Field(default_factory=list)
    used_ai: bool = Field(default=False, alias="usedAI")


class ProjectUpdateChanges(EventPayload):
    title: Optional[str] = None
    body: Optional[str] = None
    visibility: Optional[UpdateVisibility] = None


class ProjectUpdateEditedPayload(EventPayload):
    update_id: str = Field(..., min_length=1)
    fundraiser_id: str = Field(..., min_length=1)
    author_id: str = Field(..., min_length=1)
    changes: ProjectUpdateChanges


class ProjectUpdateDeletedPayload(EventPayload):
    update_id: str = Field(..., min_length=1)
    fundraiser_id: str = Field(..., min_length=1)
    author_id: str = Field(..., min_length=1)
