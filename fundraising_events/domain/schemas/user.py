"""User registration, profile and follow event payloads."""

from typing import Any, Dict, Literal, Optional

from pydantic import Field

from fundraising_events.domain.schemas.base import EventPayload


class UserRegisteredPayload(EventPayload):
    user_id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    name: Optional[str] = None
    registration_method: Literal["email", "google", "apple", "magic_link"] = "email"


class UserFollowedUserPayload(EventPayload):
    follower_id: str = Field(..., min_length=1)
    followed_user_id: str = Field(..., min_length=1)


class UserUnfollowedUserPayload(EventPayload):
    follower_id: str = Field(..., min_length=1)
    unfollowed_user_id: str = Field(..., min_length=1)


class UserFollowedOrganizationPayload(EventPayload):
    follower_id: str = Field(..., min_length=1)
    organization_id: str = Field(..., min_length=1)


class UserUnfollowedOrganizationPayload(EventPayload):
    follower_id: str = Field(..., min_length=1)
    organization_id: str = Field(..., min_length=1)


class UserProfileUpdatedPayload(EventPayload):
    user_id: str = Field(..., min_length=1)
    changes: Dict[str, Any] = Field(default_factory=dict)
