"""Role administration event payloads."""

from typing import Optional

from pydantic import Field

from fundraising_events.domain.schemas.base import EventPayload


class RoleAssignedPayload(EventPayload):
    user_id: str = Field(..., min_length=1)
    role_id: str = Field(..., min_length=1)
    role_name: str = Field(..., min_length=1)
    assigned_by: str = Field(..., min_length=1)
    context_type: str = "global"
    context_id: Optional[str] = None


class RoleRevokedPayload(EventPayload):
    user_id: str = Field(..., min_length=1)
    role_id: str = Field(..., min_length=1)
    role_name: str = Field(..., min_length=1)
    revoked_by: str = Field(..., min_length=1)
    context_type: str = "global"
    context_id: Optional[str] = None
