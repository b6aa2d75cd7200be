"""Image storage event payloads."""

from typing import Literal, Optional

from pydantic import Field

from fundraising_events.domain.schemas.base import EventPayload


class ImageUploadedPayload(EventPayload):
    image_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    storage_path: str
    public_url: str
    file_name: str
    file_size: int = Field(..., ge=0)
    mime_type: str
    image_type: Literal["cover", "gallery", "draft"]
    bucket: Literal["fundraiser-images", "fundraiser-gallery", "fundraiser-drafts"]
    fundraiser_id: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None


class ImageDeletedPayload(EventPayload):
    image_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    storage_path: str
    bucket: str
    reason: Literal["user_deleted", "fundraiser_deleted", "draft_expired", "admin_action"]


class ImageLinkedPayload(EventPayload):
    image_id: str = Field(..., min_length=1)
    fundraiser_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    image_type: Literal["cover", "gallery"]
    previous_fundraiser_id: Optional[str] = None


class ImageOptimizedPayload(EventPayload):
    image_id: str = Field(..., min_length=1)
    original_size: int = Field(..., ge=0)
    optimized_size: int = Field(..., ge=0)
    compression_ratio: float
    format: Literal["webp", "jpeg", "png"]
    optimized_url: str
