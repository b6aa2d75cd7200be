"""Image metadata kept in step with the storage bucket."""

from fundraising_events.application.processors.base import IdempotentProcessor
from fundraising_events.domain.event_types import EventType
from fundraising_events.domain.models.event import DomainEvent, utc_now
from fundraising_events.domain.schemas.storage import (
    ImageDeletedPayload,
    ImageLinkedPayload,
    ImageOptimizedPayload,
    ImageUploadedPayload,
)

FUNDRAISER_IMAGES = "fundraiser_images"
FUNDRAISERS = "fundraisers"


class ImageMetadataProcessor(IdempotentProcessor):
    event_type = "storage.image.*"

    async def apply(self, event: DomainEvent) -> None:
        if event.type == EventType.IMAGE_UPLOADED:
            p = self.parse(event, ImageUploadedPayload)
            await self._store.upsert(
                FUNDRAISER_IMAGES,
                {
                    "id": p.image_id,
                    "user_id": p.user_id,
                    "fundraiser_id": p.fundraiser_id,
                    "storage_path": p.storage_path,
                    "public_url": p.public_url,
                    "file_name": p.file_name,
                    "file_size": p.file_size,
                    "mime_type": p.mime_type,
                    "image_type": p.image_type,
                    "bucket": p.bucket,
                    "width": p.width,
                    "height": p.height,
                },
                on_conflict=["id"],
                ignore_duplicates=True,
            )
        elif event.type == EventType.IMAGE_DELETED:
            p = self.parse(event, ImageDeletedPayload)
            await self._store.delete(FUNDRAISER_IMAGES, {"id": p.image_id, "user_id": p.user_id})
        elif event.type == EventType.IMAGE_LINKED:
            await self._linked(self.parse(event, ImageLinkedPayload))
        elif event.type == EventType.IMAGE_OPTIMIZED:
            p = self.parse(event, ImageOptimizedPayload)
            await self._store.update(
                FUNDRAISER_IMAGES,
                {
                    "optimized_url": p.optimized_url,
                    "optimized_size": p.optimized_size,
                    "compression_ratio": p.compression_ratio,
                    "format": p.format,
                    "updated_at": utc_now(),
                },
                {"id": p.image_id},
            )

    async def _linked(self, p: ImageLinkedPayload) -> None:
        rows = await self._store.update(
            FUNDRAISER_IMAGES,
            {"fundraiser_id": p.fundraiser_id, "image_type": p.image_type, "updated_at": utc_now()},
            {"id": p.image_id, "user_id": p.user_id},
        )
        if rows and p.image_type == "cover":
            await self._store.update(
                FUNDRAISERS,
                {"cover_image": rows[0]["public_url"], "updated_at": utc_now()},
                {"id": p.fundraiser_id, "owner_user_id": p.user_id},
            )
