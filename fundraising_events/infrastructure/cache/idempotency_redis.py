"""Idempotency tracker backed by Redis, for deployments with several bus instances."""

import logging
from typing import Optional

from fundraising_events.application.idempotency import (
    COMPLETED,
    FAILED_PREFIX,
    PROCESSING,
    idempotency_key,
)
from fundraising_events.infrastructure.cache.redis_client import RedisClient

logger = logging.getLogger(__name__)

KEY_PREFIX = "idempotency:"


class RedisIdempotencyTracker:
    """
    Same contract as EventIdempotencyTracker; the claim is a single SET NX EX so two
    processes can never both win the same (event, processor) slot.
    """

    def __init__(
        self,
        redis_client: RedisClient,
        *,
        processing_ttl_seconds: int = 300,
        terminal_ttl_seconds: int = 86400,
    ) -> None:
        self._redis = redis_client
        self._processing_ttl = processing_ttl_seconds
        self._terminal_ttl = terminal_ttl_seconds

    @staticmethod
    def _key(event_id: str, processor_name: str) -> str:
        return KEY_PREFIX + idempotency_key(event_id, processor_name)

    async def should_process(self, event_id: str, processor_name: str) -> bool:
        claimed = await self._redis.set_nx_ex(
            self._key(event_id, processor_name), PROCESSING, self._processing_ttl
        )
        if not claimed:
            logger.debug(
                "event_already_claimed",
                extra={"event_id": event_id, "processor": processor_name},
            )
        return claimed

    async def mark_complete(self, event_id: str, processor_name: str) -> None:
        await self._redis.set_ex(self._key(event_id, processor_name), COMPLETED, self._terminal_ttl)

    async def mark_failed(self, event_id: str, processor_name: str, reason: str) -> None:
        await self._redis.set_ex(
            self._key(event_id, processor_name), f"{FAILED_PREFIX}{reason}", self._terminal_ttl
        )

    async def get_status(self, event_id: str, processor_name: str) -> Optional[str]:
        return await self._redis.get(self._key(event_id, processor_name))

    def start(self) -> None:
        """Redis expires keys itself; nothing to sweep."""

    async def stop(self) -> None:
        """Nothing to stop."""
