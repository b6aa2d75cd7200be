# fundraising_events/infrastructure/cache/redis_client.py

from typing import Dict, List, Optional, Sequence, Tuple

import redis.asyncio as redis

from fundraising_events.config.settings import get_settings

StreamFields = Dict[str, str]


class RedisClient:
    def __init__(self, url: Optional[str] = None):
        self.client = redis.from_url(
            url or get_settings().redis_url,
            decode_responses=True,
        )

    async def ping(self) -> bool:
        return bool(await self.client.ping())

    async def xadd(self, stream: str, fields: StreamFields) -> str:
        """Append an entry to a stream; returns the generated entry id."""
        return await self.client.xadd(stream, fields)

    async def xadd_many(self, stream: str, entries: Sequence[StreamFields]) -> List[str]:
        """Append several entries in one pipeline round trip."""
        async with self.client.pipeline(transaction=False) as pipe:
            for fields in entries:
                pipe.xadd(stream, fields)
            return await pipe.execute()

    async def xread(self, stream: str, last_id: str = "0", count: int = 100) -> List[Tuple[str, StreamFields]]:
        """Entries after last_id, oldest first, as (entry_id, fields) pairs."""
        response = await self.client.xread({stream: last_id}, count=count)
        if not response:
            return []
        _, entries = response[0]
        return [(entry_id, fields) for entry_id, fields in entries]

    async def xlen(self, stream: str) -> int:
        return await self.client.xlen(stream)

    async def set_nx_ex(self, key: str, value: str, ttl: int) -> bool:
        """Set key to value only if not exists, with TTL. Returns True if key was set."""
        return bool(await self.client.set(key, value, nx=True, ex=ttl))

    async def set_ex(self, key: str, value: str, ttl: int) -> None:
        await self.client.set(key, value, ex=ttl)

    async def get(self, key: str) -> str | None:
        """Get value for key. Returns None if key does not exist."""
        return await self.client.get(key)

    async def close(self) -> None:
        await self.client.aclose()
