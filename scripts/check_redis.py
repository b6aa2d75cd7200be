# scripts/check_redis.py

import sys
from pathlib import Path

# Ensure project root is on the path when running this script directly
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import asyncio

from fundraising_events.config.settings import get_settings
from fundraising_events.infrastructure.cache.idempotency_redis import RedisIdempotencyTracker
from fundraising_events.infrastructure.cache.redis_client import RedisClient


async def check():
    r = RedisClient(get_settings().redis_url)
    tracker = RedisIdempotencyTracker(r)

    first = await tracker.should_process("evt_123", "SmokeCheck")
    second = await tracker.should_process("evt_123", "SmokeCheck")

    print("First claim:", first)
    print("Second claim:", second)
    await r.close()

asyncio.run(check())
