# scripts/check_db.py
import sys
from pathlib import Path

from sqlalchemy import text

# Ensure project root is on the path when running this script directly
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import asyncio

from fundraising_events.config.settings import get_settings
from fundraising_events.infrastructure.database.session import build_engine, create_schema


async def check_connection():
    engine = build_engine(get_settings().database_url)
    try:
        async with engine.begin() as conn:
            result = await conn.execute(text("SELECT 1"))
            print("DB Connected:", result.scalar())
        await create_schema(engine)
        print("Schema ready")
    finally:
        await engine.dispose()

asyncio.run(check_connection())
