# fundraising_events/infrastructure/database/session.py

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from fundraising_events.infrastructure.database.tables import metadata


def build_engine(database_url: str, *, echo: bool = False) -> AsyncEngine:
    """Async engine for PostgreSQL (asyncpg) or SQLite (aiosqlite). SQLite takes no pool sizing."""
    if make_url(database_url).get_backend_name() == "sqlite":
        return create_async_engine(database_url, echo=echo)
    return create_async_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


async def create_schema(engine: AsyncEngine) -> None:
    """Create every table the event system writes. Development and tests; production uses migrations."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
