"""SqlAlchemyRowStore against SQLite (aiosqlite)."""

import pytest

from fundraising_events.infrastructure.database.row_store import SqlAlchemyRowStore
from fundraising_events.infrastructure.database.session import build_engine, create_schema
from fundraising_events.infrastructure.realtime.change_feed import InProcessChangeFeed


@pytest.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'events.db'}")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def feed():
    return InProcessChangeFeed()


@pytest.fixture
def store(engine, feed):
    return SqlAlchemyRowStore(engine, change_feed=feed)


@pytest.mark.asyncio
async def test_insert_returns_rows_with_defaults(store):
    [row] = await store.insert("profiles", {"id": "u1"})
    assert row["role"] == "visitor"
    assert row["campaign_count"] == 0


@pytest.mark.asyncio
async def test_insert_announces_on_change_feed(store, feed):
    seen = []

    async def on_insert(row):
        seen.append(row["follower_id"])

    await feed.subscribe("subscriptions", on_insert)
    await store.insert(
        "subscriptions",
        [
            {"follower_id": "a", "following_id": "b", "following_type": "user"},
            {"follower_id": "c", "following_id": "b", "following_type": "user"},
        ],
    )
    assert seen == ["a", "c"]


@pytest.mark.asyncio
async def test_select_filters_and_orders(store):
    await store.insert(
        "profiles",
        [
            {"id": "u1", "role": "donor", "campaign_count": 3},
            {"id": "u2", "role": "creator", "campaign_count": 1},
            {"id": "u3", "role": "donor", "campaign_count": 2},
        ],
    )

    donors = await store.select("profiles", {"role": "donor"}, order_by="campaign_count")
    assert [r["id"] for r in donors] == ["u3", "u1"]

    some = await store.select("profiles", {"id": ["u1", "u2"]}, order_by="id", descending=True, limit=1)
    assert [r["id"] for r in some] == ["u2"]

    ranged = await store.select("profiles", gte={"campaign_count": 2}, lte={"campaign_count": 2})
    assert [r["id"] for r in ranged] == ["u3"]

    paged = await store.select("profiles", order_by="id", limit=1, offset=1)
    assert [r["id"] for r in paged] == ["u2"]


@pytest.mark.asyncio
async def test_null_match(store):
    await store.insert("user_role_assignments", {"user_id": "u1", "role_id": "r1"})
    assert len(await store.select("user_role_assignments", {"context_id": None})) == 1


@pytest.mark.asyncio
async def test_update_and_delete(store):
    await store.insert("profiles", [{"id": "u1"}, {"id": "u2"}])

    updated = await store.update("profiles", {"role": "creator"}, {"id": "u1"})
    assert [r["role"] for r in updated] == ["creator"]
    assert await store.update("profiles", {"role": "x"}, {"id": "missing"}) == []

    assert await store.delete("profiles", {"id": "u2"}) == 1
    assert await store.delete("profiles", {"id": "u2"}) == 0


@pytest.mark.asyncio
async def test_upsert_updates_or_ignores(store):
    row = {"campaign_id": "c1", "title": "T", "goal_amount": 10}
    first = await store.upsert("campaign_summary_projection", row, on_conflict=["campaign_id"])
    assert first["total_raised"] == 0

    second = await store.upsert(
        "campaign_summary_projection", {**row, "title": "New"}, on_conflict=["campaign_id"]
    )
    assert second["title"] == "New"

    ignored = await store.upsert(
        "campaign_summary_projection", {**row, "title": "Ignored"}, on_conflict=["campaign_id"], ignore_duplicates=True
    )
    assert ignored is None
    [stored] = await store.select("campaign_summary_projection")
    assert stored["title"] == "New"


@pytest.mark.asyncio
async def test_unknown_table(store):
    with pytest.raises(ValueError):
        await store.select("nope")
