# fundraising_events/infrastructure/database/row_store.py

import logging
from typing import Any, List, Mapping, Optional, Sequence, Union

from sqlalchemy import MetaData, Table, delete, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncEngine

from fundraising_events.application.ports import ChangeFeed, Row
from fundraising_events.infrastructure.database.tables import metadata as default_metadata

logger = logging.getLogger(__name__)

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SqlAlchemyRowStore:
    """
    RowStore over SQLAlchemy Core tables. One transaction per call.
    Inserts are announced on the change feed after commit.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        metadata: MetaData = default_metadata,
        change_feed: Optional[ChangeFeed] = None,
    ) -> None:
        self._engine = engine
        self._metadata = metadata
        self._change_feed = change_feed

    def _table(self, name: str) -> Table:
        try:
            return self._metadata.tables[name]
        except KeyError:
            raise ValueError(f"Unknown table '{name}'") from None

    @staticmethod
    def _conditions(
        table: Table,
        where: Optional[Mapping[str, Any]] = None,
        gte: Optional[Mapping[str, Any]] = None,
        lte: Optional[Mapping[str, Any]] = None,
    ) -> list:
        clauses = []
        for name, value in (where or {}).items():
            column = table.c[name]
            if value is None:
                clauses.append(column.is_(None))
            elif isinstance(value, (list, tuple, set, frozenset)):
                clauses.append(column.in_(list(value)))
            else:
                clauses.append(column == value)
        for name, value in (gte or {}).items():
            clauses.append(table.c[name] >= value)
        for name, value in (lte or {}).items():
            clauses.append(table.c[name] <= value)
        return clauses

    async def _announce(self, table: str, rows: List[Row]) -> None:
        if self._change_feed is None:
            return
        for row in rows:
            await self._change_feed.notify(table, row)

    async def insert(
        self,
        table: str,
        rows: Union[Mapping[str, Any], Sequence[Mapping[str, Any]]],
    ) -> List[Row]:
        t = self._table(table)
        params = [dict(rows)] if isinstance(rows, Mapping) else [dict(r) for r in rows]
        if not params:
            return []
        async with self._engine.begin() as conn:
            result = await conn.execute(insert(t).returning(*t.c), params)
            inserted = [dict(r._mapping) for r in result]
        await self._announce(table, inserted)
        return inserted

    async def select(
        self,
        table: str,
        where: Optional[Mapping[str, Any]] = None,
        *,
        gte: Optional[Mapping[str, Any]] = None,
        lte: Optional[Mapping[str, Any]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[Row]:
        t = self._table(table)
        stmt = select(t).where(*self._conditions(t, where, gte, lte))
        if order_by:
            column = t.c[order_by]
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        async with self._engine.connect() as conn:
            result = await conn.execute(stmt)
            return [dict(r._mapping) for r in result]

    async def update(self, table: str, values: Mapping[str, Any], where: Mapping[str, Any]) -> List[Row]:
        t = self._table(table)
        stmt = update(t).where(*self._conditions(t, where)).values(**dict(values)).returning(*t.c)
        async with self._engine.begin() as conn:
            result = await conn.execute(stmt)
            return [dict(r._mapping) for r in result]

    async def delete(self, table: str, where: Mapping[str, Any]) -> int:
        t = self._table(table)
        async with self._engine.begin() as conn:
            result = await conn.execute(delete(t).where(*self._conditions(t, where)))
            return result.rowcount

    async def upsert(
        self,
        table: str,
        row: Mapping[str, Any],
        on_conflict: Sequence[str],
        *,
        ignore_duplicates: bool = False,
    ) -> Optional[Row]:
        t = self._table(table)
        dialect = self._engine.dialect.name
        try:
            dialect_insert = _DIALECT_INSERTS[dialect]
        except KeyError:
            raise ValueError(f"Upsert is not supported for dialect '{dialect}'") from None
        stmt = dialect_insert(t).values(**dict(row))
        updates = {name: stmt.excluded[name] for name in row if name not in on_conflict}
        if ignore_duplicates or not updates:
            stmt = stmt.on_conflict_do_nothing(index_elements=list(on_conflict))
        else:
            stmt = stmt.on_conflict_do_update(index_elements=list(on_conflict), set_=updates)
        async with self._engine.begin() as conn:
            result = await conn.execute(stmt.returning(*t.c))
            written = result.first()
        return dict(written._mapping) if written is not None else None
