"""Shared fakes: in-memory row store, recording invoker, event and tracker fixtures."""

import copy
import uuid
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import pytest

from fundraising_events.application.idempotency import EventIdempotencyTracker
from fundraising_events.application.ports import InvocationResult
from fundraising_events.domain.models.event import create_event
from fundraising_events.governance.audit_logger import AuditLogger
from fundraising_events.governance.audit_repository import RowStoreAuditRepository
from fundraising_events.infrastructure.database.tables import metadata
from fundraising_events.infrastructure.realtime.change_feed import InProcessChangeFeed


def _matches(row: Mapping[str, Any], where: Optional[Mapping[str, Any]]) -> bool:
    for key, expected in (where or {}).items():
        actual = row.get(key)
        if expected is None:
            if actual is not None:
                return False
        elif isinstance(expected, (list, tuple, set, frozenset)):
            if actual not in expected:
                return False
        elif actual != expected:
            return False
    return True


class InMemoryRowStore:
    """
    RowStore over dicts. Column defaults come from the SQLAlchemy tables so rows look
    like what the database would return. Every write is recorded in `writes`;
    `fail_on` holds (operation, table) pairs that raise.
    """

    def __init__(self, change_feed: Optional[InProcessChangeFeed] = None) -> None:
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.writes: List[tuple] = []
        self.fail_on: set = set()
        self._change_feed = change_feed

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.setdefault(table, [])

    def _check(self, operation: str, table: str) -> None:
        if (operation, table) in self.fail_on:
            raise RuntimeError(f"{operation} on {table} failed")
        self.writes.append((operation, table))

    @staticmethod
    def _with_defaults(table: str, row: Mapping[str, Any]) -> Dict[str, Any]:
        full = dict(row)
        t = metadata.tables.get(table)
        if t is None:
            full.setdefault("id", str(uuid.uuid4()))
            return full
        for column in t.columns:
            if column.name in full:
                continue
            default = column.default
            if default is None:
                full[column.name] = None
            elif default.is_callable:
                full[column.name] = default.arg(None)
            else:
                full[column.name] = default.arg
        return full

    async def insert(self, table: str, rows: Union[Mapping[str, Any], Sequence[Mapping[str, Any]]]):
        self._check("insert", table)
        batch = [rows] if isinstance(rows, Mapping) else list(rows)
        inserted = [self._with_defaults(table, r) for r in batch]
        self.rows(table).extend(inserted)
        result = [copy.deepcopy(r) for r in inserted]
        if self._change_feed is not None:
            for row in result:
                await self._change_feed.notify(table, row)
        return result

    async def select(
        self,
        table: str,
        where=None,
        *,
        gte=None,
        lte=None,
        order_by=None,
        descending=False,
        limit=None,
        offset=None,
    ):
        found = [r for r in self.rows(table) if _matches(r, where)]
        for key, bound in (gte or {}).items():
            found = [r for r in found if r.get(key) is not None and r[key] >= bound]
        for key, bound in (lte or {}).items():
            found = [r for r in found if r.get(key) is not None and r[key] <= bound]
        if order_by:
            found.sort(key=lambda r: r.get(order_by), reverse=descending)
        found = found[offset or 0:]
        if limit is not None:
            found = found[:limit]
        return [copy.deepcopy(r) for r in found]

    async def update(self, table: str, values, where):
        self._check("update", table)
        updated = []
        for row in self.rows(table):
            if _matches(row, where):
                row.update(values)
                updated.append(copy.deepcopy(row))
        return updated

    async def delete(self, table: str, where) -> int:
        self._check("delete", table)
        before = self.rows(table)
        kept = [r for r in before if not _matches(r, where)]
        self.tables[table] = kept
        return len(before) - len(kept)

    async def upsert(self, table: str, row, on_conflict, *, ignore_duplicates: bool = False):
        self._check("upsert", table)
        key = {name: row[name] for name in on_conflict}
        for existing in self.rows(table):
            if _matches(existing, key):
                if ignore_duplicates:
                    return None
                existing.update({k: v for k, v in row.items() if k not in on_conflict})
                return copy.deepcopy(existing)
        inserted = self._with_defaults(table, row)
        self.rows(table).append(inserted)
        return copy.deepcopy(inserted)

    def count_writes(self, table: Optional[str] = None) -> int:
        return len([w for w in self.writes if table is None or w[1] == table])


class RecordingInvoker:
    """FunctionInvoker that records every call and answers with `result` (or raises `raises`)."""

    def __init__(self, result: Optional[InvocationResult] = None) -> None:
        self.calls: List[tuple] = []
        self.result = result or InvocationResult(data={"ok": True})
        self.raises: Optional[Exception] = None

    async def invoke(self, function_name: str, body: Dict[str, Any]) -> InvocationResult:
        self.calls.append((function_name, body))
        if self.raises is not None:
            raise self.raises
        return self.result


@pytest.fixture
def change_feed():
    return InProcessChangeFeed()


@pytest.fixture
def row_store():
    return InMemoryRowStore()


@pytest.fixture
def feed_row_store(change_feed):
    """Row store that announces inserts on the change feed, like the SQLAlchemy store."""
    return InMemoryRowStore(change_feed=change_feed)


@pytest.fixture
def invoker():
    return RecordingInvoker()


@pytest.fixture
def tracker():
    return EventIdempotencyTracker()


@pytest.fixture
def audit(row_store):
    return AuditLogger(RowStoreAuditRepository(row_store))


@pytest.fixture
def make_event():
    """create_event with a fixed correlation id, for brevity in tests."""

    def _make(event_type: str, payload: Dict[str, Any], **kwargs: Any):
        kwargs.setdefault("correlation_id", "corr-1")
        return create_event(event_type, payload, **kwargs)

    return _make
