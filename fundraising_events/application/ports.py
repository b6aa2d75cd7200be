"""Ports the event system depends on. Infrastructure implements these; tests fake them."""

from dataclasses import dataclass
from datetime import datetime
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Union,
)

from fundraising_events.domain.models.event import DomainEvent

Row = Dict[str, Any]
RowCallback = Callable[[Row], Awaitable[None]]
Unsubscribe = Callable[[], Awaitable[None]]


class RowStore(Protocol):
    """
    Minimal table store. `where` maps column -> value; None matches NULL and a
    list/tuple/set matches any of its members. Every method returns plain dict rows.
    """

    async def insert(self, table: str, rows: Union[Mapping[str, Any], Sequence[Mapping[str, Any]]]) -> List[Row]:
        ...

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
        ...

    async def update(self, table: str, values: Mapping[str, Any], where: Mapping[str, Any]) -> List[Row]:
        ...

    async def delete(self, table: str, where: Mapping[str, Any]) -> int:
        ...

    async def upsert(
        self,
        table: str,
        row: Mapping[str, Any],
        on_conflict: Sequence[str],
        *,
        ignore_duplicates: bool = False,
    ) -> Optional[Row]:
        ...


class ChangeFeed(Protocol):
    """Insert notifications for a table, delivered to every subscriber."""

    async def subscribe(self, table: str, callback: RowCallback) -> Unsubscribe:
        ...

    async def notify(self, table: str, row: Row) -> None:
        ...


@dataclass(frozen=True)
class InvocationResult:
    """Outcome of a remote function call. Exactly one of data / error is meaningful."""

    data: Any = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class FunctionInvoker(Protocol):
    """Invoke a named remote function. Errors are returned, never raised."""

    async def invoke(self, function_name: str, body: Dict[str, Any]) -> InvocationResult:
        ...


class EventStore(Protocol):
    async def save(self, event: DomainEvent) -> None:
        ...

    async def save_batch(self, events: Sequence[DomainEvent]) -> None:
        ...

    async def get_events(
        self,
        from_timestamp: Optional[datetime] = None,
        to_timestamp: Optional[datetime] = None,
        event_types: Optional[Sequence[str]] = None,
        aggregate_id: Optional[str] = None,
    ) -> List[DomainEvent]:
        ...


class EventHandler(Protocol):
    """Anything with an async handle(event); plain async callables are accepted by the bus too."""

    async def handle(self, event: DomainEvent) -> None:
        ...


class AuditSink(Protocol):
    async def log(
        self,
        actor_id: str,
        action: str,
        resource_type: str,
        resource_id: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        ...


Handler = Union[EventHandler, Callable[[DomainEvent], Awaitable[None]]]
