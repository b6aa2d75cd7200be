"""Audit record persistence."""

from typing import Protocol

from fundraising_events.application.ports import RowStore
from fundraising_events.governance.audit_models import AuditRecord

AUDIT_LOGS_TABLE = "audit_logs"


class AuditRepository(Protocol):
    """Append-only audit store. Implementations must not update or delete records."""

    async def save(self, record: AuditRecord) -> None:
        ...


class RowStoreAuditRepository:
    """Writes audit records to the `audit_logs` table."""

    def __init__(self, row_store: RowStore) -> None:
        self._rows = row_store

    async def save(self, record: AuditRecord) -> None:
        await self._rows.insert(
            AUDIT_LOGS_TABLE,
            {
                "actor_id": record.actor_id,
                "action": record.action,
                "resource_type": record.resource_type,
                "resource_id": record.resource_id,
                "metadata": record.metadata or {},
                "correlation_id": record.correlation_id,
                "created_at": record.timestamp_utc,
            },
        )
