"""Immutable audit logging for administrative actions. No FastAPI."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fundraising_events.core.context import correlation_id_ctx
from fundraising_events.governance.audit_models import AuditRecord
from fundraising_events.governance.audit_repository import AuditRepository

logger = logging.getLogger(__name__)


class AuditLogger:
    """
    Writes immutable audit records via repository: who, what, which resource, when (UTC),
    correlation_id. Fire-and-forget: a failed write is logged and never fails the caller.
    """

    def __init__(self, repository: AuditRepository) -> None:
        self._repository = repository

    async def log(
        self,
        actor_id: str,
        action: str,
        resource_type: str,
        resource_id: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Write immutable audit record. Timestamp is UTC."""
        record = AuditRecord(
            actor_id=actor_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            metadata=metadata,
            correlation_id=correlation_id_ctx.get(),
            timestamp_utc=datetime.now(timezone.utc),
        )
        try:
            await self._repository.save(record)
        except Exception as e:
            logger.warning(
                "audit_write_failed",
                extra={"action": action, "resource_type": resource_type, "resource_id": resource_id, "error": str(e)},
            )
