"""Immutable audit record model. Domain-level immutability."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class AuditRecord:
    """
    Immutable audit record: who did what to which resource, when (UTC), under which correlation_id.
    """

    actor_id: str
    action: str
    resource_type: str
    resource_id: str
    metadata: Optional[Dict[str, Any]]
    correlation_id: Optional[str]
    timestamp_utc: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Structured representation for JSON logging."""
        return {
            "actor_id": self.actor_id,
            "action": self.action,
            "resource_type": self.resource_type,
            "resource_id": self.resource_id,
            "metadata": self.metadata,
            "correlation_id": self.correlation_id,
            "timestamp_utc": self.timestamp_utc.isoformat(),
        }
