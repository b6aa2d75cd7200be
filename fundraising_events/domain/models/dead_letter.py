"""Dead-letter entry: an event a processor could not handle, kept for reprocessing."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict


@dataclass(frozen=True)
class DeadLetterEntry:
    id: str
    original_event_id: str
    event_data: Dict[str, Any]
    processor_name: str
    failure_reason: str
    failure_count: int
    first_failed_at: datetime
    last_failed_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "original_event_id": self.original_event_id,
            "event_data": self.event_data,
            "processor_name": self.processor_name,
            "failure_reason": self.failure_reason,
            "failure_count": self.failure_count,
            "first_failed_at": self.first_failed_at.isoformat(),
            "last_failed_at": self.last_failed_at.isoformat(),
        }
