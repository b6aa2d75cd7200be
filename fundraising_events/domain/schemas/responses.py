"""Pydantic schemas for the admin API. Strict validation, no DB or infrastructure."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from fundraising_events.domain.models.dead_letter import DeadLetterEntry


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class ReplayRequest(BaseModel):
    """Events to re-run through the remote processor. Dry run unless explicitly disabled."""

    from_timestamp: Optional[datetime] = None
    to_timestamp: Optional[datetime] = None
    event_types: Optional[List[str]] = None
    aggregate_id: Optional[str] = None
    dry_run: bool = True


class ReprocessAllRequest(BaseModel):
    processor_name: Optional[str] = Field(None, min_length=1)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class DeadLetterResponse(BaseModel):
    id: str
    original_event_id: str
    event_data: Dict[str, Any]
    processor_name: str
    failure_reason: str
    failure_count: int
    first_failed_at: datetime
    last_failed_at: datetime

    @classmethod
    def from_entry(cls, entry: DeadLetterEntry) -> "DeadLetterResponse":
        return cls(**entry.to_dict())


class DeadLetterStatsResponse(BaseModel):
    total: int
    by_processor: Dict[str, int]
    total_failures: int


class ReprocessResponse(BaseModel):
    success: int
    failed: int
    skipped: int = 0
    errors: List[str] = Field(default_factory=list)


class ReplayedEventSummary(BaseModel):
    id: str
    type: str
    timestamp: datetime


class ReplayResponse(BaseModel):
    dry_run: bool
    events_selected: int
    events: List[ReplayedEventSummary] = Field(default_factory=list)
    replayed_events: List[str] = Field(default_factory=list)
    errors: List[Dict[str, Any]] = Field(default_factory=list)
