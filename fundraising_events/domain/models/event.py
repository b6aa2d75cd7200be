"""Domain model for the event envelope. Pure business semantics; no ORM or infrastructure."""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

DEFAULT_EVENT_VERSION = "1.0.0"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Accept a datetime, epoch milliseconds or an ISO-8601 string; always return aware UTC."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        if value.isdigit():
            return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise ValueError(f"Unsupported timestamp value: {value!r}")


@dataclass(frozen=True)
class DomainEvent:
    """
    Immutable envelope for everything that happened in the platform.
    Derive a new event with with_metadata()/with_payload(); never edit one in place.
    """

    id: str
    type: str
    timestamp: datetime
    payload: Dict[str, Any]
    version: str = DEFAULT_EVENT_VERSION
    correlation_id: Optional[str] = None
    causation_id: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def with_metadata(self, **values: Any) -> "DomainEvent":
        return replace(self, metadata={**self.metadata, **values})

    def with_payload(self, payload: Dict[str, Any], version: Optional[str] = None) -> "DomainEvent":
        return replace(self, payload=dict(payload), version=version or self.version)

    @property
    def occurred_at_ms(self) -> int:
        return int(self.timestamp.timestamp() * 1000)

    def to_message(self) -> Dict[str, Any]:
        """camelCase wire shape sent to the remote processor and kept in dead-letter rows."""
        return {
            "id": self.id,
            "type": self.type,
            "payload": dict(self.payload),
            "timestamp": self.occurred_at_ms,
            "version": self.version,
            "correlationId": self.correlation_id,
            "causationId": self.causation_id,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_message(cls, message: Dict[str, Any]) -> "DomainEvent":
        return cls(
            id=str(message["id"]),
            type=str(message["type"]),
            timestamp=parse_timestamp(message["timestamp"]),
            payload=dict(message.get("payload") or {}),
            version=message.get("version") or DEFAULT_EVENT_VERSION,
            correlation_id=message.get("correlationId"),
            causation_id=message.get("causationId"),
            metadata=dict(message.get("metadata") or {}),
        )


def create_event(
    event_type: str,
    payload: Dict[str, Any],
    *,
    version: str = DEFAULT_EVENT_VERSION,
    correlation_id: Optional[str] = None,
    causation_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> DomainEvent:
    """Build a new event with a fresh uuid4 id and a UTC timestamp."""
    return DomainEvent(
        id=str(uuid.uuid4()),
        type=str(getattr(event_type, "value", event_type)),
        timestamp=utc_now(),
        payload=dict(payload),
        version=version,
        correlation_id=correlation_id,
        causation_id=causation_id,
        metadata=dict(metadata or {}),
    )


def caused_by(
    parent: DomainEvent,
    event_type: str,
    payload: Dict[str, Any],
    *,
    version: str = DEFAULT_EVENT_VERSION,
    metadata: Optional[Dict[str, Any]] = None,
) -> DomainEvent:
    """Event emitted in reaction to parent: same correlation chain, causation = parent.id."""
    return create_event(
        event_type,
        payload,
        version=version,
        correlation_id=parent.correlation_id or parent.id,
        causation_id=parent.id,
        metadata=metadata,
    )
