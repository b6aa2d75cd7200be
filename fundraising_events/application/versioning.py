"""Event schema versions and the migrations between them."""

import logging
from collections import deque
from typing import Any, Callable, Dict, List, Optional, Tuple

from fundraising_events.domain.event_types import EventType
from fundraising_events.domain.exceptions import MigrationPathNotFoundError
from fundraising_events.domain.models.event import DomainEvent, utc_now

logger = logging.getLogger(__name__)

Payload = Dict[str, Any]
Migration = Callable[[Payload], Payload]


def version_key(version: str) -> Tuple:
    """Sort key for "major.minor.patch"; non-numeric parts sort after numeric ones."""
    parts = []
    for part in version.split("."):
        parts.append((0, int(part), "") if part.isdigit() else (1, 0, part))
    return tuple(parts)


class EventVersionManager:
    """
    Migrations form a directed graph per event type. migrate_event() follows the
    shortest chain (BFS) from the event's version to the target and applies each step.
    """

    def __init__(self) -> None:
        self._migrations: Dict[str, Dict[str, Dict[str, Migration]]] = {}

    def register_migration(self, event_type: str, from_version: str, to_version: str, migrate: Migration) -> None:
        event_type = str(getattr(event_type, "value", event_type))
        self._migrations.setdefault(event_type, {}).setdefault(from_version, {})[to_version] = migrate

    def _find_path(self, event_type: str, from_version: str, to_version: str) -> Optional[List[str]]:
        graph = self._migrations.get(event_type, {})
        queue = deque([[from_version]])
        visited = {from_version}
        while queue:
            path = queue.popleft()
            for next_version in graph.get(path[-1], {}):
                if next_version in visited:
                    continue
                if next_version == to_version:
                    return path + [next_version]
                visited.add(next_version)
                queue.append(path + [next_version])
        return None

    def can_migrate(self, event_type: str, from_version: str, to_version: str) -> bool:
        if from_version == to_version:
            return True
        return self._find_path(event_type, from_version, to_version) is not None

    def get_versions(self, event_type: str) -> List[str]:
        graph = self._migrations.get(event_type, {})
        versions = set(graph)
        for targets in graph.values():
            versions.update(targets)
        return sorted(versions, key=version_key)

    def migrate_event(self, event: DomainEvent, target_version: str) -> DomainEvent:
        """Upgrade event to target_version. Same version is returned untouched; no path raises."""
        if event.version == target_version:
            return event
        path = self._find_path(event.type, event.version, target_version)
        if path is None:
            raise MigrationPathNotFoundError(
                f"No migration path for '{event.type}' from {event.version} to {target_version}"
            )
        graph = self._migrations[event.type]
        payload = dict(event.payload)
        for current, following in zip(path, path[1:]):
            payload = graph[current][following](payload)
        logger.debug(
            "event_migrated",
            extra={"event_id": event.id, "event_type": event.type, "from_version": event.version, "to_version": target_version},
        )
        return event.with_payload(payload, version=target_version).with_metadata(
            originalVersion=event.version,
            migratedAt=utc_now().isoformat(),
        )


def register_default_migrations(manager: EventVersionManager) -> EventVersionManager:
    manager.register_migration(
        EventType.DONATION_COMPLETED,
        "1.0.0",
        "2.0.0",
        lambda payload: {**payload, "currency": payload.get("currency") or "USD"},
    )
    manager.register_migration(
        EventType.USER_REGISTERED,
        "1.0.0",
        "2.0.0",
        lambda payload: {**payload, "registrationMethod": payload.get("registrationMethod") or "email"},
    )
    return manager
