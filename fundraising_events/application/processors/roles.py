"""Role assignment writes. Hierarchy rules are enforced here, not only at the API edge."""

import logging
from typing import Any, Dict, Optional

from fundraising_events.application.exceptions import RecordNotFoundError
from fundraising_events.application.idempotency import EventIdempotencyTracker
from fundraising_events.application.ports import AuditSink, RowStore
from fundraising_events.application.processors.base import IdempotentProcessor
from fundraising_events.domain.event_types import EventType
from fundraising_events.domain.models.event import DomainEvent, utc_now
from fundraising_events.domain.schemas.admin import RoleAssignedPayload, RoleRevokedPayload
from fundraising_events.security.rbac import RoleHierarchyPolicy, highest_level

logger = logging.getLogger(__name__)

ROLES = "roles"
USER_ROLE_ASSIGNMENTS = "user_role_assignments"


class _RoleWriteProcessor(IdempotentProcessor):
    def __init__(
        self,
        store: RowStore,
        idempotency: EventIdempotencyTracker,
        *,
        audit: AuditSink,
        policy: Optional[RoleHierarchyPolicy] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(store, idempotency, **kwargs)
        self._audit = audit
        self._policy = policy or RoleHierarchyPolicy()

    async def _actor_level(self, actor_id: str) -> int:
        assignments = await self._store.select(USER_ROLE_ASSIGNMENTS, {"user_id": actor_id, "is_active": True})
        role_ids = sorted({a["role_id"] for a in assignments})
        if not role_ids:
            return 0
        roles = await self._store.select(ROLES, {"id": role_ids})
        return highest_level(r["hierarchy_level"] for r in roles)

    async def _target_level(self, role_id: str) -> int:
        rows = await self._store.select(ROLES, {"id": role_id}, limit=1)
        if not rows:
            raise RecordNotFoundError(f"Role {role_id} not found")
        return rows[0]["hierarchy_level"]

    async def _assignment(self, user_id: str, role_id: str, context_id: Optional[str]) -> Optional[Dict[str, Any]]:
        rows = await self._store.select(
            USER_ROLE_ASSIGNMENTS,
            {"user_id": user_id, "role_id": role_id, "context_id": context_id},
            limit=1,
        )
        return rows[0] if rows else None


class RoleAssignmentWriteProcessor(_RoleWriteProcessor):
    event_type = EventType.ROLE_ASSIGNED.value

    async def apply(self, event: DomainEvent) -> None:
        p = self.parse(event, RoleAssignedPayload)
        self._policy.check_assignment(
            assigner_level=await self._actor_level(p.assigned_by),
            target_level=await self._target_level(p.role_id),
            self_assignment=p.user_id == p.assigned_by,
        )

        existing = await self._assignment(p.user_id, p.role_id, p.context_id)
        reactivated = existing is not None and not existing["is_active"]
        if existing is None:
            await self._store.insert(
                USER_ROLE_ASSIGNMENTS,
                {
                    "user_id": p.user_id,
                    "role_id": p.role_id,
                    "context_type": p.context_type,
                    "context_id": p.context_id,
                    "assigned_by": p.assigned_by,
                    "is_active": True,
                    "assigned_at": utc_now(),
                },
            )
        elif reactivated:
            await self._store.update(
                USER_ROLE_ASSIGNMENTS,
                {
                    "is_active": True,
                    "assigned_by": p.assigned_by,
                    "assigned_at": utc_now(),
                    "revoked_by": None,
                    "revoked_at": None,
                },
                {"id": existing["id"]},
            )

        await self._audit.log(
            p.assigned_by,
            "role_assigned",
            "user_role",
            p.user_id,
            {
                "role_id": p.role_id,
                "role_name": p.role_name,
                "context_type": p.context_type,
                "context_id": p.context_id,
                "reactivated": reactivated,
            },
        )
        logger.info(
            "role_assigned",
            extra={"user_id": p.user_id, "role_name": p.role_name, "actor_id": p.assigned_by},
        )


class RoleRevocationWriteProcessor(_RoleWriteProcessor):
    event_type = EventType.ROLE_REVOKED.value

    async def apply(self, event: DomainEvent) -> None:
        p = self.parse(event, RoleRevokedPayload)
        self._policy.check_revocation(
            revoker_level=await self._actor_level(p.revoked_by),
            target_level=await self._target_level(p.role_id),
        )

        existing = await self._assignment(p.user_id, p.role_id, p.context_id)
        if existing is None or not existing["is_active"]:
            logger.info("role_already_revoked", extra={"user_id": p.user_id, "role_id": p.role_id})
            return
        await self._store.update(
            USER_ROLE_ASSIGNMENTS,
            {"is_active": False, "revoked_by": p.revoked_by, "revoked_at": utc_now()},
            {"id": existing["id"]},
        )
        await self._audit.log(
            p.revoked_by,
            "role_revoked",
            "user_role",
            p.user_id,
            {
                "role_id": p.role_id,
                "role_name": p.role_name,
                "context_type": p.context_type,
                "context_id": p.context_id,
            },
        )
        logger.info(
            "role_revoked",
            extra={"user_id": p.user_id, "role_name": p.role_name, "actor_id": p.revoked_by},
        )
