"""Role hierarchy checks for role assignment and revocation. No FastAPI."""

from typing import Iterable, Optional

from fundraising_events.security.exceptions import AuthorizationError

# Actors at or above this level bypass hierarchy checks.
MAX_PRIVILEGE_LEVEL = 100


def highest_level(levels: Iterable[Optional[int]]) -> int:
    """Highest hierarchy level among an actor's active roles; 0 when there are none."""
    return max((level for level in levels if level is not None), default=0)


class RoleHierarchyPolicy:
    """Raise AuthorizationError if an actor may not grant or remove a role."""

    def __init__(self, max_privilege_level: int = MAX_PRIVILEGE_LEVEL) -> None:
        self._max_privilege_level = max_privilege_level

    def is_max_privilege(self, actor_level: int) -> bool:
        return actor_level >= self._max_privilege_level

    def check_assignment(
        self,
        *,
        assigner_level: int,
        target_level: int,
        self_assignment: bool,
    ) -> None:
        """Assigner must reach the target level; nobody may raise themselves to their own level or above."""
        if self.is_max_privilege(assigner_level):
            return
        if assigner_level < target_level:
            raise AuthorizationError(
                f"Insufficient privileges: level {assigner_level} cannot assign a role at level {target_level}"
            )
        if self_assignment and target_level >= assigner_level:
            raise AuthorizationError(
                "Self-elevation denied: cannot assign yourself a role at or above your own level"
            )

    def check_revocation(self, *, revoker_level: int, target_level: int) -> None:
        if self.is_max_privilege(revoker_level):
            return
        if revoker_level < target_level:
            raise AuthorizationError(
                f"Insufficient privileges: level {revoker_level} cannot revoke a role at level {target_level}"
            )
