"""Security layer: role hierarchy policy and passcode hashing. No FastAPI."""

from fundraising_events.security.exceptions import AuthorizationError, PasscodeHashError, SecurityError
from fundraising_events.security.passcode import hash_passcode, verify_passcode
from fundraising_events.security.rbac import MAX_PRIVILEGE_LEVEL, RoleHierarchyPolicy, highest_level

__all__ = [
    "AuthorizationError",
    "MAX_PRIVILEGE_LEVEL",
    "PasscodeHashError",
    "RoleHierarchyPolicy",
    "SecurityError",
    "hash_passcode",
    "highest_level",
    "verify_passcode",
]
