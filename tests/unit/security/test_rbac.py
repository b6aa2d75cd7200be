"""Security tests: role hierarchy rules for assignment and revocation."""

import pytest

from fundraising_events.security.exceptions import AuthorizationError
from fundraising_events.security.rbac import RoleHierarchyPolicy, highest_level


@pytest.fixture
def policy():
    return RoleHierarchyPolicy()


# Levels used below:
# super_admin 100, admin 80, moderator 50, creator 10


def test_highest_level():
    assert highest_level([10, 80, None, 50]) == 80
    assert highest_level([]) == 0


def test_admin_can_assign_lower_role(policy):
    policy.check_assignment(assigner_level=80, target_level=50, self_assignment=False)


def test_equal_level_assignment_to_others_allowed(policy):
    policy.check_assignment(assigner_level=80, target_level=80, self_assignment=False)


def test_cannot_assign_above_own_level(policy):
    with pytest.raises(AuthorizationError, match="Insufficient privileges"):
        policy.check_assignment(assigner_level=50, target_level=80, self_assignment=False)


def test_self_elevation_denied(policy):
    with pytest.raises(AuthorizationError, match="Self-elevation"):
        policy.check_assignment(assigner_level=50, target_level=50, self_assignment=True)


def test_self_assignment_of_lower_role_allowed(policy):
    policy.check_assignment(assigner_level=80, target_level=10, self_assignment=True)


def test_max_privilege_bypasses_everything(policy):
    policy.check_assignment(assigner_level=100, target_level=100, self_assignment=True)
    policy.check_revocation(revoker_level=100, target_level=100)


def test_revocation_needs_level(policy):
    policy.check_revocation(revoker_level=80, target_level=50)
    with pytest.raises(AuthorizationError):
        policy.check_revocation(revoker_level=10, target_level=50)


def test_custom_max_privilege_level():
    policy = RoleHierarchyPolicy(max_privilege_level=80)
    policy.check_assignment(assigner_level=80, target_level=100, self_assignment=True)
