"""Tests for the role PolicyEngine.

Covers allow/deny precedence, inactive roles, implicit self-access grants
and the AnyOf / AllOf combination policies.
"""
import pytest

from inventory_api.domain.rbac.models import (
    AuthzReasonCode,
    CombinationPolicy,
    Role,
)
from inventory_api.domain.rbac.policy_engine import PolicyEngine, self_access_grants


ADMIN = Role(1, "Administrator", allowed_actions=["*"])
INVENTORY_MANAGER = Role(2, "Inventory Manager", allowed_actions=["/inventory/*", "/product/*"])
INVENTORY_NO_DELETE = Role(
    3, "Inventory Clerk",
    allowed_actions=["/inventory/*"],
    not_allowed_actions=["/inventory/delete"],
)
DISABLED_ADMIN = Role(4, "Disabled", is_active=False, allowed_actions=["*"])


@pytest.fixture
def engine():
    return PolicyEngine()


class TestAllowDeny:

    def test_administrator_reads_roles(self, engine):
        decision = engine.evaluate([ADMIN], ["/role/read"])
        assert decision.allowed is True
        assert decision.reason_code == AuthzReasonCode.PERMISSION_ALLOWED
        assert decision.matched_role_ids == [1]

    def test_multi_pattern_role(self, engine):
        assert engine.is_allowed([INVENTORY_MANAGER], ["/product/write"])
        assert not engine.is_allowed([INVENTORY_MANAGER], ["/user/write"])

    def test_deny_overrides_allow(self, engine):
        assert engine.is_allowed([INVENTORY_NO_DELETE], ["/inventory/5/read"])
        assert engine.is_allowed([INVENTORY_NO_DELETE], ["/inventory/5/write"])
        decision = engine.evaluate([INVENTORY_NO_DELETE], ["/inventory/delete"])
        assert decision.allowed is False
        assert decision.reason_code == AuthzReasonCode.PERMISSION_DENIED

    def test_deny_does_not_leak_across_roles(self, engine):
        """A deny in one role does not cancel another role's grant."""
        assert engine.is_allowed([INVENTORY_NO_DELETE, INVENTORY_MANAGER], ["/inventory/delete"])

    def test_deny_alone_grants_nothing(self, engine):
        role = Role(5, "Deny only", not_allowed_actions=["/inventory/*"])
        assert not engine.is_allowed([role], ["/product/read"])

    def test_null_action_lists(self, engine):
        role = Role(6, "Empty", allowed_actions=None, not_allowed_actions=None)
        assert role.allowed_actions == []
        assert not engine.is_allowed([role], ["/role/read"])


class TestInactiveAndEmpty:

    @pytest.mark.parametrize("action", ["/role/read", "/inventory/1/delete", "*"])
    def test_inactive_roles_contribute_nothing(self, engine, action):
        decision = engine.evaluate([DISABLED_ADMIN], [action])
        assert decision.allowed is False
        assert decision.reason_code == AuthzReasonCode.NO_ACTIVE_ROLES

    def test_inactive_only_denied_even_for_own_record(self, engine):
        assert not engine.is_allowed([DISABLED_ADMIN], ["/user/7/read"], requester_user_id=7)

    def test_no_roles(self, engine):
        decision = engine.evaluate([], ["/role/read"])
        assert decision.allowed is False
        assert decision.reason_code == AuthzReasonCode.NO_ROLES
        assert engine.evaluate(None, ["/role/read"]).allowed is False

    def test_no_required_actions_is_denied(self, engine):
        assert not engine.is_allowed([ADMIN], [])


class TestSelfAccess:

    def test_grants(self):
        assert self_access_grants(7) == ["/user/7/*/read", "/user/7/read"]

    def test_user_reads_own_record_through_any_role(self, engine):
        unrelated = Role(8, "Category", allowed_actions=["/category/*"])
        assert engine.is_allowed([unrelated], ["/user/7/read"], requester_user_id=7)
        assert engine.is_allowed([unrelated], ["/user/7/role/read"], requester_user_id=7)
        assert not engine.is_allowed([unrelated], ["/user/8/read"], requester_user_id=7)
        assert not engine.is_allowed([unrelated], ["/user/7/write"], requester_user_id=7)

    def test_without_user_id_no_implicit_grant(self, engine):
        unrelated = Role(8, "Category", allowed_actions=["/category/*"])
        assert not engine.is_allowed([unrelated], ["/user/7/read"])

    def test_user_without_roles(self, engine):
        decision = engine.evaluate([], ["/user/3/read"], requester_user_id=3)
        assert decision.allowed is True
        assert decision.reason_code == AuthzReasonCode.SELF_ACCESS_ALLOWED
        assert not engine.is_allowed([], ["/user/3/write"], requester_user_id=3)

    def test_role_deny_applies_to_implicit_grant(self, engine):
        locked = Role(9, "Locked", allowed_actions=["/category/*"], not_allowed_actions=["/user/*"])
        assert not engine.is_allowed([locked], ["/user/7/read"], requester_user_id=7)


class TestCombination:

    def test_any_of_is_default(self, engine):
        decision = engine.evaluate([INVENTORY_MANAGER], ["/user/write", "/product/write"])
        assert decision.allowed is True
        assert decision.combination == CombinationPolicy.ANY_OF
        assert decision.granted_actions == ["/product/write"]

    def test_all_of_requires_every_action(self, engine):
        decision = engine.evaluate(
            [INVENTORY_MANAGER], ["/user/write", "/product/write"], combination=CombinationPolicy.ALL_OF
        )
        assert decision.allowed is False

    def test_all_of_may_combine_roles(self, engine):
        reader = Role(10, "User reader", allowed_actions=["/user/*"])
        decision = engine.evaluate(
            [INVENTORY_MANAGER, reader],
            ["/user/write", "/product/write"],
            combination=CombinationPolicy.ALL_OF,
        )
        assert decision.allowed is True
        assert sorted(decision.matched_role_ids) == [2, 10]

    def test_engine_default_combination(self):
        engine = PolicyEngine(default_combination=CombinationPolicy.ALL_OF)
        assert not engine.is_allowed([INVENTORY_MANAGER], ["/user/write", "/product/write"])
        assert engine.is_allowed(
            [INVENTORY_MANAGER], ["/user/write", "/product/write"], combination=CombinationPolicy.ANY_OF
        )


def test_evaluation_is_idempotent(engine):
    roles = [INVENTORY_NO_DELETE, INVENTORY_MANAGER]
    first = engine.evaluate(roles, ["/inventory/5/read"], requester_user_id=1)
    second = engine.evaluate(roles, ["/inventory/5/read"], requester_user_id=1)
    assert first.allowed == second.allowed
    assert first.matched_role_ids == second.matched_role_ids


def test_audit_dict_format(engine):
    audit = engine.evaluate([ADMIN], ["/role/read"]).to_audit_dict()
    assert audit["authz_decision"] == "ALLOW"
    assert audit["authz_reason_code"] == "AUTHZ_PERMISSION_ALLOWED"
    assert audit["required_actions"] == ["/role/read"]
    assert audit["combination"] == "any_of"
    assert audit["matched_role_ids"] == [1]

    denied = engine.evaluate([], ["/role/read"]).to_audit_dict()
    assert denied["authz_decision"] == "DENY"
    assert "matched_role_ids" not in denied
