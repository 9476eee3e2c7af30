from typing import Iterable, List, Optional, Sequence
import logging

from .models import AuthzDecision, AuthzReasonCode, CombinationPolicy, Role
from .patterns import matches_any

logger = logging.getLogger(__name__)


def self_access_grants(user_id: int) -> List[str]:
    """Implicit patterns letting a user read their own record and sub-resources."""
    return [f"/user/{user_id}/*/read", f"/user/{user_id}/read"]


class PolicyEngine:
    """
    Role policy evaluator.

    Each active role is evaluated on its own: an action is granted by a role
    when it matches one of the role's allowed patterns and none of its
    not-allowed patterns. Deny never leaks across roles, so a deny in one
    role cannot cancel a grant from another.

    Roles are combined according to a CombinationPolicy (see models).
    The engine holds no per-request state and never raises for data-shape
    reasons; missing data simply yields a deny.
    """

    def __init__(
        self,
        default_combination: CombinationPolicy = CombinationPolicy.ANY_OF,
        logger: Optional[logging.Logger] = None,
    ):
        self.default_combination = CombinationPolicy(default_combination)
        self._logger = logger or logging.getLogger(__name__)

    def effective_allowed_actions(self, role: Role, requester_user_id: Optional[int] = None) -> List[str]:
        allowed = list(role.allowed_actions or [])
        if requester_user_id is not None:
            allowed.extend(self_access_grants(requester_user_id))
        return allowed

    def role_grants(self, role: Role, action: str, requester_user_id: Optional[int] = None) -> bool:
        """Allow-then-deny check of one action against one role."""
        allowed = matches_any(action, self.effective_allowed_actions(role, requester_user_id))
        # Deny is checked after allow and always wins within the role.
        if matches_any(action, role.not_allowed_actions or []):
            allowed = False
        return allowed

    def evaluate(
        self,
        roles: Optional[Iterable[Role]],
        required_actions: Sequence[str],
        requester_user_id: Optional[int] = None,
        combination: Optional[CombinationPolicy] = None,
    ) -> AuthzDecision:
        combination = CombinationPolicy(combination or self.default_combination)
        roles = list(roles or [])
        required = list(required_actions or [])
        active_roles = [r for r in roles if r.is_active]

        if not active_roles:
            # A principal with no roles at all still reads its own record.
            if not roles and requester_user_id is not None:
                baseline = Role(role_id=0, name="self", allowed_actions=self_access_grants(requester_user_id))
                granted = [a for a in required if self.role_grants(baseline, a)]
                if self._satisfied(required, granted, combination):
                    return AuthzDecision(
                        allowed=True,
                        reason_code=AuthzReasonCode.SELF_ACCESS_ALLOWED,
                        required_actions=required,
                        combination=combination,
                        user_id=requester_user_id,
                        granted_actions=granted,
                    )
            return AuthzDecision(
                allowed=False,
                reason_code=AuthzReasonCode.NO_ACTIVE_ROLES if roles else AuthzReasonCode.NO_ROLES,
                required_actions=required,
                combination=combination,
                user_id=requester_user_id,
            )

        granted: List[str] = []
        matched_roles: List[int] = []
        for action in required:
            for role in active_roles:
                if self.role_grants(role, action, requester_user_id):
                    if action not in granted:
                        granted.append(action)
                    if role.role_id not in matched_roles:
                        matched_roles.append(role.role_id)
                    break
            if combination == CombinationPolicy.ANY_OF and granted:
                break

        allowed = self._satisfied(required, granted, combination)
        self._logger.debug(
            "Evaluated %s against %d active role(s): %s",
            required, len(active_roles), "ALLOW" if allowed else "DENY",
        )
        return AuthzDecision(
            allowed=allowed,
            reason_code=AuthzReasonCode.PERMISSION_ALLOWED if allowed else AuthzReasonCode.PERMISSION_DENIED,
            required_actions=required,
            combination=combination,
            user_id=requester_user_id,
            matched_role_ids=matched_roles if allowed else [],
            granted_actions=granted if allowed else [],
        )

    def is_allowed(
        self,
        roles: Optional[Iterable[Role]],
        required_actions: Sequence[str],
        requester_user_id: Optional[int] = None,
        combination: Optional[CombinationPolicy] = None,
    ) -> bool:
        return self.evaluate(roles, required_actions, requester_user_id, combination).allowed

    @staticmethod
    def _satisfied(required: List[str], granted: List[str], combination: CombinationPolicy) -> bool:
        if not required:
            return False
        if combination == CombinationPolicy.ALL_OF:
            return all(a in granted for a in required)
        return bool(granted)
