"""Authorization decision point and programmatic permission query.

Both entry points load role data fresh for every call and delegate to the
same PolicyEngine, so a request-time check and a has_permission() call agree
for the same user, roles and action.
"""
import logging
from typing import Any, Mapping, Optional, Sequence

from opentelemetry import trace

from inventory_api.domain.interfaces import RoleStore, UserStore
from .models import AuthzDecision, AuthzReasonCode, CombinationPolicy, Principal
from .policy_engine import PolicyEngine
from .templates import resolve_action_templates

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class AuthorizationService:
    def __init__(
        self,
        role_store: RoleStore,
        user_store: UserStore,
        engine: Optional[PolicyEngine] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._roles = role_store
        self._users = user_store
        self._engine = engine or PolicyEngine()
        self._logger = logger or logging.getLogger(__name__)

    def authorize(
        self,
        principal: Principal,
        action_templates: Sequence[str],
        route_params: Optional[Mapping[str, Any]] = None,
        combination: Optional[CombinationPolicy] = None,
    ) -> AuthzDecision:
        """Decide whether ``principal`` may call an endpoint declaring ``action_templates``.

        Store failures propagate to the caller; there is no fallback to allow.
        """
        combination = CombinationPolicy(combination or self._engine.default_combination)
        if not action_templates:
            return AuthzDecision(
                allowed=True,
                reason_code=AuthzReasonCode.NO_REQUIREMENT,
                combination=combination,
                user_id=principal.user_id,
            )

        required = resolve_action_templates(action_templates, route_params)
        with tracer.start_as_current_span("authz.authorize") as span:
            span.set_attribute("authz.required_actions", required)
            roles = self._roles.get_roles_by_names(principal.role_names)
            decision = self._engine.evaluate(roles, required, principal.user_id, combination)
            span.set_attribute("authz.decision", "ALLOW" if decision.allowed else "DENY")

        if decision.allowed:
            self._logger.debug(f"Authorized {principal.subject} for {required} ({decision.reason_code.value})")
        else:
            self._logger.info(f"Denied {principal.subject} for {required} ({decision.reason_code.value})")
        return decision

    def check_permission(self, user_id: int, action: str) -> AuthzDecision:
        with tracer.start_as_current_span("authz.check_permission") as span:
            span.set_attribute("authz.action", action)
            roles = self._users.get_roles_for_user(user_id)
            return self._engine.evaluate(roles, [action], user_id)

    def has_permission(self, user_id: int, action: str) -> bool:
        """Whether ``user_id`` may perform ``action``, outside any request pipeline."""
        return self.check_permission(user_id, action).allowed
