"""Per-route action authorization.

Routes declare the actions they require when they are registered:

    @router.get(
        "/user/{userid}/role",
        dependencies=[Depends(authorize_actions("/user/{userid}/role/read"))],
    )

The templates are resolved against the live path parameters and evaluated
for the authenticated principal. Deny-by-default: any store failure
propagates and the request fails instead of being allowed.
"""
import logging
from typing import Optional

from fastapi import Depends, Request

from inventory_api.dependencies import get_authorization_service
from inventory_api.domain.rbac.models import AuthzDecision, CombinationPolicy, Principal
from inventory_api.domain.rbac.service import AuthorizationService
from inventory_api.errors import AUTHZ_DENIED, raise_api_error
from inventory_api.middleware.auth import get_principal

logger = logging.getLogger(__name__)


def enforce_decision(request: Request, decision: AuthzDecision) -> AuthzDecision:
    """Record the decision for audit and reject the request on deny."""
    request.state.authz_decision = decision.to_audit_dict()

    if not decision.allowed:
        raise_api_error(
            AUTHZ_DENIED,
            403,
            "Not authorized for this action",
            details=decision.to_audit_dict(),
        )
    return decision


def authorize_actions(*templates: str, combination: Optional[CombinationPolicy] = None):
    """Dependency that requires the caller to be granted the given action templates."""
    required_templates = tuple(templates)

    def checker(
        request: Request,
        principal: Principal = Depends(get_principal),
        service: AuthorizationService = Depends(get_authorization_service),
    ) -> AuthzDecision:
        decision = service.authorize(principal, required_templates, request.path_params, combination)
        return enforce_decision(request, decision)

    checker.required_action_templates = required_templates
    return checker
