"""Bearer token authentication."""
from typing import Optional

from fastapi import Depends, Header, Request
from starlette.concurrency import run_in_threadpool

from inventory_api.dependencies import get_jwt_validator
from inventory_api.domain.auth import (
    AuthenticationError,
    IdentityProviderUnavailable,
    JwtValidator,
    principal_from_claims,
)
from inventory_api.domain.rbac.models import Principal
from inventory_api.errors import AUTH_INVALID, IDP_UNAVAILABLE, raise_api_error
from inventory_api.settings import Settings, get_settings


async def get_principal(
    request: Request,
    authorization: Optional[str] = Header(None),
    validator: JwtValidator = Depends(get_jwt_validator),
    settings: Settings = Depends(get_settings),
) -> Principal:
    """Authenticate the caller and expose its role names and user id."""
    if not authorization or not authorization.startswith("Bearer "):
        raise_api_error(AUTH_INVALID, 401, "Missing or invalid authentication")

    try:
        # JWKS fetches block; keep them off the event loop.
        claims = await run_in_threadpool(validator.validate_token, authorization[7:])
    except AuthenticationError as e:
        raise_api_error(AUTH_INVALID, 401, str(e))
    except IdentityProviderUnavailable as e:
        raise_api_error(IDP_UNAVAILABLE, 503, str(e))

    principal = principal_from_claims(claims, settings.ROLE_CLAIM, settings.USER_ID_CLAIM)
    request.state.principal = principal
    return principal
