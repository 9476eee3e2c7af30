"""User administration routes.

Roles are embedded in user payloads only when the caller may read roles.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, Request, Response

from inventory_api.api.users.schemas import UserCreate, UserOut, UserPatch
from inventory_api.dependencies import get_authorization_service, get_user_store
from inventory_api.domain.interfaces import NotFoundError, UserStore
from inventory_api.domain.rbac.models import CombinationPolicy, Principal
from inventory_api.domain.rbac.service import AuthorizationService
from inventory_api.errors import NOT_FOUND, raise_api_error
from inventory_api.middleware.auth import get_principal
from inventory_api.middleware.rbac import authorize_actions, enforce_decision

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/user", tags=["Users"])

ROLE_EMBED_ACTION = "/roles/read"


def can_read_roles(principal: Principal, service: AuthorizationService) -> bool:
    if principal.user_id is None:
        return False
    return service.has_permission(principal.user_id, ROLE_EMBED_ACTION)


@router.get(
    "",
    response_model=List[UserOut],
    response_model_exclude_none=True,
    dependencies=[Depends(authorize_actions("/user/read"))],
)
def list_users(
    principal: Principal = Depends(get_principal),
    service: AuthorizationService = Depends(get_authorization_service),
    store: UserStore = Depends(get_user_store),
):
    return store.list_users(include_roles=can_read_roles(principal, service))


SELF_READ_ACTION = "/user/{userid}/read"


# Registered before /{id} so "me" is never parsed as an id.
@router.get("/me", response_model=UserOut, response_model_exclude_none=True)
def get_me(
    request: Request,
    principal: Principal = Depends(get_principal),
    service: AuthorizationService = Depends(get_authorization_service),
    store: UserStore = Depends(get_user_store),
):
    if principal.user_id is None:
        raise_api_error(NOT_FOUND, 404, "Token does not identify a user")
    decision = service.authorize(principal, [SELF_READ_ACTION], {"userid": principal.user_id})
    enforce_decision(request, decision)

    user = store.get_user(principal.user_id, include_roles=can_read_roles(principal, service))
    if user is None:
        raise NotFoundError("User", principal.user_id)
    return user


# Administrators read any user; everyone reads their own record.
@router.get(
    "/{id}",
    response_model=UserOut,
    response_model_exclude_none=True,
    dependencies=[Depends(authorize_actions("/user/read", "/user/{id}/read", combination=CombinationPolicy.ANY_OF))],
)
def get_user(
    id: int,
    principal: Principal = Depends(get_principal),
    service: AuthorizationService = Depends(get_authorization_service),
    store: UserStore = Depends(get_user_store),
):
    user = store.get_user(id, include_roles=can_read_roles(principal, service))
    if user is None:
        raise NotFoundError("User", id)
    return user


@router.post(
    "",
    response_model=UserOut,
    response_model_exclude_none=True,
    status_code=201,
    dependencies=[Depends(authorize_actions("/user/write"))],
)
def create_user(body: UserCreate, store: UserStore = Depends(get_user_store)):
    return store.create_user(body.model_dump())


@router.put(
    "/{id}",
    response_model=UserOut,
    response_model_exclude_none=True,
    dependencies=[Depends(authorize_actions("/user/write"))],
)
def update_user(id: int, patch: UserPatch, store: UserStore = Depends(get_user_store)):
    return store.update_user(id, patch.model_dump(exclude_unset=True))


@router.delete("/{id}", status_code=204, dependencies=[Depends(authorize_actions("/user/delete"))])
def delete_user(id: int, store: UserStore = Depends(get_user_store)):
    store.delete_user(id)
    return Response(status_code=204)
