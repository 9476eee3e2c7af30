"""Role administration routes.

    GET    /role                          list roles
    GET    /role/{id}                     one role
    GET    /user/{userid}/role            active roles held by a user
    POST   /role                          create a role
    POST   /user/{userid}/role/{roleid}   grant a role to a user
    PUT    /role/{id}                     patch a role
    DELETE /role/{id}                     delete an unused role
    DELETE /user/{userid}/role/{roleid}   revoke a role from a user
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, Response

from inventory_api.api.roles.schemas import RoleCreate, RoleOut, RolePatch
from inventory_api.dependencies import get_role_store, get_user_store
from inventory_api.domain.interfaces import NotFoundError, RoleStore, UserStore
from inventory_api.middleware.rbac import authorize_actions

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Roles"])


@router.get("/role", response_model=List[RoleOut], dependencies=[Depends(authorize_actions("/role/read"))])
def list_roles(store: RoleStore = Depends(get_role_store)):
    return store.list_roles()


@router.get("/role/{id}", response_model=RoleOut, dependencies=[Depends(authorize_actions("/role/read"))])
def get_role(id: int, store: RoleStore = Depends(get_role_store)):
    role = store.get_role(id)
    if role is None:
        raise NotFoundError("Role", id)
    return role


@router.get(
    "/user/{userid}/role",
    response_model=List[RoleOut],
    dependencies=[Depends(authorize_actions("/user/{userid}/role/read"))],
)
def list_user_roles(userid: int, store: UserStore = Depends(get_user_store)):
    return store.list_user_roles(userid, active_only=True)


@router.post(
    "/role",
    response_model=RoleOut,
    status_code=201,
    dependencies=[Depends(authorize_actions("/role/write"))],
)
def create_role(body: RoleCreate, store: RoleStore = Depends(get_role_store)):
    return store.create_role(body.model_dump())


@router.post(
    "/user/{userid}/role/{roleid}",
    status_code=204,
    dependencies=[Depends(authorize_actions("/user/{userid}/role/write"))],
)
def add_role_to_user(userid: int, roleid: int, store: UserStore = Depends(get_user_store)):
    store.add_role(userid, roleid)
    logger.info(f"Granted role {roleid} to user {userid}")
    return Response(status_code=204)


@router.put("/role/{id}", response_model=RoleOut, dependencies=[Depends(authorize_actions("/role/write"))])
def update_role(id: int, patch: RolePatch, store: RoleStore = Depends(get_role_store)):
    return store.update_role(id, patch.model_dump(exclude_unset=True))


@router.delete("/role/{id}", status_code=204, dependencies=[Depends(authorize_actions("/role/delete"))])
def delete_role(id: int, store: RoleStore = Depends(get_role_store)):
    store.delete_role(id)
    return Response(status_code=204)


@router.delete(
    "/user/{userid}/role/{roleid}",
    status_code=204,
    dependencies=[Depends(authorize_actions("/user/{userid}/role/delete"))],
)
def remove_role_from_user(userid: int, roleid: int, store: UserStore = Depends(get_user_store)):
    store.remove_role(userid, roleid)
    logger.info(f"Revoked role {roleid} from user {userid}")
    return Response(status_code=204)
