"""Dependency Injection Module."""
import logging
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from inventory_api.adapters.postgres.session import get_db
from inventory_api.adapters.postgres.stores import (
    PostgresCategoryStore,
    PostgresRoleStore,
    PostgresUserStore,
)
from inventory_api.domain.auth import JwtValidator
from inventory_api.domain.interfaces import CategoryStore, RoleStore, UserStore
from inventory_api.domain.rbac.policy_engine import PolicyEngine
from inventory_api.domain.rbac.service import AuthorizationService
from inventory_api.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def get_role_store(db: Session = Depends(get_db)) -> RoleStore:
    return PostgresRoleStore(db)


def get_user_store(db: Session = Depends(get_db)) -> UserStore:
    return PostgresUserStore(db)


def get_category_store(db: Session = Depends(get_db)) -> CategoryStore:
    return PostgresCategoryStore(db)


def get_policy_engine(settings: Settings = Depends(get_settings)) -> PolicyEngine:
    return PolicyEngine(default_combination=settings.ACTION_COMBINATION)


def get_authorization_service(
    role_store: RoleStore = Depends(get_role_store),
    user_store: UserStore = Depends(get_user_store),
    engine: PolicyEngine = Depends(get_policy_engine),
) -> AuthorizationService:
    return AuthorizationService(role_store, user_store, engine)


@lru_cache()
def _jwt_validator(secret, jwks_url, issuer, audience, algorithms: tuple) -> JwtValidator:
    return JwtValidator(
        secret=secret,
        jwks_url=jwks_url,
        issuer=issuer,
        audience=audience,
        algorithms=list(algorithms),
    )


def get_jwt_validator(settings: Settings = Depends(get_settings)) -> JwtValidator:
    # Shared per configuration; holds the JWKS cache.
    return _jwt_validator(
        settings.JWT_SECRET,
        settings.JWT_JWKS_URL,
        settings.JWT_ISSUER,
        settings.JWT_AUDIENCE,
        tuple(settings.JWT_ALGORITHMS),
    )
