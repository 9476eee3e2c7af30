"""Postgres Store Implementations."""
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from inventory_api.adapters.postgres.models import Category, Role, User
from inventory_api.domain.interfaces import (
    CategoryStore,
    ConflictError,
    InactiveRoleError,
    NotFoundError,
    RoleStore,
    StoreUnavailableError,
    UserStore,
)
from inventory_api.domain.rbac import models as rbac
from inventory_api.domain.rbac.patterns import validate_action_patterns

logger = logging.getLogger(__name__)

ROLE_FIELDS = ("name", "is_active", "allowed_actions", "not_allowed_actions")
USER_FIELDS = ("first_name", "last_name", "email")
CATEGORY_FIELDS = ("name", "is_active", "description")


def to_dict(obj, fields=None):
    if not obj:
        return None
    names = fields or [c.name for c in obj.__table__.columns]
    return {name: getattr(obj, name) for name in names}


def role_to_dict(role: Role) -> Dict[str, Any]:
    d = to_dict(role, ("id",) + ROLE_FIELDS)
    d["allowed_actions"] = list(d["allowed_actions"] or [])
    d["not_allowed_actions"] = list(d["not_allowed_actions"] or [])
    return d


def role_snapshot(role: Role) -> rbac.Role:
    return rbac.Role(
        role_id=role.id,
        name=role.name,
        is_active=bool(role.is_active),
        allowed_actions=role.allowed_actions,
        not_allowed_actions=role.not_allowed_actions,
    )


@contextmanager
def store_errors(db: Session, operation: str):
    """Roll back and translate SQLAlchemy failures into domain errors."""
    try:
        yield
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"{operation} violated a constraint: {e.orig}")
        raise ConflictError(f"{operation} conflicts with existing data") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{operation} failed: {e}")
        raise StoreUnavailableError(f"{operation} failed") from e


class PostgresRoleStore(RoleStore):
    def __init__(self, db: Session):
        self.db = db

    def _get(self, role_id: int) -> Optional[Role]:
        return self.db.query(Role).filter(Role.id == role_id).first()

    def list_roles(self) -> List[Dict[str, Any]]:
        with store_errors(self.db, "list_roles"):
            return [role_to_dict(r) for r in self.db.query(Role).order_by(Role.id).all()]

    def get_role(self, role_id: int) -> Optional[Dict[str, Any]]:
        with store_errors(self.db, "get_role"):
            obj = self._get(role_id)
            return role_to_dict(obj) if obj else None

    def create_role(self, role: Dict[str, Any]) -> Dict[str, Any]:
        data = {k: role[k] for k in ROLE_FIELDS if k in role}
        data["allowed_actions"] = validate_action_patterns(data.get("allowed_actions"))
        data["not_allowed_actions"] = validate_action_patterns(data.get("not_allowed_actions"))
        with store_errors(self.db, "create_role"):
            obj = Role(**data)
            self.db.add(obj)
            self.db.commit()
            self.db.refresh(obj)
            logger.info(f"Created role {obj.id} ({obj.name})")
            return role_to_dict(obj)

    def update_role(self, role_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        for key in ("allowed_actions", "not_allowed_actions"):
            if key in updates:
                updates[key] = validate_action_patterns(updates[key])
        with store_errors(self.db, "update_role"):
            obj = self._get(role_id)
            if not obj:
                raise NotFoundError("Role", role_id)
            for k, v in updates.items():
                if k in ROLE_FIELDS:
                    setattr(obj, k, v)
            self.db.commit()
            self.db.refresh(obj)
            return role_to_dict(obj)

    def delete_role(self, role_id: int) -> None:
        with store_errors(self.db, "delete_role"):
            obj = self.db.query(Role).options(selectinload(Role.users)).filter(Role.id == role_id).first()
            if not obj:
                raise NotFoundError("Role", role_id)
            if obj.users:
                raise ConflictError("This role cannot be deleted as it is associated with one or more users.")
            self.db.delete(obj)
            self.db.commit()

    def get_roles_by_names(self, names: Iterable[str]) -> List[rbac.Role]:
        names = list(names or [])
        if not names:
            return []
        with store_errors(self.db, "get_roles_by_names"):
            objs = self.db.query(Role).filter(Role.name.in_(names)).all()
            return [role_snapshot(o) for o in objs]


class PostgresUserStore(UserStore):
    def __init__(self, db: Session):
        self.db = db

    def _get(self, user_id: int) -> Optional[User]:
        return self.db.query(User).options(selectinload(User.roles)).filter(User.id == user_id).first()

    def _to_dict(self, user: User, include_roles: bool) -> Dict[str, Any]:
        d = to_dict(user, ("id",) + USER_FIELDS)
        if include_roles:
            d["roles"] = [role_to_dict(r) for r in user.roles]
        return d

    def list_users(self, include_roles: bool = False) -> List[Dict[str, Any]]:
        with store_errors(self.db, "list_users"):
            query = self.db.query(User).order_by(User.id)
            if include_roles:
                query = query.options(selectinload(User.roles))
            return [self._to_dict(u, include_roles) for u in query.all()]

    def get_user(self, user_id: int, include_roles: bool = False) -> Optional[Dict[str, Any]]:
        with store_errors(self.db, "get_user"):
            obj = self._get(user_id)
            return self._to_dict(obj, include_roles) if obj else None

    def create_user(self, user: Dict[str, Any]) -> Dict[str, Any]:
        with store_errors(self.db, "create_user"):
            obj = User(**{k: user[k] for k in USER_FIELDS if k in user})
            self.db.add(obj)
            self.db.commit()
            self.db.refresh(obj)
            logger.info(f"Created user {obj.id}")
            return self._to_dict(obj, include_roles=False)

    def update_user(self, user_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        with store_errors(self.db, "update_user"):
            obj = self._get(user_id)
            if not obj:
                raise NotFoundError("User", user_id)
            for k, v in updates.items():
                if k in USER_FIELDS:
                    setattr(obj, k, v)
            self.db.commit()
            self.db.refresh(obj)
            return self._to_dict(obj, include_roles=False)

    def delete_user(self, user_id: int) -> None:
        with store_errors(self.db, "delete_user"):
            obj = self._get(user_id)
            if not obj:
                raise NotFoundError("User", user_id)
            obj.roles.clear()
            self.db.delete(obj)
            self.db.commit()

    def get_roles_for_user(self, user_id: int) -> List[rbac.Role]:
        with store_errors(self.db, "get_roles_for_user"):
            obj = self._get(user_id)
            if not obj:
                return []
            return [role_snapshot(r) for r in obj.roles]

    def list_user_roles(self, user_id: int, active_only: bool = True) -> List[Dict[str, Any]]:
        with store_errors(self.db, "list_user_roles"):
            obj = self._get(user_id)
            if not obj:
                raise NotFoundError("User", user_id)
            return [role_to_dict(r) for r in obj.roles if r.is_active or not active_only]

    def add_role(self, user_id: int, role_id: int) -> None:
        with store_errors(self.db, "add_role"):
            user = self._get(user_id)
            if not user:
                raise NotFoundError("User", user_id)
            role = self.db.query(Role).filter(Role.id == role_id).first()
            if not role:
                raise NotFoundError("Role", role_id)
            if not role.is_active:
                raise InactiveRoleError(role_id)
            if role not in user.roles:
                user.roles.append(role)
                self.db.commit()

    def remove_role(self, user_id: int, role_id: int) -> None:
        with store_errors(self.db, "remove_role"):
            user = self._get(user_id)
            if not user:
                raise NotFoundError("User", user_id)
            role = next((r for r in user.roles if r.id == role_id), None)
            if not role:
                raise NotFoundError("Role", role_id)
            user.roles.remove(role)
            self.db.commit()


class PostgresCategoryStore(CategoryStore):
    def __init__(self, db: Session):
        self.db = db

    def _get(self, category_id: int) -> Optional[Category]:
        return self.db.query(Category).filter(Category.id == category_id).first()

    def list_categories(self) -> List[Dict[str, Any]]:
        with store_errors(self.db, "list_categories"):
            return [to_dict(c) for c in self.db.query(Category).order_by(Category.id).all()]

    def get_category(self, category_id: int) -> Optional[Dict[str, Any]]:
        with store_errors(self.db, "get_category"):
            return to_dict(self._get(category_id))

    def create_category(self, category: Dict[str, Any]) -> Dict[str, Any]:
        with store_errors(self.db, "create_category"):
            obj = Category(**{k: category[k] for k in CATEGORY_FIELDS if k in category})
            self.db.add(obj)
            self.db.commit()
            self.db.refresh(obj)
            return to_dict(obj)

    def update_category(self, category_id: int, updates: Dict[str, Any]) -> Dict[str, Any]:
        with store_errors(self.db, "update_category"):
            obj = self._get(category_id)
            if not obj:
                raise NotFoundError("Category", category_id)
            for k, v in updates.items():
                if k in CATEGORY_FIELDS:
                    setattr(obj, k, v)
            self.db.commit()
            self.db.refresh(obj)
            return to_dict(obj)

    def delete_category(self, category_id: int) -> None:
        with store_errors(self.db, "delete_category"):
            obj = self._get(category_id)
            if not obj:
                raise NotFoundError("Category", category_id)
            self.db.delete(obj)
            self.db.commit()
