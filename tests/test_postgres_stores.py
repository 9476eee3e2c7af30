"""
Store tests against an in-memory SQLite database.
"""
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from inventory_api.adapters.postgres.models import Base
from inventory_api.adapters.postgres.stores import (
    PostgresCategoryStore,
    PostgresRoleStore,
    PostgresUserStore,
)
from inventory_api.domain.interfaces import (
    ConflictError,
    InactiveRoleError,
    NotFoundError,
    StoreUnavailableError,
)
from inventory_api.domain.rbac.patterns import ActionPatternError


@pytest.fixture
def db():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    session = Session(engine)
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def roles(db):
    return PostgresRoleStore(db)


@pytest.fixture
def users(db):
    return PostgresUserStore(db)


class TestRoleStore:

    def test_create_and_get(self, roles):
        created = roles.create_role({"name": "Administrator", "allowed_actions": ["*"]})
        assert created["id"] is not None
        assert created["is_active"] is True
        assert created["not_allowed_actions"] == []

        fetched = roles.get_role(created["id"])
        assert fetched["allowed_actions"] == ["*"]

    def test_invalid_pattern_rejected(self, roles):
        with pytest.raises(ActionPatternError):
            roles.create_role({"name": "Bad", "allowed_actions": ["inventory/read"]})
        assert roles.list_roles() == []

    def test_update_validates_patterns(self, roles):
        role = roles.create_role({"name": "Clerk", "allowed_actions": ["/inventory/*"]})
        with pytest.raises(ActionPatternError):
            roles.update_role(role["id"], {"not_allowed_actions": ["/inventory//read"]})
        updated = roles.update_role(role["id"], {"not_allowed_actions": ["/inventory/delete"], "is_active": False})
        assert updated["not_allowed_actions"] == ["/inventory/delete"]
        assert updated["is_active"] is False
        assert updated["name"] == "Clerk"

    def test_update_missing(self, roles):
        with pytest.raises(NotFoundError):
            roles.update_role(99, {"name": "x"})

    def test_duplicate_name_conflicts(self, roles):
        roles.create_role({"name": "Administrator", "allowed_actions": ["*"]})
        with pytest.raises(ConflictError):
            roles.create_role({"name": "Administrator", "allowed_actions": ["*"]})
        assert len(roles.list_roles()) == 1

    def test_get_roles_by_names_includes_inactive(self, roles):
        roles.create_role({"name": "A", "allowed_actions": ["*"]})
        roles.create_role({"name": "B", "is_active": False, "allowed_actions": ["*"]})
        snapshots = roles.get_roles_by_names(["A", "B", "Missing"])
        assert sorted((r.name, r.is_active) for r in snapshots) == [("A", True), ("B", False)]
        assert roles.get_roles_by_names([]) == []

    def test_delete_role_in_use(self, roles, users):
        role = roles.create_role({"name": "A", "allowed_actions": ["*"]})
        user = users.create_user({"first_name": "Ada", "email": "ada@example.com"})
        users.add_role(user["id"], role["id"])
        with pytest.raises(ConflictError):
            roles.delete_role(role["id"])
        users.remove_role(user["id"], role["id"])
        roles.delete_role(role["id"])
        assert roles.get_role(role["id"]) is None

    def test_delete_missing(self, roles):
        with pytest.raises(NotFoundError):
            roles.delete_role(1)

    def test_database_error_becomes_store_unavailable(self):
        db = MagicMock()
        db.query.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))
        with pytest.raises(StoreUnavailableError):
            PostgresRoleStore(db).get_roles_by_names(["Administrator"])
        db.rollback.assert_called_once()


class TestUserStore:

    def test_roles_for_user(self, roles, users):
        admin = roles.create_role({"name": "Administrator", "allowed_actions": ["*"]})
        user = users.create_user({"first_name": "Admin", "email": "admin@inventorym.com"})
        users.add_role(user["id"], admin["id"])
        users.add_role(user["id"], admin["id"])

        snapshots = users.get_roles_for_user(user["id"])
        assert [r.name for r in snapshots] == ["Administrator"]
        assert users.get_roles_for_user(999) == []

    def test_add_inactive_role(self, roles, users):
        role = roles.create_role({"name": "Old", "is_active": False, "allowed_actions": ["*"]})
        user = users.create_user({"first_name": "U", "email": "u@example.com"})
        with pytest.raises(InactiveRoleError):
            users.add_role(user["id"], role["id"])

    def test_add_missing(self, roles, users):
        user = users.create_user({"first_name": "U", "email": "u@example.com"})
        with pytest.raises(NotFoundError):
            users.add_role(user["id"], 42)
        with pytest.raises(NotFoundError):
            users.add_role(42, 1)

    def test_remove_unassigned_role(self, roles, users):
        role = roles.create_role({"name": "A", "allowed_actions": ["*"]})
        user = users.create_user({"first_name": "U", "email": "u@example.com"})
        with pytest.raises(NotFoundError):
            users.remove_role(user["id"], role["id"])

    def test_list_user_roles_filters_inactive(self, roles, users):
        active = roles.create_role({"name": "A", "allowed_actions": ["*"]})
        later_inactive = roles.create_role({"name": "B", "allowed_actions": ["*"]})
        user = users.create_user({"first_name": "U", "email": "u@example.com"})
        users.add_role(user["id"], active["id"])
        users.add_role(user["id"], later_inactive["id"])
        roles.update_role(later_inactive["id"], {"is_active": False})

        assert [r["name"] for r in users.list_user_roles(user["id"])] == ["A"]
        assert sorted(r["name"] for r in users.list_user_roles(user["id"], active_only=False)) == ["A", "B"]
        with pytest.raises(NotFoundError):
            users.list_user_roles(999)

    def test_get_user_with_roles(self, roles, users):
        role = roles.create_role({"name": "A", "allowed_actions": ["*"]})
        user = users.create_user({"first_name": "U", "last_name": "V", "email": "u@example.com"})
        users.add_role(user["id"], role["id"])

        assert "roles" not in users.get_user(user["id"])
        with_roles = users.get_user(user["id"], include_roles=True)
        assert [r["name"] for r in with_roles["roles"]] == ["A"]
        assert users.get_user(999) is None

    def test_duplicate_email(self, users):
        users.create_user({"first_name": "U", "email": "u@example.com"})
        with pytest.raises(ConflictError):
            users.create_user({"first_name": "V", "email": "u@example.com"})

    def test_delete_user_releases_roles(self, roles, users):
        role = roles.create_role({"name": "A", "allowed_actions": ["*"]})
        user = users.create_user({"first_name": "U", "email": "u@example.com"})
        users.add_role(user["id"], role["id"])
        users.delete_user(user["id"])
        assert users.get_user(user["id"]) is None
        roles.delete_role(role["id"])


def test_category_crud(db):
    store = PostgresCategoryStore(db)
    created = store.create_category({"name": "Electronics", "description": "Devices"})
    assert created["is_active"] is True
    assert store.update_category(created["id"], {"is_active": False})["is_active"] is False
    assert [c["name"] for c in store.list_categories()] == ["Electronics"]
    store.delete_category(created["id"])
    assert store.get_category(created["id"]) is None
    with pytest.raises(NotFoundError):
        store.delete_category(created["id"])
