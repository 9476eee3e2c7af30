import time

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from inventory_api.adapters.postgres.models import Base, Category, Role, User
from inventory_api.adapters.postgres.session import get_db
from inventory_api.main import app
from inventory_api.settings import Settings, get_settings

JWT_SECRET = "integration-test-secret-0123456789abcdef"


@pytest.fixture(autouse=True)
def clear_overrides():
    """Automatically clear FastAPI dependency overrides before each test."""
    app.dependency_overrides = {}
    yield
    app.dependency_overrides = {}


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    db = factory()
    admin = Role(id=1, name="Administrator", allowed_actions=["*"])
    manager = Role(id=2, name="Inventory Manager", allowed_actions=["/inventory/*", "/product/*", "/role/read"])
    category = Role(
        id=3, name="Category Editor",
        allowed_actions=["/category/*"],
        not_allowed_actions=["/category/delete"],
    )
    retired = Role(id=4, name="Retired", is_active=False, allowed_actions=["*"])
    db.add_all([
        User(id=1, first_name="Admin", email="admin@inventorym.com", roles=[admin]),
        User(id=2, first_name="Manny", email="manager@inventorym.com", roles=[manager]),
        User(id=3, first_name="Nora", email="nora@inventorym.com"),
        User(id=4, first_name="Cat", email="cat@inventorym.com", roles=[category]),
        User(id=5, first_name="Old", email="old@inventorym.com", roles=[retired]),
        Category(id=1, name="Electronics", description="Cellphones, TVs, etc."),
    ])
    db.commit()
    db.close()

    yield factory
    engine.dispose()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: Settings(JWT_SECRET=JWT_SECRET)
    return TestClient(app)


def make_token(user_id=None, roles=(), secret=JWT_SECRET, expires_in=300):
    claims = {"sub": f"user-{user_id}", "exp": int(time.time()) + expires_in, "role": list(roles)}
    if user_id is not None:
        claims["userId"] = str(user_id)
    return jwt.encode(claims, secret, algorithm="HS256")


def auth(user_id=None, *roles, **kwargs):
    return {"Authorization": f"Bearer {make_token(user_id, roles, **kwargs)}"}


@pytest.fixture
def headers():
    """Build Authorization headers: headers(user_id, *role_names)."""
    return auth
