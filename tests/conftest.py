"""
Pytest fixtures for the sweet shop tests.

Provides an isolated in-memory database per test, a TestClient wired to it,
and helpers for registering users and creating sweets.
"""
import os

# Must be in place before sweetshop.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from sweetshop.database import create_db_engine, get_db, init_db
from sweetshop.main import app
from sweetshop.services import inventory_service

PASSWORD = "password123"


@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory database with all tables."""
    engine = create_db_engine("sqlite://")
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


@pytest.fixture(scope="function")
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    """Test client whose requests use the per-test database."""

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def register(client, username: str, password: str = PASSWORD, is_admin: bool = False):
    """Register through the API and return the response."""
    return client.post(
        "/api/auth/register",
        json={"username": username, "password": password, "isAdmin": is_admin},
    )


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope="function")
def admin_headers(client):
    response = register(client, "adminuser", is_admin=True)
    assert response.status_code == 201, response.text
    return auth_headers(response.json()["token"])


@pytest.fixture(scope="function")
def user_headers(client):
    response = register(client, "regularuser")
    assert response.status_code == 201, response.text
    return auth_headers(response.json()["token"])


@pytest.fixture(scope="function")
def make_sweet(db_session):
    """Create sweets directly through the service layer."""

    def _make(name="Chocolate Cake", category="Cakes", price=15.99, quantity=10):
        return inventory_service.create_sweet(db_session, name, category, price, quantity)

    return _make
