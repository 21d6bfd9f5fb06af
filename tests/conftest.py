"""
Test Configuration and Fixtures
Shared testing infrastructure for Stocklet
"""

import pytest
from typing import Generator, Dict, Any
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from stocklet.main import create_app
from stocklet.core.database import Database, get_db
from stocklet.core.security import create_access_token, hash_password
from stocklet.models.auth import User
from stocklet.models.item import Item

TEST_PASSWORD = "testpassword123"


@pytest.fixture(scope="function")
def database() -> Generator[Database, None, None]:
    """Fresh in-memory database for each test"""
    db = Database("sqlite://").open()
    db.create_all()
    yield db
    db.close()


@pytest.fixture(scope="function")
def db_session(database: Database) -> Generator[Session, None, None]:
    """Create a fresh database session for each test"""
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def app(database: Database) -> FastAPI:
    return create_app(database)


@pytest.fixture(scope="function")
def client(app: FastAPI, db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database dependency override"""
    def override_get_db():
        try:
            yield db_session
        except Exception:
            db_session.rollback()
            raise

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_user(db_session: Session, email: str) -> User:
    user = User(email=email, password_hash=hash_password(TEST_PASSWORD))
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def test_password() -> str:
    return TEST_PASSWORD


@pytest.fixture
def test_user(db_session: Session) -> User:
    """Create a test user"""
    return make_user(db_session, "owner@stocklet.test")


@pytest.fixture
def other_user(db_session: Session) -> User:
    """A second user for isolation checks"""
    return make_user(db_session, "other@stocklet.test")


@pytest.fixture
def auth_headers(test_user: User) -> Dict[str, str]:
    """Bearer header for the test user"""
    issued = create_access_token(test_user.id, test_user.email)
    return {"Authorization": f"Bearer {issued.token}"}


@pytest.fixture
def other_headers(other_user: User) -> Dict[str, str]:
    issued = create_access_token(other_user.id, other_user.email)
    return {"Authorization": f"Bearer {issued.token}"}


@pytest.fixture
def logged_in_client(client: TestClient, test_user: User) -> TestClient:
    """Client holding the session cookie from a real login"""
    response = client.post(
        "/api/auth/login",
        json={"email": test_user.email, "password": TEST_PASSWORD},
    )
    assert response.status_code == 200
    return client


@pytest.fixture
def sample_item_data() -> Dict[str, Any]:
    """Sample item data for testing"""
    return {
        "name": "Besi Beton",
        "initial_stock": 100,
    }


@pytest.fixture
def besi_beton(db_session: Session) -> Item:
    item = Item(name="Besi Beton", initial_stock=100, current_stock=100)
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item


@pytest.fixture
def kawat(db_session: Session) -> Item:
    item = Item(name="Kawat Bendrat", initial_stock=40, current_stock=40)
    db_session.add(item)
    db_session.commit()
    db_session.refresh(item)
    return item
