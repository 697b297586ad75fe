import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["AUTO_CREATE_TABLES"] = "false"

from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from beaware.config import get_settings
from beaware.db import Base, SessionLocal, engine
from beaware.main import app
from beaware.models.user import ROLE_ADMIN, ROLE_USER, User
from beaware.routes.auth import create_access_token, hash_password


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def _make_user(db, email: str, role: str) -> User:
    user = User(
        email=email,
        display_name=email.split("@")[0],
        role=role,
        password_hash=hash_password("Sup3r$ecret"),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def user(db):
    return _make_user(db, "reporter@example.com", ROLE_USER)


@pytest.fixture
def admin(db):
    return _make_user(db, "admin@example.com", ROLE_ADMIN)


@pytest.fixture
def auth_headers():
    def _headers(account: User) -> dict:
        token = create_access_token(str(account.id), get_settings())
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def provider_response():
    """Build a stand-in for a requests.Response."""

    def _response(status_code=200, payload=None, reason="OK", text=""):
        resp = Mock()
        resp.status_code = status_code
        resp.ok = 200 <= status_code < 300
        resp.reason = reason
        resp.text = text
        if isinstance(payload, Exception):
            resp.json.side_effect = payload
        else:
            resp.json.return_value = payload
        return resp

    return _response


@pytest.fixture
def user_headers(user, auth_headers):
    return auth_headers(user)


@pytest.fixture
def admin_headers(admin, auth_headers):
    return auth_headers(admin)
