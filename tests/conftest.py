import mongomock
import pytest
from fastapi.testclient import TestClient

from taskboard.core import rate_limit
from taskboard.infrastructure.db import mongo
from taskboard.main import app
from taskboard.repositories import user_repo
from taskboard.services.auth_service import hash_password
from taskboard.services.token_service import create_access_token

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def _reset_rate_limit():
    rate_limit.reset()
    yield
    rate_limit.reset()


@pytest.fixture
def db(monkeypatch):
    database = mongomock.MongoClient()["todo_app_test"]
    monkeypatch.setattr(mongo, "_db", database)
    return database


@pytest.fixture
def client(db):
    # Sin `with`: el startup intentaría conectar a un Mongo real
    return TestClient(app)


@pytest.fixture
def make_user(db):
    def _make(email="ana@example.com", name="Ana", password=PASSWORD, **extra):
        user_id = user_repo.insert_user(
            {"name": name, "email": email, "password_hash": hash_password(password), **extra}
        )
        return user_repo.get_user_by_id(user_id)

    return _make


@pytest.fixture
def headers_for():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user=user)}"}

    return _headers


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def auth_headers(user, headers_for):
    return headers_for(user)


@pytest.fixture
def other_headers(make_user, headers_for):
    return headers_for(make_user(email="bob@example.com", name="Bob"))
