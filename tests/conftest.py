"""
Shared fixtures.

Each test gets its own SQLite file database (file, not :memory:, so that
several connections and threads see the same data), an app whose get_db and
get_session_manager dependencies point at it, and a TestClient.
"""

import os

# Cheap bcrypt and no Redis for the whole test run; must be set before medstock is imported
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["DEFAULT_ADMIN_PASSWORD"] = "12345"
os.environ["REDIS_URL"] = ""
os.environ["AUTO_CREATE_TABLES"] = "false"

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from medstock.core.database import build_engine, build_session_factory, get_db, init_db
from medstock.dependencies.auth import get_session_manager
from medstock.main import create_app
from medstock.models.drug import DrugCategory
from medstock.schemas.drug import DrugCreate
from medstock.services.session_service import DatabaseSessionStore, SessionManager

ADMIN_PASSWORD = "12345"


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'inventory.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory):
    """
    A single session for service-level tests.
    Do not mix with API calls in the same test: an open SQLite transaction
    holds the database write lock.
    """
    with session_factory() as session:
        yield session


@pytest.fixture
def session_manager(session_factory):
    return SessionManager(DatabaseSessionStore(session_factory), timedelta(days=7))


@pytest.fixture
def app(session_factory, session_manager):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_manager] = lambda: session_manager
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_client(client):
    """TestClient holding a logged-in session cookie."""
    resp = client.post("/login", json={"password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return client


def make_drug(**overrides) -> DrugCreate:
    fields = {
        "drug_code": "A1",
        "drug_name": "Gloves",
        "barcode": None,
        "quantity": 50,
        "expiry_date": None,
        "category": DrugCategory.PPE,
    }
    fields.update(overrides)
    return DrugCreate(**fields)


def drug_json(**overrides) -> dict:
    """Item fields as the UI posts them (camelCase)."""
    body = {
        "drugCode": "A1",
        "drugName": "Gloves",
        "barcode": "",
        "quantity": 50,
        "expiryDate": "",
        "category": "PPE",
    }
    body.update(overrides)
    return body


class FakeRedis:
    """In-memory stand-in for the handful of redis client methods the app calls."""

    def __init__(self):
        self.values = {}
        self.ttls = {}

    def setex(self, key, ttl, value):
        self.values[key] = value
        self.ttls[key] = ttl
        return True

    def get(self, key):
        return self.values.get(key)

    def delete(self, key):
        existed = key in self.values
        self.values.pop(key, None)
        self.ttls.pop(key, None)
        return int(existed)

    def incr(self, key):
        self.values[key] = str(int(self.values.get(key, 0)) + 1)
        return int(self.values[key])
