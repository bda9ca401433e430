import pytest
from fastapi.testclient import TestClient
import mongomock
from athletehub.main import app
from athletehub import db as real_db
from athletehub import settings
from athletehub.db.store import RecordStore
from athletehub.services.connections import ConnectionGraph


@pytest.fixture(autouse=True)
def mock_db(monkeypatch):
    #replace mongodb with mongomock in-memory
    mock_client = mongomock.MongoClient()
    mock_db = mock_client["test_db"]

    monkeypatch.setattr(real_db, "_db", mock_db)

    yield mock_db


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def store(mock_db):
    return RecordStore(mock_db)


@pytest.fixture
def graph(store):
    return ConnectionGraph(store)


@pytest.fixture
def make_user(client):
    """Register a user and return {"id", "headers", ...}; cookies are dropped so every call is explicit."""
    def _make(name, role="athlete", email=None, password="secret123"):
        email = email or f"{name.lower().replace(' ', '.')}@example.com"
        res = client.post("/auth/register", data={
            "name": name, "email": email, "password": password, "role": role,
        })
        assert res.status_code == 201, res.text
        body = res.json()
        client.cookies.clear()
        return {
            "id": body["_id"],
            "name": name,
            "email": email,
            "role": role,
            "headers": {"Authorization": f"Bearer {body['access_token']}"},
        }
    return _make


@pytest.fixture
def auth_headers(make_user):
    """Signup + return an Authorization header"""
    return make_user("Test User")["headers"]


@pytest.fixture
def upload_dir(monkeypatch, tmp_path):
    """Uploaded files land in a per-test folder."""
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path))
    return tmp_path
