import mongomock
import pytest
from fastapi.testclient import TestClient

from config import Settings, get_settings
from database import USERS, ensure_indexes, get_db
from main import create_app


@pytest.fixture
def settings():
    return Settings(
        database_name="devconnector_test",
        jwt_secret="test-secret",
        github_api_url="https://api.github.test",
        github_client_id="client-id",
        github_secret="client-secret",
    )


@pytest.fixture
def db(settings):
    database = mongomock.MongoClient()[settings.database_name]
    ensure_indexes(database)
    return database


@pytest.fixture
def client(settings, db):
    app = create_app(settings)
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_settings] = lambda: settings
    return TestClient(app)


@pytest.fixture
def make_user(client, db):
    """Register a user through the API and return its id and auth headers."""
    def make(name="Jane Doe", email="jane@devconnector.io", password="secret123"):
        resp = client.post("/api/users", json={"name": name, "email": email, "password": password})
        assert resp.status_code == 200, resp.text
        user = db[USERS].find_one({"email": email})
        return {
            "id": str(user["_id"]),
            "name": name,
            "headers": {"x-auth-token": resp.json()["token"]},
        }
    return make


@pytest.fixture
def jane(make_user):
    return make_user()


@pytest.fixture
def john(make_user):
    return make_user(name="John Roe", email="john@devconnector.io")
