import pytest
from fastapi.testclient import TestClient

from tracker_api.main import create_app
from tracker_api.settings import Settings

# Cheap argon2 parameters so registering users in tests stays fast.
TEST_SETTINGS = Settings(
    persistence_backend="memory",
    token_secret="test-secret",
    argon2_time_cost=1,
    argon2_memory_cost=1024,
    log_level="WARNING",
)


def register(client, email="alice@x.com", password="secret1"):
    res = client.post("/auth/register", json={"email": email, "password": password})
    assert res.status_code == 201, res.text
    return res.json()


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


def create_task(client, token, title="A", priority="High", **extra):
    payload = {"title": title, "priority": priority, **extra}
    res = client.post("/tasks", json=payload, headers=auth_headers(token))
    assert res.status_code == 201, res.text
    return res.json()["task"]


@pytest.fixture
def app():
    return create_app(TEST_SETTINGS)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def alice(client):
    return register(client, "alice@x.com", "secret1")


@pytest.fixture
def bob(client):
    return register(client, "bob@y.com", "hunter22")
