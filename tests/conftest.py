from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from shipmaint.main import app
from shipmaint.store import DocumentStore


@pytest.fixture
def store(tmp_path) -> DocumentStore:
    s = DocumentStore(tmp_path / "test.sqlite")
    s.initialize()
    return s


@pytest.fixture
def client(store: DocumentStore):
    app.state.store = store
    with TestClient(app) as c:
        yield c
    app.state.store = None


def auth_headers(client: TestClient, email: str, password: str) -> dict:
    r = client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['token']}"}


@pytest.fixture
def admin(client: TestClient) -> dict:
    return auth_headers(client, "admin@entnt.in", "admin123")


@pytest.fixture
def inspector(client: TestClient) -> dict:
    return auth_headers(client, "inspector@entnt.in", "inspect123")


@pytest.fixture
def engineer(client: TestClient) -> dict:
    return auth_headers(client, "engineer@entnt.in", "engine123")
