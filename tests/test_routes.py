from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from callrelay import MemoryStore, Settings, create_app


@pytest.fixture
def app(monkeypatch):
    monkeypatch.delenv("ALLOWED_ORIGINS", raising=False)
    monkeypatch.delenv("STORE_BACKEND", raising=False)
    return create_app(settings=Settings(), store=MemoryStore())


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


def test_health(client) -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "OK"
    assert datetime.fromisoformat(body["time"])
    assert body["rooms"] == 0
    assert body["connections"] == 0


def test_unknown_path_is_404_with_error_body(client) -> None:
    response = client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


def test_user_crud(client) -> None:
    assert client.post("/api/users", json={"username": "u1"}).status_code == 201
    assert client.post("/api/users", json={"username": "u1"}).status_code == 409
    assert client.get("/api/users/u1").json() == {"username": "u1", "groups": []}
    assert [u["username"] for u in client.get("/api/users").json()] == ["u1"]

    assert client.delete("/api/users/u1").status_code == 200
    response = client.get("/api/users/u1")
    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}


def test_group_crud(client) -> None:
    response = client.post("/api/groups", json={"groupId": "AAAAA", "members": ["u1", "u1", "u2"]})
    assert response.status_code == 201
    assert response.json() == {"groupId": "AAAAA", "members": ["u1", "u2"], "messages": []}
    assert client.post("/api/groups", json={"groupId": "AAAAA"}).status_code == 409

    assert client.get("/api/groups/AAAAA").json()["members"] == ["u1", "u2"]
    assert len(client.get("/api/groups").json()) == 1
    assert client.delete("/api/groups/AAAAA").status_code == 200
    assert client.delete("/api/groups/AAAAA").status_code == 404


def test_invalid_body_returns_error(client) -> None:
    response = client.post("/api/users", json={})
    assert response.status_code == 422
    assert "error" in response.json()


def test_unhandled_exception_returns_500(app) -> None:
    async def boom():
        raise RuntimeError("database exploded")

    app.add_api_route("/api/boom", boom)
    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.get("/api/boom")
    assert response.status_code == 500
    assert response.json() == {"error": "database exploded"}


def test_cors_allow_list(client) -> None:
    allowed = client.get("/api/health", headers={"Origin": "http://localhost:3000"})
    assert allowed.headers["access-control-allow-origin"] == "http://localhost:3000"

    blocked = client.get("/api/health", headers={"Origin": "http://evil.test"})
    assert "access-control-allow-origin" not in blocked.headers
