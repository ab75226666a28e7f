"""Endpoint tests for the session lifecycle, plus an application smoke test."""

from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from Backend.config import Settings
from main import create_app


def test_login_establishes_session(make_client) -> None:
    client = make_client(authenticated=False)

    response = client.post("/auth/login", json={"email": "ada@example.com", "password": "secret"})

    assert response.status_code == 200
    body = response.json()
    assert body["authenticated"] is True
    assert body["user"] == {"id": "7", "name": "Ada Lovelace", "email": "ada@example.com", "role": "user"}


def test_wrong_password_is_unauthorized(make_client) -> None:
    client = make_client(authenticated=False)

    response = client.post("/auth/login", json={"email": "ada@example.com", "password": "nope"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Authentication error: Please log in again."


def test_register_then_login_is_required(make_client) -> None:
    client = make_client(authenticated=False)

    response = client.post(
        "/auth/register",
        json={"email": "grace@example.com", "password": "secret1", "first_name": "Grace", "last_name": "Hopper"},
    )

    assert response.status_code == 201
    assert response.json()["authenticated"] is False


def test_register_existing_email_conflicts(make_client) -> None:
    client = make_client(authenticated=False)

    response = client.post(
        "/auth/register",
        json={"email": "ada@example.com", "password": "secret1", "first_name": "Ada", "last_name": "Lovelace"},
    )

    assert response.status_code == 409
    assert response.json()["detail"].startswith("Email already exists")


def test_short_password_is_rejected(make_client) -> None:
    client = make_client(authenticated=False)

    response = client.post(
        "/auth/register",
        json={"email": "x@example.com", "password": "123", "first_name": "X", "last_name": "Y"},
    )

    assert response.status_code == 422


def test_me_and_logout(make_client) -> None:
    client = make_client()

    assert client.get("/auth/me").json()["authenticated"] is True
    assert client.post("/auth/logout").status_code == 200
    assert client.get("/auth/me").json()["authenticated"] is False


def test_app_starts_and_serves_root(tmp_path: Path) -> None:
    app = create_app(Settings(api_url="http://backend.test", session_file=tmp_path / "session.json"))

    with TestClient(app) as client:
        response = client.get("/")
        assert response.status_code == 200
        assert "Hotel Booking" in response.json()["message"]
        assert client.app.state.session.is_authenticated is False
