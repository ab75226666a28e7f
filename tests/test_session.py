"""Tests for the persisted session context."""

from __future__ import annotations

import asyncio
from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from Backend.errors import AuthExpired, BackendError, TransportError  # noqa: E402
from Users.session import SessionContext, SessionStore  # noqa: E402
from Users.user import User  # noqa: E402

from fakes import FakeBackend  # noqa: E402


@pytest.fixture()
def store(tmp_path: Path) -> SessionStore:
    return SessionStore(tmp_path / "session.json")


def test_missing_or_corrupt_file_means_no_session(store: SessionStore) -> None:
    assert store.load() == (None, None)

    store.path.write_text("{not json", encoding="utf-8")

    assert store.load() == (None, None)


def test_store_round_trips_token_and_user(store: SessionStore) -> None:
    user = User(id="7", name="Ada Lovelace", email="ada@example.com")

    store.save("token-7", user)

    assert store.load() == ("token-7", user)
    store.clear()
    assert not store.path.exists()


def test_login_establishes_and_persists_session(store: SessionStore) -> None:
    backend = FakeBackend()
    session = SessionContext(store)

    user = asyncio.run(session.login(backend, " Ada@Example.com ", "secret"))

    assert session.is_authenticated
    assert session.token == "token-7"
    assert user.name == "Ada Lovelace"
    assert SessionContext(store).token == "token-7"


def test_failed_login_leaves_session_untouched(store: SessionStore) -> None:
    session = SessionContext(store)

    with pytest.raises(AuthExpired):
        asyncio.run(session.login(FakeBackend(), "ada@example.com", "wrong"))

    assert not session.is_authenticated
    assert store.load() == (None, None)


def test_login_without_token_is_a_bad_gateway(store: SessionStore) -> None:
    backend = FakeBackend()

    async def tokenless(email: str, password: str):
        return {"message": "ok"}

    backend.login = tokenless  # type: ignore[method-assign]

    with pytest.raises(BackendError) as excinfo:
        asyncio.run(SessionContext(store).login(backend, "ada@example.com", "secret"))

    assert excinfo.value.status_code == 502


def test_token_may_be_nested_under_data(store: SessionStore) -> None:
    backend = FakeBackend()
    original_login = backend.login

    async def nested(email: str, password: str):
        return {"data": {"token": (await original_login(email, password))["access_token"]}}

    backend.login = nested  # type: ignore[method-assign]
    session = SessionContext(store)

    asyncio.run(session.login(backend, "ada@example.com", "secret"))

    assert session.token == "token-7"


def test_register_without_token_requires_login(store: SessionStore) -> None:
    backend = FakeBackend()
    session = SessionContext(store)

    user = asyncio.run(session.register(backend, "grace@example.com", "secret1", "Grace", "Hopper"))

    assert user is None
    assert not session.is_authenticated
    assert "grace@example.com" in backend.users


def test_register_existing_email_is_explained(store: SessionStore) -> None:
    with pytest.raises(BackendError) as excinfo:
        asyncio.run(SessionContext(store).register(FakeBackend(), "ada@example.com", "secret1", "Ada", "Lovelace"))

    assert excinfo.value.status_code == 409
    assert excinfo.value.message.startswith("Email already exists")


def test_refresh_with_expired_token_logs_out(store: SessionStore) -> None:
    store.save("stale-token", None)
    session = SessionContext(store)

    assert asyncio.run(session.refresh(FakeBackend())) is None

    assert not session.is_authenticated
    assert not store.path.exists()


def test_refresh_keeps_session_when_backend_unreachable(store: SessionStore) -> None:
    store.save("token-7", None)
    backend = FakeBackend()

    async def unreachable(token=None):
        raise TransportError("Network error: Unable to connect to the server")

    backend.me = unreachable  # type: ignore[method-assign]
    session = SessionContext(store)

    with pytest.raises(TransportError):
        asyncio.run(session.refresh(backend))

    assert session.token == "token-7"


def test_logout_clears_everything(store: SessionStore) -> None:
    session = SessionContext(store)
    asyncio.run(session.login(FakeBackend(), "ada@example.com", "secret"))

    session.logout()

    assert session.token is None
    assert session.user is None
    assert store.load() == (None, None)
