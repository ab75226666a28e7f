"""Fixtures wiring the routers to an in-memory backend."""

from __future__ import annotations

import asyncio
from pathlib import Path
import sys
from typing import Callable

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from Backend.config import Settings  # noqa: E402
from Backend.deps import get_backend, get_bookings_list, get_drafts, get_session  # noqa: E402
from Hotels.my_bookings import BookingsList  # noqa: E402
from Users.session import SessionContext  # noqa: E402
from api.auth_routes import auth_router  # noqa: E402
from api.booking_routes import booking_router  # noqa: E402
from api.my_bookings_routes import my_bookings_router  # noqa: E402
from api.payment_routes import payment_router  # noqa: E402
from api.room_routes import room_router  # noqa: E402

from fakes import FakeBackend  # noqa: E402


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def make_client(backend: FakeBackend, tmp_path: Path) -> Callable[..., TestClient]:
    """Build a TestClient, optionally signed in as the fake backend's user."""

    def _make(authenticated: bool = True) -> TestClient:
        session = SessionContext()
        if authenticated:
            asyncio.run(session.login(backend, "ada@example.com", "secret"))
        drafts: dict = {}
        bookings_list = BookingsList(backend)

        app = FastAPI()
        app.state.settings = Settings(session_file=tmp_path / "session.json")
        app.dependency_overrides[get_backend] = lambda: backend  # type: ignore[assignment]
        app.dependency_overrides[get_session] = lambda: session  # type: ignore[assignment]
        app.dependency_overrides[get_drafts] = lambda: drafts  # type: ignore[assignment]
        app.dependency_overrides[get_bookings_list] = lambda: bookings_list  # type: ignore[assignment]
        app.include_router(auth_router, prefix="/auth")
        app.include_router(room_router, prefix="/rooms")
        app.include_router(booking_router, prefix="/booking")
        app.include_router(my_bookings_router, prefix="/my-bookings")
        app.include_router(payment_router, prefix="/payment")
        return TestClient(app)

    return _make
