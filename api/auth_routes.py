"""Session lifecycle FastAPI routes."""

import logging

from fastapi import APIRouter, Depends, status

from Backend.client import HotelBackend
from Backend.deps import get_backend, get_session
from Backend.errors import BackendError
from Users.session import SessionContext

from .models import LoginFields, MessageResponse, RegisterFields, SessionResponse
from .utils import _raise_http

logger = logging.getLogger(__name__)

# mount api router
auth_router = APIRouter()


def _session_response(session: SessionContext, status_code: int = status.HTTP_200_OK) -> SessionResponse:
    return SessionResponse(status=status_code, authenticated=session.is_authenticated, user=session.user)


@auth_router.post("/login", response_model=SessionResponse, status_code=status.HTTP_200_OK)
async def login(
    fields: LoginFields,
    backend: HotelBackend = Depends(get_backend),
    session: SessionContext = Depends(get_session),
) -> SessionResponse:
    try:
        await session.login(backend, fields.email, fields.password)
    except BackendError as exc:
        _raise_http(exc, logger, "log in")
    return _session_response(session)


@auth_router.post("/register", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def register(
    fields: RegisterFields,
    backend: HotelBackend = Depends(get_backend),
    session: SessionContext = Depends(get_session),
) -> SessionResponse:
    """
    Create an account.

    Returns:
        SessionResponse; ``authenticated`` is false when the backend expects
        a separate login after registration.
    """

    try:
        await session.register(backend, fields.email, fields.password, fields.first_name, fields.last_name)
    except BackendError as exc:
        _raise_http(exc, logger, "register")
    return _session_response(session, status.HTTP_201_CREATED)


@auth_router.post("/logout", response_model=MessageResponse, status_code=status.HTTP_200_OK)
async def logout(session: SessionContext = Depends(get_session)) -> MessageResponse:
    session.logout()
    logger.info("User logged out")
    return MessageResponse(status=status.HTTP_200_OK, message="Logged out")


@auth_router.get("/me", response_model=SessionResponse, status_code=status.HTTP_200_OK)
async def me(
    backend: HotelBackend = Depends(get_backend),
    session: SessionContext = Depends(get_session),
) -> SessionResponse:
    '''Current session, re-validated against the backend.'''
    try:
        await session.refresh(backend)
    except BackendError as exc:
        _raise_http(exc, logger, "refresh session")
    return _session_response(session)
