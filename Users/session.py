"""Authenticated session: the one piece of state shared by every page."""
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from Backend.errors import AuthExpired, BackendError
from Users.user import User

if TYPE_CHECKING:
    from Backend.client import HotelBackend

logger = logging.getLogger(__name__)


class SessionStore:
    """Durable storage for the session token and user, kept in one JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> tuple[Optional[str], Optional[User]]:
        """
        Read the stored session.

        Returns:
            (token, user); both None when nothing usable is stored.
        """
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None, None
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable session file", extra={"path": str(self.path)})
            return None, None

        token = payload.get("token") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            return None, None
        try:
            user = User.model_validate(payload["user"]) if payload.get("user") else None
        except ValueError:
            user = None
        return token, user

    def save(self, token: str, user: Optional[User]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"token": token, "user": user.to_dict() if user is not None else None}
        self.path.write_text(json.dumps(payload), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class SessionContext:
    """
    Session token and user, created once at start-up and injected where needed.

    Only ``login``, ``register``, ``refresh`` and ``logout`` change it.
    """

    def __init__(self, store: Optional[SessionStore] = None):
        self._store = store
        self._token: Optional[str] = None
        self._user: Optional[User] = None
        if store is not None:
            self._token, self._user = store.load()

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def user(self) -> Optional[User]:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    async def login(self, backend: "HotelBackend", email: str, password: str) -> User:
        """
        Sign in and load the user's profile.

        Raises:
            BackendError: Credentials refused or backend unreachable; the
                session is left as it was.
        """
        response = await backend.login(email.strip().lower(), password)
        token = _find_token(response)
        if token is None:
            raise BackendError("Invalid response from server", status_code=502)

        profile = await backend.me(token=token)
        user = _parse_user(profile)
        self._establish(token, user)
        logger.info("User logged in", extra={"user_id": user.id})
        return user

    async def register(
        self,
        backend: "HotelBackend",
        email: str,
        password: str,
        first_name: str,
        last_name: str,
    ) -> Optional[User]:
        """
        Create an account; signs in directly when the backend returns a token.

        Returns:
            The signed-in user, or None when the user still has to log in.
        """
        try:
            response = await backend.register(
                {
                    "email": email.strip().lower(),
                    "password": password,
                    "confirmPassword": password,
                    "firstName": first_name,
                    "lastName": last_name,
                }
            )
        except BackendError as exc:
            if exc.status_code == 409:
                raise BackendError(
                    "Email already exists. Please use a different email or try logging in.",
                    status_code=409,
                ) from exc
            raise

        token = _find_token(response)
        if token is None:
            logger.info("User registered", extra={"email": email})
            return None
        user_payload = response.get("user") if isinstance(response, dict) else None
        user = _parse_user(user_payload) if user_payload else _parse_user(await backend.me(token=token))
        self._establish(token, user)
        logger.info("User registered and logged in", extra={"user_id": user.id})
        return user

    async def refresh(self, backend: "HotelBackend") -> Optional[User]:
        """
        Re-read the profile for the stored token.

        An expired token ends the session; a transport failure leaves the
        session untouched and propagates.
        """
        if self._token is None:
            return None
        try:
            profile = await backend.me(token=self._token)
        except AuthExpired:
            logger.info("Session expired")
            self.logout()
            return None
        self._establish(self._token, _parse_user(profile))
        return self._user

    def logout(self) -> None:
        self._token = None
        self._user = None
        if self._store is not None:
            self._store.clear()

    def _establish(self, token: str, user: User) -> None:
        self._token = token
        self._user = user
        if self._store is not None:
            self._store.save(token, user)


def _find_token(response: Any) -> Optional[str]:
    '''Token of a login/register response: ``access_token`` or ``token``, top-level or under ``data``.'''
    if not isinstance(response, dict):
        return None
    for candidate in (response, response.get("data")):
        if isinstance(candidate, dict):
            for key in ("access_token", "token"):
                value = candidate.get(key)
                if isinstance(value, str) and value:
                    return value
    return None


def _parse_user(payload: Any) -> User:
    try:
        return User.model_validate(payload)
    except ValueError as exc:
        raise BackendError(f"Malformed user profile: {exc}", status_code=502) from exc
