"""Error taxonomy for calls made to the booking backend."""

from typing import Any, Optional

ERR_NETWORK = "ERR_NETWORK"
ERR_TIMEOUT = "ERR_TIMEOUT"


class BackendError(Exception):
    """Base class for every failure surfaced by the backend client."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        code: Optional[str] = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details

    @property
    def is_network_error(self) -> bool:
        return False


class TransportError(BackendError):
    """No response was received: the request never completed."""

    def __init__(self, message: str, code: str = ERR_NETWORK) -> None:
        super().__init__(message, status_code=0, code=code)

    @property
    def is_network_error(self) -> bool:
        return True


class RequestRejected(BackendError):
    """The backend answered, but refused the request (HTTP >= 400 or success=false)."""


class AuthExpired(RequestRejected):
    """The bearer token is missing, invalid or expired (HTTP 401)."""

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message, status_code=401)


def user_message(error: BackendError) -> str:
    """
    Turn a backend error into text suitable for an error banner.

    Args:
        error: Error raised by the backend client.

    Returns:
        A user-facing message.
    """

    if error.is_network_error:
        return error.message

    status_code = error.status_code
    if status_code == 401:
        return "Authentication error: Please log in again."
    if status_code == 403:
        return "You do not have permission to perform this action."
    if status_code in (400, 422):
        return error.message or "Invalid data provided. Please check your inputs."
    if status_code == 404:
        return error.message or "The requested resource was not found."
    if status_code >= 500:
        return "Server error: Please try again later."
    return error.message or "An error occurred. Please try again."
