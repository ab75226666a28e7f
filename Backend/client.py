'''
Async client for the hotel booking REST backend.

Every call goes through ``HotelBackend._request``, which attaches the session's
bearer token, unwraps the ``{success, data, error}`` envelope and converts
every failure into a ``BackendError``. Payloads are parsed into the canonical
models here, so no caller ever sees a raw backend shape.
'''
import logging
from datetime import date
from typing import TYPE_CHECKING, Any, Optional

import httpx

from Backend.errors import AuthExpired, BackendError, RequestRejected, TransportError, ERR_TIMEOUT
from Hotels.booking import Booking, BookingStatus
from Hotels.structure import RoomType

if TYPE_CHECKING:
    from Users.session import SessionContext

logger = logging.getLogger(__name__)


class HotelBackend:
    """Backend client"""

    def __init__(
        self,
        base_url: str,
        session: Optional["SessionContext"] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session = session
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict[str, Any]] = None,
        json: Optional[dict[str, Any]] = None,
        token: Optional[str] = None,
    ) -> Any:
        """
        Perform one request and return the unwrapped ``data`` payload.

        Args:
            method: HTTP verb.
            path: Path relative to the backend base URL.
            params: Query parameters; ``None`` values are dropped.
            json: JSON body.
            token: Bearer token overriding the session's one.

        Returns:
            The envelope's ``data`` member, or the whole body when the
            backend answered without an envelope.

        Raises:
            TransportError: No response (network failure or timeout).
            AuthExpired: HTTP 401.
            RequestRejected: HTTP >= 400 or ``success: false``.
        """

        headers = {}
        bearer = token or (self.session.token if self.session is not None else None)
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        if params:
            params = {key: value for key, value in params.items() if value is not None}

        try:
            response = await self._client.request(method, path, params=params, json=json, headers=headers)
        except httpx.TimeoutException as exc:
            logger.warning("Backend request timed out", extra={"method": method, "path": path})
            raise TransportError("Request timed out. Please try again.", code=ERR_TIMEOUT) from exc
        except httpx.HTTPError as exc:
            logger.warning("Backend unreachable", extra={"method": method, "path": path})
            raise TransportError("Network error: Unable to connect to the server") from exc

        try:
            body = response.json() if response.content else None
        except ValueError:
            body = None

        if response.status_code == 401:
            raise AuthExpired(_error_text(body) or "Not authenticated")
        if response.status_code >= 400:
            logger.info(
                "Backend rejected request",
                extra={"method": method, "path": path, "status_code": response.status_code},
            )
            raise RequestRejected(
                _error_text(body) or response.reason_phrase or "Request failed",
                status_code=response.status_code,
                code=body.get("code") if isinstance(body, dict) else None,
                details=body.get("details") if isinstance(body, dict) else None,
            )

        if isinstance(body, dict) and "success" in body:
            if not body["success"]:
                raise RequestRejected(_error_text(body) or "Request failed", status_code=400)
            return body.get("data")
        return body

    # --- room types -------------------------------------------------------

    async def list_room_types(self) -> list[RoomType]:
        data = await self._request("GET", "/room-types")
        return [_parse_room_type(item) for item in _as_list(data)]

    async def get_room_type(self, room_type_id: int) -> RoomType:
        data = await self._request("GET", f"/room-types/{room_type_id}")
        return _parse_room_type(data)

    async def check_availability(self, room_type_id: int, check_in: date, check_out: date) -> dict[str, Any]:
        '''Raw availability payload for [check_in, check_out); parsed by AvailabilityResult.'''
        data = await self._request(
            "GET",
            f"/rooms/{room_type_id}/availability",
            params={"checkInDate": check_in.isoformat(), "checkOutDate": check_out.isoformat()},
        )
        if not isinstance(data, dict):
            raise BackendError("Malformed availability response", status_code=502)
        return data

    # --- bookings ---------------------------------------------------------

    async def create_booking(self, payload: dict[str, Any]) -> Booking:
        data = await self._request("POST", "/bookings", json=payload)
        return _parse_booking(data)

    async def list_my_bookings(self, status: Optional[BookingStatus] = None) -> list[Booking]:
        data = await self._request(
            "GET",
            "/bookings/my-bookings",
            params={"status": status.value if status is not None else None},
        )
        return [_parse_booking(item) for item in _as_list(data)]

    async def get_booking(self, booking_id: str) -> Booking:
        data = await self._request("GET", f"/bookings/{booking_id}")
        return _parse_booking(data)

    async def cancel_booking(self, booking_id: str, reason: Optional[str] = None) -> Booking:
        body = {"reason": reason} if reason else None
        data = await self._request("PATCH", f"/bookings/{booking_id}/cancel", json=body)
        return _parse_booking(data)

    # --- authentication ---------------------------------------------------

    async def login(self, email: str, password: str) -> Any:
        return await self._request("POST", "/auth/login", json={"email": email, "password": password})

    async def register(self, payload: dict[str, Any]) -> Any:
        return await self._request("POST", "/auth/register", json=payload)

    async def me(self, token: Optional[str] = None) -> dict[str, Any]:
        data = await self._request("GET", "/auth/me", token=token)
        if not isinstance(data, dict):
            raise BackendError("Malformed profile response", status_code=502)
        return data

    # --- payments ---------------------------------------------------------

    async def process_payment(self, payload: dict[str, Any]) -> dict[str, Any]:
        data = await self._request("POST", "/payments/process", json=payload)
        return data if isinstance(data, dict) else {}

    async def list_payment_methods(self) -> list[dict[str, Any]]:
        return [item for item in _as_list(await self._request("GET", "/payments/methods")) if isinstance(item, dict)]

    async def save_payment_method(self, payload: dict[str, Any]) -> dict[str, Any]:
        data = await self._request("POST", "/payments/methods", json=payload)
        return data if isinstance(data, dict) else {}


def _error_text(body: Any) -> Optional[str]:
    if isinstance(body, dict):
        message = body.get("error") or body.get("message")
        if isinstance(message, str):
            return message
        if isinstance(message, list):
            return "; ".join(str(part) for part in message)
    return None


def _as_list(data: Any) -> list[Any]:
    if isinstance(data, list):
        return data
    # paginated responses wrap the items
    if isinstance(data, dict) and isinstance(data.get("items"), list):
        return data["items"]
    raise BackendError("Expected a list in the backend response", status_code=502)


def _parse_room_type(data: Any) -> RoomType:
    try:
        return RoomType.model_validate(data)
    except ValueError as exc:
        logger.exception("Malformed room type payload")
        raise BackendError(f"Malformed room type in backend response: {exc}", status_code=502) from exc


def _parse_booking(data: Any) -> Booking:
    try:
        return Booking.model_validate(data)
    except ValueError as exc:
        logger.exception("Malformed booking payload")
        raise BackendError(f"Malformed booking in backend response: {exc}", status_code=502) from exc
