from uuid import UUID
from fastapi import HTTPException, status
from logging import Logger
from typing import Literal, NoReturn

from Backend.errors import AuthExpired, BackendError, user_message

entity_type : Literal['draft', 'booking', 'room_type', 'undefined_entity'] = 'undefined_entity'

def _parse_id(
        id: str,
        logger: Logger,
        entity: Literal['draft', 'booking', 'room_type', 'undefined_entity'] = entity_type
    ) -> UUID:
    """Validate and normalize a GUID identifier for any entity among:
    - draft
    - booking
    - room type
    - undefined entity.
    """

    try:
        return UUID(id, version=4)
    except ValueError as exc:
        logger.warning(f"Invalid GUID supplied for {entity}_id", extra={f"{entity}_id": id})
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"The supplied {entity} id is not a valid UUID4.",
        ) from exc

def _raise_http(exc: BackendError, logger: Logger, action: str) -> NoReturn:
    """Convert a backend failure into the HTTP error returned to the page.

    - no response from the backend: 502, retryable
    - expired session: 401
    - rejection: the backend's status, 400 when it sent none
    """

    if exc.is_network_error:
        logger.warning(f"Backend unreachable while trying to {action}", extra={"code": exc.code})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=user_message(exc)) from exc
    if isinstance(exc, AuthExpired):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=user_message(exc)) from exc
    status_code = exc.status_code if 400 <= exc.status_code < 600 else status.HTTP_400_BAD_REQUEST
    logger.info(f"Backend refused to {action}", extra={"status_code": exc.status_code})
    raise HTTPException(status_code=status_code, detail=user_message(exc)) from exc
