"""Room-type browsing FastAPI routes."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from Backend.client import HotelBackend
from Backend.deps import get_backend
from Backend.errors import BackendError
from Hotels.availability import AvailabilityQuery
from Hotels.structure import AvailabilityResult, availability_label, filter_room_types

from .models import AvailabilityResponse, AvailabilityView, RoomTypeListResponse, RoomTypeResponse
from .utils import _raise_http

logger = logging.getLogger(__name__)

# mount api router
room_router = APIRouter()


def availability_view(result: AvailabilityResult) -> AvailabilityView:
    label, limited = availability_label(result)
    return AvailabilityView(result=result, label=label, limited=limited)


@room_router.get(
    "",
    response_model=RoomTypeListResponse,
    status_code=status.HTTP_200_OK,
)
async def list_room_types(
    min_price: Optional[int] = Query(default=None, ge=0),
    max_price: Optional[int] = Query(default=None, ge=0),
    guests: Optional[int] = Query(default=None, ge=1),
    sort_by: Optional[str] = None,
    backend: HotelBackend = Depends(get_backend),
) -> RoomTypeListResponse:
    """
    Browse room types.

    Args:
        min_price: Lowest nightly price, minor currency units.
        max_price: Highest nightly price, minor currency units.
        guests: Party size the room must accommodate.
        sort_by: ``price-asc``, ``price-desc`` or ``capacity``.
        backend: Backend client injected via dependency.

    Returns:
        RoomTypeListResponse with the matching room types. When no room type
        fits the party size, all room types are returned with a notice.
    """

    try:
        room_types = await backend.list_room_types()
    except BackendError as exc:
        _raise_http(exc, logger, "list room types")

    try:
        selected = filter_room_types(room_types, min_price, max_price, guests, sort_by)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    message = None
    if room_types and not selected and guests is not None:
        message = f"No rooms available for {guests} guests. Showing all available rooms."
        selected = filter_room_types(room_types, sort_by=sort_by)

    logger.info("Room types listed", extra={"count": len(selected)})
    return RoomTypeListResponse(status=status.HTTP_200_OK, room_types=selected, message=message)


@room_router.get(
    "/{room_type_id}",
    response_model=RoomTypeResponse,
    status_code=status.HTTP_200_OK,
)
async def get_room_type(room_type_id: int, backend: HotelBackend = Depends(get_backend)) -> RoomTypeResponse:
    try:
        room_type = await backend.get_room_type(room_type_id)
    except BackendError as exc:
        _raise_http(exc, logger, "fetch room type")
    return RoomTypeResponse(status=status.HTTP_200_OK, room_type=room_type)


@room_router.get(
    "/{room_type_id}/availability",
    response_model=AvailabilityResponse,
    status_code=status.HTTP_200_OK,
)
async def get_availability(
    room_type_id: int,
    check_in: date,
    check_out: date,
    backend: HotelBackend = Depends(get_backend),
) -> AvailabilityResponse:
    """
    Availability of one room type for [check_in, check_out).

    A failed query is reported as unknown availability, never as an error,
    so the room can still be browsed.
    """

    if check_out <= check_in:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="check_out must be after check_in.",
        )

    try:
        room_type = await backend.get_room_type(room_type_id)
    except BackendError as exc:
        _raise_http(exc, logger, "fetch room type")

    query = AvailabilityQuery(backend, room_type)
    result = await query.refresh(check_in, check_out)
    if result is None:
        result = AvailabilityResult.unknown(room_type.id, check_in, check_out)
    return AvailabilityResponse(status=status.HTTP_200_OK, availability=availability_view(result))
