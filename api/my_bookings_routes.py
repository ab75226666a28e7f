"""My-bookings FastAPI routes: list, filter, detail and confirmed cancellation."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from Backend.deps import get_bookings_list, get_session
from Backend.errors import BackendError
from Hotels.booking import Booking
from Hotels.my_bookings import BookingFilter, BookingsList, CancellationError, CancellationSummary, can_cancel
from Users.session import SessionContext
from utils import today

from .models import BookingListResponse, BookingResponse, BookingView, CancellationFields
from .utils import _raise_http

logger = logging.getLogger(__name__)

# mount api router
my_bookings_router = APIRouter()


def _require_session(session: SessionContext = Depends(get_session)) -> SessionContext:
    if not session.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please log in to view your bookings.",
        )
    return session


def _view(booking: Booking, bookings_list: BookingsList) -> BookingView:
    return BookingView(
        booking=booking,
        cancellable=can_cancel(booking) and not bookings_list.is_pending(booking.id),
        cancelling=bookings_list.is_pending(booking.id),
    )


async def _known_booking(booking_id: str, bookings_list: BookingsList) -> Booking:
    booking = bookings_list.get(booking_id)
    if booking is None:
        try:
            await bookings_list.load()
        except BackendError as exc:
            _raise_http(exc, logger, "list bookings")
        booking = bookings_list.get(booking_id)
    if booking is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No booking found with id {booking_id}",
        )
    return booking


@my_bookings_router.get(
    "",
    response_model=BookingListResponse,
    status_code=status.HTTP_200_OK,
)
async def list_bookings(
    window: BookingFilter = Query(default=BookingFilter.ALL, alias="filter"),
    session: SessionContext = Depends(_require_session),
    bookings_list: BookingsList = Depends(get_bookings_list),
) -> BookingListResponse:
    """
    The user's bookings in one time window.

    Args:
        window: ``upcoming``, ``current``, ``past`` or ``all``.
        session: Active session, required.
        bookings_list: Page state injected via dependency.

    Returns:
        BookingListResponse, each booking flagged with whether it can be cancelled.
    """

    try:
        await bookings_list.load()
    except BackendError as exc:
        _raise_http(exc, logger, "list bookings")

    visible = bookings_list.visible(window, today())
    return BookingListResponse(
        status=status.HTTP_200_OK,
        filter=window.value,
        bookings=[_view(booking, bookings_list) for booking in visible],
    )


@my_bookings_router.get(
    "/{booking_id}",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
)
async def get_booking(
    booking_id: str,
    session: SessionContext = Depends(_require_session),
    bookings_list: BookingsList = Depends(get_bookings_list),
) -> BookingResponse:
    '''One booking, always re-read from the server.'''
    try:
        booking = await bookings_list.fetch(booking_id)
    except BackendError as exc:
        _raise_http(exc, logger, "fetch booking")
    return BookingResponse(status=status.HTTP_200_OK, booking=_view(booking, bookings_list))


@my_bookings_router.get(
    "/{booking_id}/cancel",
    response_model=CancellationSummary,
    status_code=status.HTTP_200_OK,
)
async def cancellation_dialog(
    booking_id: str,
    session: SessionContext = Depends(_require_session),
    bookings_list: BookingsList = Depends(get_bookings_list),
) -> CancellationSummary:
    '''Contents of the confirmation dialog: room, dates, nights.'''
    await _known_booking(booking_id, bookings_list)
    try:
        return bookings_list.summary(booking_id)
    except CancellationError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc


@my_bookings_router.post(
    "/{booking_id}/cancel",
    response_model=BookingResponse,
    status_code=status.HTTP_200_OK,
)
async def cancel_booking(
    booking_id: str,
    fields: CancellationFields,
    session: SessionContext = Depends(_require_session),
    bookings_list: BookingsList = Depends(get_bookings_list),
) -> BookingResponse:
    """
    Cancel a booking after explicit confirmation.

    Returns:
        BookingResponse with the server's record of the cancelled booking.
    """

    if not fields.confirm:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cancellation must be confirmed.",
        )

    await _known_booking(booking_id, bookings_list)
    try:
        booking = await bookings_list.cancel(booking_id, fields.reason)
    except CancellationError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    except BackendError as exc:
        _raise_http(exc, logger, "cancel booking")

    return BookingResponse(status=status.HTTP_200_OK, booking=_view(booking, bookings_list))
