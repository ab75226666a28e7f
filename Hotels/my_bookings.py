'''
The signed-in user's bookings: time-window filtering and cancellation.
'''
import logging
from datetime import date
from enum import Enum
from typing import Iterable, Optional, Protocol

from pydantic import BaseModel

from Backend.errors import BackendError
from Hotels.booking import Booking, BookingStatus

logger = logging.getLogger(__name__)

NON_CANCELLABLE = (BookingStatus.CANCELLED, BookingStatus.COMPLETED)


class BookingFilter(str, Enum):
    UPCOMING = "upcoming"
    CURRENT = "current"
    PAST = "past"
    ALL = "all"


class BookingSource(Protocol):
    async def list_my_bookings(self, status: Optional[BookingStatus] = None) -> list[Booking]:
        ...

    async def get_booking(self, booking_id: str) -> Booking:
        ...

    async def cancel_booking(self, booking_id: str, reason: Optional[str] = None) -> Booking:
        ...


def matches(booking: Booking, window: BookingFilter, today: date) -> bool:
    '''Whether the booking falls in the time window; status plays no part.'''
    if window == BookingFilter.UPCOMING:
        return booking.check_in > today
    if window == BookingFilter.CURRENT:
        return booking.check_in <= today <= booking.check_out
    if window == BookingFilter.PAST:
        return booking.check_out < today
    return True


def filter_bookings(bookings: Iterable[Booking], window: BookingFilter, today: date) -> list[Booking]:
    return [booking for booking in bookings if matches(booking, window, today)]


def can_cancel(booking: Booking) -> bool:
    return booking.status not in NON_CANCELLABLE


class CancellationSummary(BaseModel):
    """What the confirmation dialog shows before a cancellation is issued."""

    booking_id: str
    room: str
    check_in: date
    check_out: date
    nights: int


class CancellationError(Exception):
    """A cancellation could not be issued or was refused."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class BookingsList:
    """
    Page state of the "my bookings" view.

    Cancellation is a two-phase update: the local record is flipped to
    CANCELLED before the request is issued, then replaced with the server's
    record on success or restored on failure. The full list is re-fetched
    afterwards to reconcile with the server.
    """

    def __init__(self, source: BookingSource):
        self._source = source
        self._bookings: dict[str, Booking] = {}
        self._pending: set[str] = set()

    @property
    def bookings(self) -> list[Booking]:
        return list(self._bookings.values())

    def get(self, booking_id: str) -> Optional[Booking]:
        return self._bookings.get(booking_id)

    def is_pending(self, booking_id: str) -> bool:
        return booking_id in self._pending

    async def fetch(self, booking_id: str) -> Booking:
        """
        Re-read one booking from the server and keep the fresher record.

        While a cancellation of the booking is in flight the local record wins.

        Raises:
            BackendError: The booking could not be fetched or does not exist.
        """
        booking = await self._source.get_booking(booking_id)
        if booking_id in self._pending:
            return self._bookings[booking_id]
        self._bookings[booking.id] = booking
        return booking

    async def load(self, status: Optional[BookingStatus] = None) -> list[Booking]:
        """
        Replace the local list with the server's.

        Raises:
            BackendError: The list could not be fetched; local state is kept.
        """
        bookings = await self._source.list_my_bookings(status)
        self._bookings = {booking.id: booking for booking in bookings}
        return self.bookings

    def visible(self, window: BookingFilter, today: date) -> list[Booking]:
        return filter_bookings(self._bookings.values(), window, today)

    def summary(self, booking_id: str) -> CancellationSummary:
        booking = self._require_cancellable(booking_id)
        room = booking.room_type_name or "Room"
        if booking.room_number:
            room = f"{room} {booking.room_number}"
        return CancellationSummary(
            booking_id=booking.id,
            room=room,
            check_in=booking.check_in,
            check_out=booking.check_out,
            nights=booking.nights,
        )

    async def cancel(self, booking_id: str, reason: Optional[str] = None) -> Booking:
        """
        Cancel a booking the user has confirmed.

        Args:
            booking_id: Identifier of the booking to cancel.
            reason: Optional free-text reason sent with the request.

        Returns:
            The server's record of the cancelled booking.

        Raises:
            CancellationError: Not cancellable, or a cancellation is already in flight.
            BackendError: The backend refused or could not be reached; the
                optimistic change has been reverted.
        """

        if booking_id in self._pending:
            raise CancellationError(f"Cancellation of booking {booking_id} is already in progress.", status_code=409)
        original = self._require_cancellable(booking_id)

        self._pending.add(booking_id)
        self._bookings[booking_id] = original.with_status(BookingStatus.CANCELLED)
        try:
            confirmed = await self._source.cancel_booking(booking_id, reason or None)
        except BackendError:
            self._bookings[booking_id] = original
            logger.exception("Booking cancellation failed", extra={"booking_id": booking_id})
            raise
        finally:
            self._pending.discard(booking_id)

        self._bookings[booking_id] = confirmed
        logger.info("Booking cancelled", extra={"booking_id": booking_id})

        try:
            await self.load()
        except BackendError:
            logger.warning("Could not refresh bookings after cancellation", extra={"booking_id": booking_id})
        return self._bookings.get(booking_id, confirmed)

    def _require_cancellable(self, booking_id: str) -> Booking:
        booking = self._bookings.get(booking_id)
        if booking is None:
            raise CancellationError(f"No booking found with id {booking_id}", status_code=404)
        if not can_cancel(booking):
            raise CancellationError(
                f"Booking {booking_id} is {booking.status.value.lower()} and cannot be cancelled."
            )
        return booking
