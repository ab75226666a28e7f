"""Payment FastAPI routes (mock payment gateway behind the backend)."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from Backend.client import HotelBackend
from Backend.deps import get_backend, get_session
from Backend.errors import BackendError
from Hotels.booking import Booking
from Payments.card import CardDetails, CardValidationError
from Payments.checkout import PaymentFailed, PaymentForm, fetch_saved_cards
from Users.session import SessionContext

from .models import CardFields, CheckoutFields, PaymentFields, PaymentResponse, SavedCardListResponse
from .utils import _raise_http

logger = logging.getLogger(__name__)

# mount api router
payment_router = APIRouter()


def _require_session(session: SessionContext = Depends(get_session)) -> SessionContext:
    if not session.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please log in to complete your payment.",
        )
    return session


def _card(fields: Optional[CardFields], saved_card_id: Optional[str]) -> Optional[CardDetails]:
    """Validate typed card fields; a saved card makes them irrelevant."""
    if saved_card_id:
        return None
    if fields is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"field": "card_number", "title": "Invalid Card Number", "message": "Card number is required"},
        )
    try:
        return CardDetails.from_input(**fields.model_dump())
    except CardValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"field": exc.field, "title": exc.title, "message": exc.message},
        ) from exc


async def _pay(
    form: PaymentForm,
    card: Optional[CardDetails],
    save_card: bool,
    saved_card_id: Optional[str],
    booking: Optional[Booking] = None,
) -> PaymentResponse:
    if saved_card_id or save_card:
        await form.load_saved_cards()
    try:
        receipt = await form.submit(card, save_card=save_card, saved_card_id=saved_card_id)
    except CardValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"field": exc.field, "title": exc.title, "message": exc.message},
        ) from exc
    except PaymentFailed as exc:
        detail = {"title": exc.title, "message": exc.message}
        if booking is not None:
            # the booking stays as the server created it; the user may retry
            detail["booking_id"] = booking.id
        raise HTTPException(status_code=exc.status_code, detail=detail) from exc
    return PaymentResponse(status=status.HTTP_200_OK, receipt=receipt, booking=booking)


@payment_router.get(
    "/methods",
    response_model=SavedCardListResponse,
    status_code=status.HTTP_200_OK,
)
async def list_saved_cards(
    session: SessionContext = Depends(_require_session),
    backend: HotelBackend = Depends(get_backend),
) -> SavedCardListResponse:
    cards = await fetch_saved_cards(backend)
    return SavedCardListResponse(status=status.HTTP_200_OK, cards=cards)


@payment_router.post(
    "",
    response_model=PaymentResponse,
    status_code=status.HTTP_200_OK,
)
async def pay_booking(
    fields: PaymentFields,
    request: Request,
    session: SessionContext = Depends(_require_session),
    backend: HotelBackend = Depends(get_backend),
) -> PaymentResponse:
    """
    Pay for an existing booking.

    Args:
        fields: Booking, amount and either card fields or a saved card id.
        request: Incoming request, used to read the configured currency.
        session: Active session, required.
        backend: Backend client injected via dependency.

    Returns:
        PaymentResponse wrapping the receipt.
    """

    card = _card(fields.card, fields.saved_card_id)
    form = PaymentForm(backend, fields.booking_id, fields.amount, request.app.state.settings.currency)
    return await _pay(form, card, fields.save_card, fields.saved_card_id)


@payment_router.post(
    "/checkout",
    response_model=PaymentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def checkout(
    fields: CheckoutFields,
    request: Request,
    session: SessionContext = Depends(_require_session),
    backend: HotelBackend = Depends(get_backend),
) -> PaymentResponse:
    """
    Create the booking handed over by the wizard, then pay for it.

    Card fields are validated before anything is sent. Booking creation and
    payment are two independent calls: a failed payment leaves the booking
    in whatever state the server gave it.
    """

    if fields.check_out <= fields.check_in:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Check-out date must be after check-in date",
        )
    card = _card(fields.card, fields.saved_card_id)

    payload = {
        "roomTypeId": fields.room_id,
        "checkInDate": fields.check_in.isoformat(),
        "checkOutDate": fields.check_out.isoformat(),
        "guestCount": fields.guests,
        "phone": fields.phone,
        "specialRequests": fields.special_requests,
        "roomNumber": fields.room_number,
    }
    try:
        booking = await backend.create_booking({key: value for key, value in payload.items() if value is not None})
    except BackendError as exc:
        _raise_http(exc, logger, "create booking")
    logger.info("Booking created", extra={"booking_id": booking.id, "status": booking.status.value})

    if booking.total_price <= 0:
        logger.error("Created booking has no price", extra={"booking_id": booking.id})
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Booking {booking.id} was created without a price; payment was not attempted.",
        )
    form = PaymentForm(backend, booking.id, booking.total_price, request.app.state.settings.currency)
    response = await _pay(form, card, fields.save_card, fields.saved_card_id, booking)
    response.status = status.HTTP_201_CREATED
    return response
