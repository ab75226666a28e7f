"""Booking wizard FastAPI routes; one open wizard per draft id."""

import logging
from typing import Optional
from urllib.parse import parse_qsl
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, status

from Backend.client import HotelBackend
from Backend.deps import get_backend, get_drafts, get_session
from Backend.errors import BackendError
from Hotels.availability import AvailabilityQuery
from Hotels.booking import BookingDraft
from Hotels.wizard import StepOutcome, WizardController
from Users.session import SessionContext

from .models import DraftFields, MessageResponse, NewDraftFields, ResumeFields, RoomNumberFields, WizardResponse
from .room_routes import availability_view
from .utils import _parse_id, _raise_http

logger = logging.getLogger(__name__)

DRAFT = "draft"

# mount api router
booking_router = APIRouter()


def _get_wizard(draft_id: str, drafts: dict[str, WizardController]) -> WizardController:
    guid = _parse_id(draft_id, logger, DRAFT)
    wizard = drafts.get(str(guid))
    if wizard is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No booking draft found with id {draft_id}",
        )
    return wizard


def _wizard_response(
    draft_id: str,
    wizard: WizardController,
    outcome: Optional[StepOutcome] = None,
    status_code: int = status.HTTP_200_OK,
) -> WizardResponse:
    result = wizard.availability_result
    return WizardResponse(
        status=status_code,
        draft_id=draft_id,
        step=wizard.step,
        draft=wizard.draft,
        room_type=wizard.room_type,
        nights=wizard.nights,
        total_price=wizard.total_price,
        guest_options=wizard.guest_options(),
        availability=availability_view(result) if result is not None else None,
        errors=outcome.errors if outcome else {},
        focus=outcome.focus if outcome else None,
        redirect=outcome.redirect if outcome else None,
        checkout_url=outcome.checkout_url if outcome else None,
    )


async def _new_wizard(draft: BookingDraft, backend: HotelBackend, session: SessionContext) -> WizardController:
    try:
        room_type = await backend.get_room_type(draft.room_type_id)
    except BackendError as exc:
        _raise_http(exc, logger, "fetch room type")
    return WizardController(draft, room_type, session, AvailabilityQuery(backend, room_type))


def _register(wizard: WizardController, drafts: dict[str, WizardController]) -> str:
    draft_id = str(uuid4())
    drafts[draft_id] = wizard
    logger.info("Booking draft opened", extra={"draft_id": draft_id, "room_type_id": wizard.room_type.id})
    return draft_id


def _apply_fields(wizard: WizardController, fields: DraftFields) -> None:
    if fields.guests is not None:
        wizard.draft.guests = fields.guests
    if fields.phone is not None:
        wizard.draft.phone = fields.phone.strip()
    if fields.special_requests is not None:
        wizard.draft.special_requests = fields.special_requests


@booking_router.post(
    "",
    response_model=WizardResponse,
    status_code=status.HTTP_201_CREATED,
)
async def open_wizard(
    fields: NewDraftFields,
    backend: HotelBackend = Depends(get_backend),
    session: SessionContext = Depends(get_session),
    drafts: dict[str, WizardController] = Depends(get_drafts),
) -> WizardResponse:
    """
    Start a booking for one room type.

    Args:
        fields: Room type and any already chosen dates, guests and contact details.
        backend: Backend client injected via dependency.
        session: Session context injected via dependency.
        drafts: Open wizards injected via dependency.

    Returns:
        WizardResponse for the new draft, at Details (or GuestInfo when signed in).
    """

    wizard = await _new_wizard(BookingDraft(room_type_id=fields.room_type_id), backend, session)
    _apply_fields(wizard, fields)
    await wizard.change_dates(fields.check_in, fields.check_out)

    draft_id = _register(wizard, drafts)
    return _wizard_response(draft_id, wizard, status_code=status.HTTP_201_CREATED)


@booking_router.post(
    "/resume",
    response_model=WizardResponse,
    status_code=status.HTTP_201_CREATED,
)
async def resume_wizard(
    fields: ResumeFields,
    backend: HotelBackend = Depends(get_backend),
    session: SessionContext = Depends(get_session),
    drafts: dict[str, WizardController] = Depends(get_drafts),
) -> WizardResponse:
    """
    Reopen a booking from the query string it was serialized to, typically
    the ``redirect`` target handed to the login page.

    A room number carried in the query is kept only while it is still
    available for the dates.
    """

    try:
        draft = BookingDraft.from_params(dict(parse_qsl(fields.query.lstrip("?"))))
    except (KeyError, ValueError) as exc:
        logger.warning("Unreadable booking resume query", extra={"query": fields.query})
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="The booking link is incomplete or malformed.",
        ) from exc

    room_number, draft.room_number = draft.room_number, None
    wizard = await _new_wizard(draft, backend, session)
    await wizard.change_dates()
    if room_number:
        try:
            wizard.select_room_number(room_number)
        except ValueError:
            logger.info("Resumed room number no longer available", extra={"room_number": room_number})

    draft_id = _register(wizard, drafts)
    return _wizard_response(draft_id, wizard, status_code=status.HTTP_201_CREATED)


@booking_router.get(
    "/{draft_id}",
    response_model=WizardResponse,
    status_code=status.HTTP_200_OK,
)
async def get_wizard(
    draft_id: str,
    drafts: dict[str, WizardController] = Depends(get_drafts),
) -> WizardResponse:
    wizard = _get_wizard(draft_id, drafts)
    return _wizard_response(draft_id, wizard)


@booking_router.patch(
    "/{draft_id}",
    response_model=WizardResponse,
    status_code=status.HTTP_200_OK,
)
async def update_wizard(
    draft_id: str,
    fields: DraftFields,
    drafts: dict[str, WizardController] = Depends(get_drafts),
) -> WizardResponse:
    """
    Edit draft fields. A date change re-queries availability and clears the
    selected room number.
    """

    wizard = _get_wizard(draft_id, drafts)
    _apply_fields(wizard, fields)
    if fields.check_in is not None or fields.check_out is not None:
        await wizard.change_dates(fields.check_in, fields.check_out)
    return _wizard_response(draft_id, wizard)


@booking_router.post(
    "/{draft_id}/room-number",
    response_model=WizardResponse,
    status_code=status.HTTP_200_OK,
)
async def select_room_number(
    draft_id: str,
    fields: RoomNumberFields,
    drafts: dict[str, WizardController] = Depends(get_drafts),
) -> WizardResponse:
    wizard = _get_wizard(draft_id, drafts)
    try:
        wizard.select_room_number(fields.room_number)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _wizard_response(draft_id, wizard)


@booking_router.post(
    "/{draft_id}/next",
    response_model=WizardResponse,
    status_code=status.HTTP_200_OK,
)
async def next_step(
    draft_id: str,
    drafts: dict[str, WizardController] = Depends(get_drafts),
) -> WizardResponse:
    """
    Attempt the forward transition.

    Validation failures are not HTTP errors: the response keeps the step and
    carries ``errors`` and the ``focus`` field.
    """

    wizard = _get_wizard(draft_id, drafts)
    outcome = wizard.advance()
    if outcome.errors:
        logger.info("Wizard step blocked", extra={"draft_id": draft_id, "fields": list(outcome.errors)})
    return _wizard_response(draft_id, wizard, outcome)


@booking_router.post(
    "/{draft_id}/back",
    response_model=WizardResponse,
    status_code=status.HTTP_200_OK,
)
async def previous_step(
    draft_id: str,
    drafts: dict[str, WizardController] = Depends(get_drafts),
) -> WizardResponse:
    wizard = _get_wizard(draft_id, drafts)
    return _wizard_response(draft_id, wizard, wizard.back())


@booking_router.delete(
    "/{draft_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
)
async def discard_wizard(
    draft_id: str,
    drafts: dict[str, WizardController] = Depends(get_drafts),
) -> MessageResponse:
    wizard = _get_wizard(draft_id, drafts)
    wizard.close()
    drafts.pop(str(_parse_id(draft_id, logger, DRAFT)), None)
    logger.info("Booking draft discarded", extra={"draft_id": draft_id})
    return MessageResponse(status=status.HTTP_200_OK, message=f"Booking draft {draft_id} discarded")
