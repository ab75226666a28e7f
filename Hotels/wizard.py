"""Booking wizard: Details -> GuestInfo -> Review -> checkout."""

import logging
from datetime import date
from enum import IntEnum
from typing import Callable, Optional, Protocol
from urllib.parse import urlencode

from pydantic import BaseModel, Field

from Hotels.availability import AvailabilityQuery
from Hotels.booking import BookingDraft
from Hotels.structure import AvailabilityResult, RoomType
from utils import today as current_day

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
BOOKING_PATH = "/booking"
CHECKOUT_PATH = "/payment"


class WizardStep(IntEnum):
    DETAILS = 1
    GUEST_INFO = 2
    REVIEW = 3


class Authenticated(Protocol):
    @property
    def is_authenticated(self) -> bool:
        ...


class StepOutcome(BaseModel):
    """Result of a transition attempt."""

    step: WizardStep
    advanced: bool = False
    errors: dict[str, str] = Field(default_factory=dict)
    focus: Optional[str] = None
    redirect: Optional[str] = None
    checkout_url: Optional[str] = None


class WizardController:
    """
    Sequences the booking steps over one BookingDraft.

    Forward transitions are gated on the active step's validation; a failed
    validation leaves the step unchanged and names the field to focus.
    Signed-in users start at GuestInfo.
    """

    def __init__(
        self,
        draft: BookingDraft,
        room_type: RoomType,
        session: Authenticated,
        availability: Optional[AvailabilityQuery] = None,
        clock: Callable[[], date] = current_day,
    ):
        if draft.room_type_id != room_type.id:
            raise ValueError("Draft and room type refer to different room types.")
        self.draft = draft
        self.room_type = room_type
        self.session = session
        self.availability = availability
        self._clock = clock
        self.step = WizardStep.GUEST_INFO if session.is_authenticated else WizardStep.DETAILS

    # --- derived values ---------------------------------------------------

    @property
    def nights(self) -> int:
        return self.draft.nights()

    @property
    def total_price(self) -> int:
        return self.draft.total_price(self.room_type.price_per_night)

    def guest_options(self) -> list[int]:
        return list(range(1, self.room_type.max_guests + 1))

    @property
    def availability_result(self) -> Optional[AvailabilityResult]:
        return self.availability.result if self.availability is not None else None

    # --- edits ------------------------------------------------------------

    async def change_dates(self, check_in: Optional[date] = None, check_out: Optional[date] = None) -> None:
        """Apply new dates to the draft and re-query availability for them."""
        if check_in is not None:
            self.draft.set_check_in(check_in)
        if check_out is not None:
            self.draft.set_check_out(check_out)
        if self.availability is not None and self.draft.check_in and self.draft.check_out:
            await self.availability.refresh(self.draft.check_in, self.draft.check_out)

    def select_room_number(self, room_number: str) -> None:
        if self.availability is None:
            raise ValueError("Room numbers are only offered once availability is known.")
        self.availability.select_room_number(room_number)
        self.draft.room_number = room_number

    # --- validation -------------------------------------------------------

    def validate_details(self) -> dict[str, str]:
        errors: dict[str, str] = {}
        draft = self.draft
        if draft.check_in is None:
            errors["check_in"] = "Check-in date is required"
        elif draft.check_in < self._clock():
            errors["check_in"] = "Check-in date cannot be in the past"
        if draft.check_out is None:
            errors["check_out"] = "Check-out date is required"
        elif draft.check_in is not None and draft.check_out <= draft.check_in:
            errors["check_out"] = "Check-out date must be after check-in date"
        if draft.guests < 1:
            errors["guests"] = "At least 1 guest is required"
        elif draft.guests > self.room_type.max_guests:
            errors["guests"] = f"This room accommodates at most {self.room_type.max_guests} guests"
        return errors

    def validate_guest_info(self) -> dict[str, str]:
        if not self.draft.phone.strip():
            return {"phone": "Phone number is required"}
        return {}

    # --- transitions ------------------------------------------------------

    def advance(self) -> StepOutcome:
        """Attempt the forward transition out of the active step."""

        if self.step == WizardStep.DETAILS:
            errors = self.validate_details()
            if errors:
                return self._blocked(errors)
            self.step = WizardStep.GUEST_INFO
            return StepOutcome(step=self.step, advanced=True, redirect=self.login_redirect())

        if self.step == WizardStep.GUEST_INFO:
            errors = self.validate_details()
            if errors:
                return self._send_back(WizardStep.DETAILS, errors)
            redirect = self.login_redirect()
            if redirect is not None:
                return StepOutcome(step=self.step, redirect=redirect)
            errors = self.validate_guest_info()
            if errors:
                return self._blocked(errors)
            self.step = WizardStep.REVIEW
            return StepOutcome(step=self.step, advanced=True)

        errors = self.validate_details()
        if errors:
            return self._send_back(WizardStep.DETAILS, errors)
        errors = self.validate_guest_info()
        if errors:
            return self._send_back(WizardStep.GUEST_INFO, errors)
        logger.info(
            "Booking draft handed to checkout",
            extra={"room_type_id": self.room_type.id, "nights": self.nights},
        )
        return StepOutcome(step=self.step, advanced=True, checkout_url=self.checkout_url())

    def back(self) -> StepOutcome:
        if self.step > WizardStep.DETAILS:
            self.step = WizardStep(self.step - 1)
        return StepOutcome(step=self.step)

    def _blocked(self, errors: dict[str, str]) -> StepOutcome:
        return StepOutcome(step=self.step, errors=errors, focus=next(iter(errors)))

    def _send_back(self, step: WizardStep, errors: dict[str, str]) -> StepOutcome:
        """Return to the earliest step whose fields no longer validate."""
        self.step = step
        return self._blocked(errors)

    # --- navigation -------------------------------------------------------

    def login_redirect(self) -> Optional[str]:
        """Login URL resuming this draft, or None when a session is active."""
        if self.session.is_authenticated:
            return None
        resume = urlencode(self.draft.to_params())
        return f"{LOGIN_PATH}?{urlencode({'redirect': f'{BOOKING_PATH}?{resume}'})}"

    def checkout_params(self) -> dict[str, str]:
        params = self.draft.to_params()
        params["totalPrice"] = str(self.total_price)
        return params

    def checkout_url(self) -> str:
        return f"{CHECKOUT_PATH}?{urlencode(self.checkout_params())}"

    def close(self) -> None:
        if self.availability is not None:
            self.availability.close()
