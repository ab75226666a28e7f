"""Shared API request and response models for the hotel booking frontend."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from Hotels.booking import Booking, BookingDraft
from Hotels.structure import AvailabilityResult, RoomType
from Hotels.wizard import WizardStep
from Payments.card import SavedCard
from Payments.checkout import PaymentReceipt
from Users.user import User


class MessageResponse(BaseModel):
    """Envelope for simple string responses."""

    status: int
    message: str


# --- auth -------------------------------------------------------------------

class LoginFields(BaseModel):
    email: str
    password: str


class RegisterFields(BaseModel):
    email: str
    password: str = Field(min_length=6)
    first_name: str
    last_name: str


class SessionResponse(BaseModel):
    """Envelope for the session state."""

    status: int
    authenticated: bool
    user: Optional[User] = None


# --- rooms ------------------------------------------------------------------

class RoomTypeResponse(BaseModel):
    status: int
    room_type: RoomType


class RoomTypeListResponse(BaseModel):
    """Envelope for responses that include a list of room types."""

    status: int
    room_types: list[RoomType]
    message: Optional[str] = None


class AvailabilityView(BaseModel):
    result: AvailabilityResult
    label: str
    limited: bool


class AvailabilityResponse(BaseModel):
    status: int
    availability: AvailabilityView


# --- booking wizard ---------------------------------------------------------

class DraftFields(BaseModel):
    """Payload accepted when opening or editing a booking draft."""

    check_in: Optional[date] = None
    check_out: Optional[date] = None
    guests: Optional[int] = None
    phone: Optional[str] = None
    special_requests: Optional[str] = None


class NewDraftFields(DraftFields):
    room_type_id: int


class ResumeFields(BaseModel):
    query: str


class RoomNumberFields(BaseModel):
    room_number: str


class WizardResponse(BaseModel):
    """Envelope describing the whole wizard page."""

    status: int
    draft_id: str
    step: WizardStep
    draft: BookingDraft
    room_type: RoomType
    nights: int
    total_price: int
    guest_options: list[int]
    availability: Optional[AvailabilityView] = None
    errors: dict[str, str] = Field(default_factory=dict)
    focus: Optional[str] = None
    redirect: Optional[str] = None
    checkout_url: Optional[str] = None


# --- my bookings ------------------------------------------------------------

class BookingView(BaseModel):
    booking: Booking
    cancellable: bool
    cancelling: bool = False


class BookingListResponse(BaseModel):
    status: int
    filter: str
    bookings: list[BookingView]


class BookingResponse(BaseModel):
    status: int
    booking: BookingView


class CancellationFields(BaseModel):
    """Confirmation dialog submission; nothing is sent unless ``confirm`` is true."""

    confirm: bool = False
    reason: Optional[str] = Field(default=None, max_length=500)


# --- payment ----------------------------------------------------------------

class CardFields(BaseModel):
    """Card inputs as typed; validated by Payments.card."""

    card_number: str = ""
    cardholder_name: str = ""
    expiry_month: str = ""
    expiry_year: str = ""
    cvv: str = ""


class PaymentFields(BaseModel):
    booking_id: str
    amount: int = Field(gt=0)
    card: Optional[CardFields] = None
    save_card: bool = False
    saved_card_id: Optional[str] = None


class CheckoutFields(BaseModel):
    """Checkout navigation parameters plus the payment inputs."""

    model_config = ConfigDict(populate_by_name=True)

    room_id: int = Field(alias="roomId")
    check_in: date = Field(alias="checkIn")
    check_out: date = Field(alias="checkOut")
    guests: int = Field(ge=1)
    phone: str = ""
    special_requests: Optional[str] = Field(default=None, alias="specialRequests")
    room_number: Optional[str] = Field(default=None, alias="roomNumber")
    card: Optional[CardFields] = None
    save_card: bool = False
    saved_card_id: Optional[str] = None


class SavedCardListResponse(BaseModel):
    status: int
    cards: list[SavedCard]


class PaymentResponse(BaseModel):
    status: int
    receipt: PaymentReceipt
    booking: Optional[Booking] = None
