from enum import Enum
from typing import Any, Optional
from datetime import date, datetime
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator
from utils import count_nights, next_day, to_day, validate_timestamps


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class Booking(BaseModel):
    """
    Server-owned booking, read-only for the frontend.

    Legacy field spellings (``bookingId``, ``booking_id``, ``numberOfGuests``,
    lowercase statuses, numeric ids) are mapped here, once, when the backend
    payload is parsed.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id : str = Field(validation_alias=AliasChoices("id", "bookingId", "booking_id"))
    user_id : Optional[str] = Field(default=None, validation_alias=AliasChoices("userId", "user_id"))
    room_type_id : Optional[str] = Field(default=None, validation_alias=AliasChoices("roomTypeId", "room_type_id"))
    room_type_name : Optional[str] = Field(default=None, validation_alias=AliasChoices("roomTypeName", "room_type_name"))
    room_number : Optional[str] = Field(default=None, validation_alias=AliasChoices("roomNumber", "room_number"))
    check_in : date = Field(validation_alias=AliasChoices("checkInDate", "checkIn", "check_in"))
    check_out : date = Field(validation_alias=AliasChoices("checkOutDate", "checkOut", "check_out"))
    guest_count : int = Field(default=1, validation_alias=AliasChoices("guestCount", "numberOfGuests", "guest_count"))
    total_price : int = Field(default=0, validation_alias=AliasChoices("totalPrice", "total_price"))
    status : BookingStatus
    special_requests : Optional[str] = Field(default=None, validation_alias=AliasChoices("specialRequests", "special_requests"))
    created_at : Optional[datetime] = Field(default=None, validation_alias=AliasChoices("createdAt", "created_at"))
    updated_at : Optional[datetime] = Field(default=None, validation_alias=AliasChoices("updatedAt", "updated_at"))

    @model_validator(mode="before")
    @classmethod
    def normalize_backend_payload(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        payload = dict(data)
        # nested room/roomType objects carry the display name and number
        room = payload.get("room")
        if isinstance(room, dict):
            payload.setdefault("roomNumber", room.get("roomNumber"))
            room_type = room.get("roomType")
            if isinstance(room_type, dict):
                payload.setdefault("roomTypeName", room_type.get("name"))
        for key in ("id", "bookingId", "booking_id", "userId", "user_id", "roomTypeId", "room_type_id", "roomNumber", "room_number"):
            if isinstance(payload.get(key), int):
                payload[key] = str(payload[key])
        for key in ("checkInDate", "checkIn", "check_in", "checkOutDate", "checkOut", "check_out"):
            if isinstance(payload.get(key), (str, datetime)):
                payload[key] = to_day(payload[key])
        if isinstance(payload.get("status"), str):
            payload["status"] = payload["status"].upper()
        return payload

    @model_validator(mode="after")
    def validate_dates(self):
        # enforce chronological consistency
        if self.check_out <= self.check_in:
            raise ValueError("check_out must be strictly greater than check_in")
        if self.created_at is not None and self.updated_at is not None:
            try:
                validate_timestamps(self.created_at, self.updated_at)
            except ValueError as e:
                raise ValueError(f"Booking {self.id} has invalid timestamps: {e}")
        return self

    @property
    def nights(self) -> int:
        return count_nights(self.check_in, self.check_out)

    def with_status(self, new_status: BookingStatus) -> "Booking":
        ''' Copy of the booking carrying another status. '''
        return self.model_copy(update={"status": new_status})


class BookingDraft(BaseModel):
    """
    Unsaved booking accumulated by the wizard.

    Check-out is always strictly after check-in: any change that would break
    this moves check-out to the day after check-in. Any date change clears the
    selected room number.
    """

    room_type_id : int
    check_in : Optional[date] = None
    check_out : Optional[date] = None
    guests : int = 1
    phone : str = ""
    special_requests : str = ""
    room_number : Optional[str] = None

    @model_validator(mode="after")
    def advance_check_out(self):
        if self.check_in is not None and (self.check_out is None or self.check_out <= self.check_in):
            self.check_out = next_day(self.check_in)
        return self

    def set_check_in(self, day: Optional[date]) -> None:
        self.check_in = day
        if day is not None and (self.check_out is None or self.check_out <= day):
            self.check_out = next_day(day)
        self.room_number = None

    def set_check_out(self, day: Optional[date]) -> None:
        if day is not None and self.check_in is not None and day <= self.check_in:
            day = next_day(self.check_in)
        self.check_out = day
        self.room_number = None

    def nights(self) -> int:
        '''Nights of the stay, floored to one; zero while a date is missing.'''
        if self.check_in is None or self.check_out is None:
            return 0
        return count_nights(self.check_in, self.check_out)

    def total_price(self, price_per_night: int) -> int:
        return price_per_night * self.nights()

    def to_params(self) -> dict[str, str]:
        """
        Serialize the draft as navigation parameters.

        Returns:
            dict[str, str]: Only the fields that are set.
        """
        params = {
            "roomId": str(self.room_type_id),
            "checkIn": self.check_in.isoformat() if self.check_in else None,
            "checkOut": self.check_out.isoformat() if self.check_out else None,
            "guests": str(self.guests),
            "phone": self.phone or None,
            "specialRequests": self.special_requests or None,
            "roomNumber": self.room_number,
        }
        return {key: value for key, value in params.items() if value is not None}

    @classmethod
    def from_params(cls, params: dict[str, Any]) -> "BookingDraft":
        '''Rebuild a draft from navigation parameters, e.g. when resuming after login.'''
        return cls(
            room_type_id=int(params["roomId"]),
            check_in=to_day(params.get("checkIn")),
            check_out=to_day(params.get("checkOut")),
            guests=int(params.get("guests") or 1),
            phone=params.get("phone") or "",
            special_requests=params.get("specialRequests") or "",
            room_number=params.get("roomNumber"),
        )
