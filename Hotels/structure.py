'''
Structure class implementation for Hotels module.
'''
from datetime import date
from typing import Any, Iterable, Literal, Optional

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

SortKey = Literal["price-asc", "price-desc", "capacity"]
SORT_KEYS = ("price-asc", "price-desc", "capacity")
LIMITED_AVAILABILITY = 3

class RoomType(BaseModel):
    """Category of room with a fixed nightly price (minor currency units) and capacity."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id : int
    name : str
    code : str
    description : str = ""
    price_per_night : int
    max_guests : int
    image_url : Optional[str] = None
    amenities : tuple[str, ...] = ()
    display_order : int = 0

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        # optional backend fields arrive as null
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @model_validator(mode="after")
    def validate_structure(self):
        # enforce positive price and capacity
        if self.price_per_night <= 0:
            raise ValueError("Room type price must be a positive integer.")
        if self.max_guests < 1:
            raise ValueError("Room type must accommodate at least one guest.")
        return self

    def to_dict(self) -> dict[str, Any]:
        """
        Serialize the room type using the backend's field names.

        Returns:
            dict[str, Any]: camelCase mapping, amenities as a list.
        """
        payload = self.model_dump(by_alias=True)
        payload["amenities"] = list(self.amenities)
        return payload


def filter_room_types(
    room_types: Iterable[RoomType],
    min_price: Optional[int] = None,
    max_price: Optional[int] = None,
    guests: Optional[int] = None,
    sort_by: Optional[str] = None,
) -> list[RoomType]:
    """
    Apply the browse filters of the rooms page.

    Args:
        room_types: Room types as returned by the backend.
        min_price: Lowest accepted nightly price, inclusive.
        max_price: Highest accepted nightly price, inclusive.
        guests: Party size the room type must accommodate.
        sort_by: One of ``price-asc``, ``price-desc`` or ``capacity``.

    Returns:
        The matching room types, sorted.

    Raises:
        ValueError: If ``sort_by`` is not a known sort key.
    """

    if sort_by is not None and sort_by not in SORT_KEYS:
        raise ValueError(f"Unknown sort key {sort_by!r}; expected one of {', '.join(SORT_KEYS)}")

    selected = [
        room_type
        for room_type in room_types
        if (min_price is None or room_type.price_per_night >= min_price)
        and (max_price is None or room_type.price_per_night <= max_price)
        and (guests is None or room_type.max_guests >= guests)
    ]

    if sort_by == "price-asc":
        selected.sort(key=lambda room_type: room_type.price_per_night)
    elif sort_by == "price-desc":
        selected.sort(key=lambda room_type: room_type.price_per_night, reverse=True)
    elif sort_by == "capacity":
        selected.sort(key=lambda room_type: room_type.max_guests, reverse=True)
    else:
        selected.sort(key=lambda room_type: (room_type.display_order, room_type.id))
    return selected


class AvailabilityResult(BaseModel):
    """
    Availability of one room type for one stay.

    ``state`` is ``unknown`` when the backend could not answer; counts and
    room numbers are then absent and must not be shown as numbers.
    """

    model_config = ConfigDict(frozen=True)

    room_type_id : int
    check_in : date
    check_out : date
    state : Literal["available", "sold_out", "unknown"]
    total : Optional[int] = None
    available : Optional[int] = None
    room_numbers : tuple[str, ...] = ()

    @model_validator(mode="after")
    def validate_counts(self):
        if self.state == "unknown":
            if self.total is not None or self.available is not None or self.room_numbers:
                raise ValueError("Unknown availability cannot carry counts.")
            return self
        if self.available is None or self.total is None:
            raise ValueError("Known availability requires total and available counts.")
        if self.available < 0 or self.total < self.available:
            raise ValueError("Available rooms must be between 0 and the total room count.")
        if (self.state == "sold_out") != (self.available == 0):
            raise ValueError("A result is sold out exactly when no room is available.")
        return self

    @property
    def sold_out(self) -> bool:
        return self.state == "sold_out"

    @property
    def known(self) -> bool:
        return self.state != "unknown"

    @classmethod
    def unknown(cls, room_type_id: int, check_in: date, check_out: date) -> "AvailabilityResult":
        return cls(room_type_id=room_type_id, check_in=check_in, check_out=check_out, state="unknown")

    @classmethod
    def from_payload(
        cls,
        payload: Any,
        room_type: RoomType,
        check_in: date,
        check_out: date,
    ) -> "AvailabilityResult":
        """
        Build a result from the backend's availability payload.

        Accepted keys are ``total``/``totalRooms``,
        ``available``/``availableRooms``/``availableCount``, ``soldOut`` and
        ``roomNumbers``/``availableRoomNumbers``. ``availableRooms`` may also be
        the list of free room objects itself. When no literal room numbers are
        supplied they are synthesized as ``{room_type.id}{sequence:02d}``.

        Raises:
            ValueError: If the payload carries no usable counts.
        """

        if not isinstance(payload, dict):
            raise ValueError("Availability payload must be an object.")

        numbers = payload.get("roomNumbers", payload.get("availableRoomNumbers"))
        if numbers is None and isinstance(payload.get("availableRooms"), list):
            numbers = payload["availableRooms"]
        room_numbers = (
            tuple(str(number.get("roomNumber")) if isinstance(number, dict) else str(number) for number in numbers)
            if numbers is not None
            else None
        )

        available = _first_int(payload, "available", "availableRooms", "availableCount")
        if available is None and room_numbers is not None:
            available = len(room_numbers)
        if available is None:
            raise ValueError("Availability payload has no available-room count.")
        if payload.get("soldOut") is True:
            available = 0
        total = _first_int(payload, "total", "totalRooms")
        if total is None:
            total = available

        if room_numbers is None:
            room_numbers = tuple(f"{room_type.id}{sequence:02d}" for sequence in range(1, available + 1))

        return cls(
            room_type_id=room_type.id,
            check_in=check_in,
            check_out=check_out,
            state="sold_out" if available == 0 else "available",
            total=total,
            available=available,
            room_numbers=room_numbers[:available],
        )


def _first_int(payload: dict[str, Any], *keys: str) -> Optional[int]:
    for key in keys:
        value = payload.get(key)
        if value is not None and not isinstance(value, (list, dict)):
            return int(value)
    return None


def availability_label(result: AvailabilityResult) -> tuple[str, bool]:
    """
    Text shown next to a room type for an availability result.

    Returns:
        (label, limited) where ``limited`` flags 1 to 3 remaining rooms.
    """
    if not result.known:
        return "Availability unknown", False
    available = result.available or 0
    if available == 0:
        return "No rooms available", False
    if available == 1:
        return "Last room!", True
    return f"{available} rooms available", available <= LIMITED_AVAILABILITY
