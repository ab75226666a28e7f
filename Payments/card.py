"""Card details accepted by the payment form, and their client-side checks."""

import re
from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from utils import today as current_day

_DIGITS = re.compile(r"^\d+$")


class CardValidationError(ValueError):
    """A card field failed validation; ``field`` names the input to highlight."""

    def __init__(self, field: str, message: str, title: str):
        super().__init__(message)
        self.field = field
        self.message = message
        self.title = title


def luhn_valid(number: str) -> bool:
    '''Luhn checksum over a string of digits.'''
    total = 0
    for position, char in enumerate(reversed(number)):
        digit = int(char)
        if position % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def validate_card_number(raw: str) -> str:
    """
    Check a card number: digits only, 15 to 19 digits, valid Luhn checksum.

    Args:
        raw: Number as typed, spaces allowed.

    Returns:
        The number with spaces removed.

    Raises:
        CardValidationError: On the first failing check, in the order above.
    """
    number = re.sub(r"\s+", "", raw or "")
    if not _DIGITS.match(number):
        raise CardValidationError("card_number", "Card number should contain only digits", "Invalid Card Number")
    if not 15 <= len(number) <= 19:
        raise CardValidationError("card_number", "Card number should be between 15-19 digits", "Invalid Card Length")
    if not luhn_valid(number):
        raise CardValidationError(
            "card_number",
            "The card number you entered is invalid. Please check and try again.",
            "Invalid Card Number",
        )
    return number


def validate_cardholder_name(name: str) -> str:
    name = (name or "").strip()
    if len(name) < 3:
        raise CardValidationError("cardholder_name", "Cardholder name is required", "Invalid Cardholder Name")
    if len(name) > 100:
        raise CardValidationError("cardholder_name", "Cardholder name is too long", "Invalid Cardholder Name")
    return name


def validate_cvv(cvv: str) -> str:
    cvv = (cvv or "").strip()
    if not _DIGITS.match(cvv) or not 3 <= len(cvv) <= 4:
        raise CardValidationError("cvv", "CVV must be 3 or 4 digits", "Invalid CVV")
    return cvv


def validate_expiry(month: str, year: str, today: Optional[date] = None) -> tuple[int, int]:
    """
    Check an expiry month/year against the current month.

    A two-digit year is read as 20xx. The card is still valid during its
    expiry month.

    Returns:
        (month, four-digit year)

    Raises:
        CardValidationError: Invalid month or year, or an expired card.
    """
    today = today or current_day()
    month, year = (month or "").strip(), (year or "").strip()
    if not _DIGITS.match(month) or not 1 <= int(month) <= 12:
        raise CardValidationError("expiry_month", "Please enter a valid month (1-12)", "Invalid Month")
    if not _DIGITS.match(year) or len(year) not in (2, 4):
        raise CardValidationError("expiry_year", "Please enter a valid year", "Invalid Year")
    expiry_month = int(month)
    expiry_year = int(f"20{year}" if len(year) == 2 else year)
    if (expiry_year, expiry_month) < (today.year, today.month):
        raise CardValidationError(
            "expiry_year", "The card has expired. Please use a different card.", "Card Expired"
        )
    return expiry_month, expiry_year


def card_brand(number: str) -> str:
    number = re.sub(r"\s+", "", number)
    if number.startswith("4"):
        return "Visa"
    if re.match(r"^5[1-5]", number):
        return "MasterCard"
    if re.match(r"^3[47]", number):
        return "American Express"
    if re.match(r"^6(?:011|5)", number):
        return "Discover"
    return "Unknown"


def format_card_number(number: str) -> str:
    '''Group digits by four for display, e.g. "4111 1111 1111 1111".'''
    digits = re.sub(r"\s+", "", number)
    return " ".join(digits[index:index + 4] for index in range(0, len(digits), 4))


class CardDetails(BaseModel):
    """Raw card entry. Never logged and never stored."""

    card_number: str
    cardholder_name: str
    expiry_month: str
    expiry_year: str
    cvv: str

    @field_validator("card_number")
    @classmethod
    def check_card_number(cls, value: str) -> str:
        return validate_card_number(value)

    @field_validator("cardholder_name")
    @classmethod
    def check_cardholder_name(cls, value: str) -> str:
        return validate_cardholder_name(value)

    @field_validator("cvv")
    @classmethod
    def check_cvv(cls, value: str) -> str:
        return validate_cvv(value)

    @model_validator(mode="after")
    def check_expiry(self):
        validate_expiry(self.expiry_month, self.expiry_year)
        return self

    @classmethod
    def from_input(
        cls,
        card_number: str,
        cardholder_name: str,
        expiry_month: str,
        expiry_year: str,
        cvv: str,
    ) -> "CardDetails":
        """
        Validate form input field by field and build the card.

        Raises:
            CardValidationError: For the first invalid field, checked in the
                order number, expiry, cardholder name, CVV.
        """
        validate_card_number(card_number)
        validate_expiry(expiry_month, expiry_year)
        validate_cardholder_name(cardholder_name)
        validate_cvv(cvv)
        return cls(
            card_number=card_number,
            cardholder_name=cardholder_name,
            expiry_month=expiry_month.strip(),
            expiry_year=expiry_year.strip(),
            cvv=cvv,
        )

    @property
    def brand(self) -> str:
        return card_brand(self.card_number)

    @property
    def last_four(self) -> str:
        return self.card_number[-4:]

    def __repr__(self) -> str:
        return f"CardDetails(brand={self.brand!r}, last_four={self.last_four!r})"

    __str__ = __repr__


class SavedCard(BaseModel):
    """Redacted summary of a stored card."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    type: Literal["credit_card", "paypal", "bank_transfer"] = "credit_card"
    brand: str = Field(default="Unknown", validation_alias="cardBrand")
    last_four: str = Field(validation_alias="lastFour")
    expiry: Optional[str] = Field(default=None, validation_alias="expiryDate")
    is_default: bool = Field(default=False, validation_alias="isDefault")

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value):
        return str(value)

    @classmethod
    def summary_of(cls, card: CardDetails, is_default: bool) -> dict:
        '''Payload stored for a card the user asked to save: no number, no CVV.'''
        return {
            "type": "credit_card",
            "cardBrand": card.brand,
            "lastFour": card.last_four,
            "expiryDate": f"{card.expiry_month}/{card.expiry_year}",
            "isDefault": is_default,
        }
