'''
Mock payment form: submits a validated card, or a saved card reference, for a booking.
'''
import logging
from typing import Any, Optional, Protocol

from pydantic import BaseModel

from Backend.errors import BackendError
from Payments.card import CardDetails, CardValidationError, SavedCard

logger = logging.getLogger(__name__)

GENERIC_PAYMENT_ERROR = "There was a problem processing your payment. Please try again."

# (substring, title, message), checked in order
PAYMENT_ERROR_MESSAGES = (
    (
        "insufficient funds",
        "Payment Failed: Insufficient Funds",
        "Your card has insufficient funds for this transaction.",
    ),
    (
        "declined",
        "Payment Failed: Card Declined",
        "Your card was declined. Please try a different payment method.",
    ),
    (
        "invalid",
        "Payment Failed: Invalid Information",
        "Your payment information is invalid. Please check your card details.",
    ),
)


class PaymentSource(Protocol):
    async def process_payment(self, payload: dict[str, Any]) -> dict[str, Any]:
        ...

    async def list_payment_methods(self) -> list[dict[str, Any]]:
        ...

    async def save_payment_method(self, payload: dict[str, Any]) -> dict[str, Any]:
        ...


def describe_payment_error(message: Optional[str]) -> tuple[str, str]:
    '''Map a payment failure message to a (title, message) pair for the user.'''
    lowered = (message or "").lower()
    for needle, title, text in PAYMENT_ERROR_MESSAGES:
        if needle in lowered:
            return title, text
    return "Payment Error", message or GENERIC_PAYMENT_ERROR


async def fetch_saved_cards(source: PaymentSource) -> list[SavedCard]:
    '''Saved credit cards; an empty list when they cannot be fetched.'''
    try:
        methods = await source.list_payment_methods()
    except BackendError:
        logger.exception("Error fetching saved payment methods")
        return []
    cards = []
    for method in methods:
        if method.get("type", "credit_card") != "credit_card":
            continue
        try:
            cards.append(SavedCard.model_validate(method))
        except ValueError:
            logger.warning("Skipping malformed saved card", extra={"method_id": method.get("id")})
    return cards


class PaymentFailed(Exception):
    """The payment was submitted and refused, or could not be submitted."""

    def __init__(self, title: str, message: str, status_code: int = 402):
        super().__init__(message)
        self.title = title
        self.message = message
        self.status_code = status_code


class PaymentReceipt(BaseModel):
    booking_id: str
    amount: int
    currency: str
    transaction_id: Optional[str] = None
    status: str = "completed"
    saved_card: Optional[SavedCard] = None


class PaymentForm:
    """
    Payment step for one booking.

    A saved card replaces the raw card fields entirely: only its reference
    is submitted.
    """

    def __init__(self, source: PaymentSource, booking_id: str, amount: int, currency: str = "USD"):
        if amount <= 0:
            raise ValueError("Payment amount must be a positive integer.")
        self._source = source
        self.booking_id = booking_id
        self.amount = amount
        self.currency = currency
        self.saved_cards: list[SavedCard] = []
        self.processing = False

    async def load_saved_cards(self) -> list[SavedCard]:
        self.saved_cards = await fetch_saved_cards(self._source)
        return self.saved_cards

    async def submit(
        self,
        card: Optional[CardDetails] = None,
        save_card: bool = False,
        saved_card_id: Optional[str] = None,
    ) -> PaymentReceipt:
        """
        Submit the payment.

        Args:
            card: Validated raw card; ignored when ``saved_card_id`` is given.
            save_card: Store a redacted summary of ``card`` for reuse.
            saved_card_id: Reference to a previously saved card.

        Returns:
            PaymentReceipt for the processed payment.

        Raises:
            CardValidationError: No card and no saved card were supplied.
            PaymentFailed: Submission refused or failed, with a user-facing title.
        """

        if self.processing:
            raise PaymentFailed("Payment In Progress", "This payment is already being processed.", status_code=409)

        payload: dict[str, Any] = {
            "bookingId": self.booking_id,
            "amount": self.amount,
            "currency": self.currency,
            "paymentMethod": "credit_card",
        }
        saved: Optional[SavedCard] = None

        if saved_card_id:
            if self.saved_cards and saved_card_id not in {saved_card.id for saved_card in self.saved_cards}:
                raise PaymentFailed("Payment Error", f"Saved card {saved_card_id} was not found.", status_code=404)
            payload["paymentMethod"] = saved_card_id
        else:
            if card is None:
                raise CardValidationError("card_number", "Card number is required", "Invalid Card Number")
            payload["cardDetails"] = {
                "cardNumber": card.card_number,
                "cardholderName": card.cardholder_name,
                "expiryMonth": card.expiry_month,
                "expiryYear": card.expiry_year,
                "cvv": card.cvv,
            }

        self.processing = True
        try:
            response = await self._source.process_payment(payload)
            if card is not None and save_card and not saved_card_id:
                saved = await self._save_card(card)
        except BackendError as exc:
            title, message = describe_payment_error(exc.message)
            logger.warning("Payment failed", extra={"booking_id": self.booking_id, "title": title})
            raise PaymentFailed(title, message, status_code=502 if exc.is_network_error else 402) from exc
        finally:
            self.processing = False

        logger.info("Payment submitted", extra={"booking_id": self.booking_id, "amount": self.amount})
        return PaymentReceipt(
            booking_id=self.booking_id,
            amount=self.amount,
            currency=self.currency,
            transaction_id=response.get("transactionId") or response.get("transaction_id"),
            status=str(response.get("status", "completed")).lower(),
            saved_card=saved,
        )

    async def _save_card(self, card: CardDetails) -> Optional[SavedCard]:
        # a card that cannot be saved must not block the payment
        try:
            stored = await self._source.save_payment_method(
                SavedCard.summary_of(card, is_default=not self.saved_cards)
            )
            saved = SavedCard.model_validate(stored)
        except (BackendError, ValueError):
            logger.exception("Error saving card", extra={"booking_id": self.booking_id})
            return None
        self.saved_cards.append(saved)
        return saved
