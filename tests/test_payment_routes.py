"""Endpoint tests for checkout and payment."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

from Backend.errors import RequestRejected

from fakes import build_booking

CHECK_IN = date.today() + timedelta(days=30)
CARD = {
    "card_number": "4111 1111 1111 1111",
    "cardholder_name": "Ada Lovelace",
    "expiry_month": "12",
    "expiry_year": str(date.today().year + 2),
    "cvv": "123",
}


def _checkout(**overrides: Any) -> dict[str, Any]:
    payload = {
        "roomId": 1,
        "checkIn": CHECK_IN.isoformat(),
        "checkOut": (CHECK_IN + timedelta(days=3)).isoformat(),
        "guests": 2,
        "phone": "+1 555 0100",
        "card": CARD,
    }
    payload.update(overrides)
    return payload


def test_payment_requires_a_session(make_client) -> None:
    client = make_client(authenticated=False)

    response = client.post("/payment/checkout", json=_checkout())

    assert response.status_code == 401


def test_checkout_creates_booking_then_pays_total(make_client, backend) -> None:
    client = make_client()

    response = client.post("/payment/checkout", json=_checkout(specialRequests="Late arrival"))

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == 201
    assert body["booking"]["total_price"] == 44700
    assert body["receipt"]["amount"] == 44700
    assert body["receipt"]["currency"] == "USD"
    assert body["receipt"]["transaction_id"] == "mock-tx-1"

    created = backend.created[0]
    assert created["roomTypeId"] == 1
    assert created["checkInDate"] == CHECK_IN.isoformat()
    assert created["guestCount"] == 2
    assert created["specialRequests"] == "Late arrival"
    assert "roomNumber" not in created
    assert backend.payments[0]["bookingId"] == body["booking"]["id"]


def test_invalid_card_is_refused_before_anything_is_sent(make_client, backend) -> None:
    client = make_client()

    response = client.post("/payment/checkout", json=_checkout(card=dict(CARD, card_number="4111111111111112")))

    assert response.status_code == 422
    assert response.json()["detail"]["field"] == "card_number"
    assert backend.created == []
    assert backend.payments == []


def test_missing_card_is_refused(make_client, backend) -> None:
    client = make_client()
    payload = _checkout()
    del payload["card"]

    response = client.post("/payment/checkout", json=payload)

    assert response.status_code == 422
    assert response.json()["detail"]["message"] == "Card number is required"
    assert backend.created == []


def test_checkout_rejects_inverted_dates(make_client) -> None:
    client = make_client()

    response = client.post("/payment/checkout", json=_checkout(checkOut=CHECK_IN.isoformat()))

    assert response.status_code == 400


def test_declined_payment_keeps_the_booking(make_client, backend) -> None:
    backend.payment_error = RequestRejected("Insufficient funds", status_code=400)
    client = make_client()

    response = client.post("/payment/checkout", json=_checkout())

    assert response.status_code == 402
    detail = response.json()["detail"]
    assert detail["title"] == "Payment Failed: Insufficient Funds"
    assert detail["booking_id"] in backend.bookings


def test_pay_existing_booking_with_saved_card(make_client, backend) -> None:
    backend.bookings["b-1"] = build_booking()
    backend.payment_methods = [{"id": "pm-1", "type": "credit_card", "cardBrand": "Visa", "lastFour": "1111"}]
    client = make_client()

    response = client.post("/payment", json={"booking_id": "b-1", "amount": 29800, "saved_card_id": "pm-1"})

    assert response.status_code == 200
    assert response.json()["receipt"]["booking_id"] == "b-1"
    assert backend.payments[0]["paymentMethod"] == "pm-1"


def test_pay_with_unknown_saved_card(make_client, backend) -> None:
    backend.payment_methods = [{"id": "pm-1", "lastFour": "1111"}]
    client = make_client()

    response = client.post("/payment", json={"booking_id": "b-1", "amount": 29800, "saved_card_id": "pm-7"})

    assert response.status_code == 404
    assert backend.payments == []


def test_save_card_during_payment(make_client, backend) -> None:
    client = make_client()

    response = client.post(
        "/payment", json={"booking_id": "b-1", "amount": 29800, "card": CARD, "save_card": True}
    )

    assert response.status_code == 200
    assert response.json()["receipt"]["saved_card"]["last_four"] == "1111"
    listed = client.get("/payment/methods").json()["cards"]
    assert [card["last_four"] for card in listed] == ["1111"]


def test_amount_must_be_positive(make_client) -> None:
    client = make_client()

    response = client.post("/payment", json={"booking_id": "b-1", "amount": 0, "card": CARD})

    assert response.status_code == 422


def test_declined_payment_does_not_save_the_card(make_client, backend) -> None:
    backend.payment_error = RequestRejected("Card declined", status_code=400)
    client = make_client()

    response = client.post(
        "/payment", json={"booking_id": "b-1", "amount": 29800, "card": CARD, "save_card": True}
    )

    assert response.status_code == 402
    assert backend.payment_methods == []


def test_malformed_saved_card_is_skipped(make_client, backend) -> None:
    backend.payment_methods = [
        {"id": "pm-1", "type": "credit_card", "cardBrand": "Visa"},
        {"id": "pm-2", "type": "credit_card", "cardBrand": "Visa", "lastFour": "4242"},
    ]
    client = make_client()

    response = client.get("/payment/methods")

    assert response.status_code == 200
    assert [card["id"] for card in response.json()["cards"]] == ["pm-2"]
