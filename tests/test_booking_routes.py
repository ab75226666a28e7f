"""Endpoint tests for the booking wizard."""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any
from urllib.parse import parse_qs, urlsplit
from uuid import uuid4

CHECK_IN = date.today() + timedelta(days=30)
CHECK_OUT = CHECK_IN + timedelta(days=3)


def _open(client, **overrides: Any) -> dict[str, Any]:
    payload = {
        "room_type_id": 1,
        "check_in": CHECK_IN.isoformat(),
        "check_out": CHECK_OUT.isoformat(),
        "guests": 2,
    }
    payload.update(overrides)
    response = client.post("/booking", json=payload)
    assert response.status_code == 201
    return response.json()


def test_open_wizard_returns_draft_totals_and_availability(make_client) -> None:
    client = make_client(authenticated=False)

    body = _open(client)

    assert body["status"] == 201
    assert body["step"] == 1
    assert body["nights"] == 3
    assert body["total_price"] == 44700
    assert body["guest_options"] == [1, 2]
    assert body["draft"]["check_in"] == CHECK_IN.isoformat()
    assert body["availability"]["label"] == "3 rooms available"


def test_signed_in_user_starts_at_guest_info(make_client) -> None:
    client = make_client(authenticated=True)

    assert _open(client)["step"] == 2


def test_open_wizard_for_unknown_room_type(make_client) -> None:
    client = make_client(authenticated=False)

    response = client.post("/booking", json={"room_type_id": 9})

    assert response.status_code == 404


def test_next_reports_validation_errors_without_advancing(make_client) -> None:
    client = make_client(authenticated=False)
    draft_id = _open(client, guests=5)["draft_id"]

    response = client.post(f"/booking/{draft_id}/next")

    assert response.status_code == 200
    body = response.json()
    assert body["step"] == 1
    assert body["errors"] == {"guests": "This room accommodates at most 2 guests"}
    assert body["focus"] == "guests"


def test_anonymous_user_is_redirected_to_login(make_client) -> None:
    client = make_client(authenticated=False)
    draft_id = _open(client)["draft_id"]

    body = client.post(f"/booking/{draft_id}/next").json()

    assert body["step"] == 2
    url = urlsplit(body["redirect"])
    assert url.path == "/login"
    assert parse_qs(url.query)["redirect"][0].startswith("/booking?roomId=1")


def test_full_wizard_hands_over_to_checkout(make_client) -> None:
    client = make_client(authenticated=True)
    draft_id = _open(client)["draft_id"]

    blocked = client.post(f"/booking/{draft_id}/next").json()
    assert blocked["errors"] == {"phone": "Phone number is required"}

    client.patch(f"/booking/{draft_id}", json={"phone": " +1 555 0100 ", "special_requests": "Late arrival"})
    review = client.post(f"/booking/{draft_id}/next").json()
    assert review["step"] == 3
    assert review["draft"]["phone"] == "+1 555 0100"

    checkout = client.post(f"/booking/{draft_id}/next").json()
    params = parse_qs(urlsplit(checkout["checkout_url"]).query)
    assert params["totalPrice"] == ["44700"]
    assert params["specialRequests"] == ["Late arrival"]


def test_back_returns_to_previous_step(make_client) -> None:
    client = make_client(authenticated=True)
    draft_id = _open(client)["draft_id"]

    assert client.post(f"/booking/{draft_id}/back").json()["step"] == 1


def test_date_change_requeries_availability(make_client, backend) -> None:
    client = make_client(authenticated=False)
    draft_id = _open(client, room_type_id=3)["draft_id"]
    selected = client.post(f"/booking/{draft_id}/room-number", json={"room_number": "305"}).json()
    assert selected["draft"]["room_number"] == "305"

    new_check_out = CHECK_OUT + timedelta(days=1)
    body = client.patch(f"/booking/{draft_id}", json={"check_out": new_check_out.isoformat()}).json()

    assert body["nights"] == 4
    assert body["draft"]["room_number"] is None
    assert body["availability"]["result"]["check_out"] == new_check_out.isoformat()
    assert backend.availability_calls[-1] == (3, CHECK_IN, new_check_out)


def test_check_in_after_check_out_moves_check_out(make_client) -> None:
    client = make_client(authenticated=False)
    draft_id = _open(client)["draft_id"]
    later = CHECK_OUT + timedelta(days=5)

    body = client.patch(f"/booking/{draft_id}", json={"check_in": later.isoformat()}).json()

    assert body["draft"]["check_out"] == (later + timedelta(days=1)).isoformat()
    assert body["nights"] == 1


def test_unavailable_room_number_is_a_conflict(make_client) -> None:
    client = make_client(authenticated=False)
    draft_id = _open(client, room_type_id=3)["draft_id"]

    response = client.post(f"/booking/{draft_id}/room-number", json={"room_number": "999"})

    assert response.status_code == 409


def test_invalid_and_unknown_draft_ids(make_client) -> None:
    client = make_client(authenticated=False)

    assert client.get("/booking/not-a-uuid").status_code == 400
    assert client.get(f"/booking/{uuid4()}").status_code == 404


def test_discarded_draft_is_gone(make_client) -> None:
    client = make_client(authenticated=False)
    draft_id = _open(client)["draft_id"]

    assert client.delete(f"/booking/{draft_id}").status_code == 200
    assert client.get(f"/booking/{draft_id}").status_code == 404


def test_signed_in_next_sends_invalid_details_back(make_client) -> None:
    client = make_client(authenticated=True)
    draft_id = _open(client, guests=5, phone="+1 555 0100")["draft_id"]

    body = client.post(f"/booking/{draft_id}/next").json()

    assert body["step"] == 1
    assert body["errors"] == {"guests": "This room accommodates at most 2 guests"}
    assert body["checkout_url"] is None


def test_resume_after_login_restores_the_draft(make_client) -> None:
    anonymous = make_client(authenticated=False)
    draft_id = _open(anonymous, room_type_id=3, phone="+1 555 0100", special_requests="Late arrival")["draft_id"]
    redirect = anonymous.post(f"/booking/{draft_id}/next").json()["redirect"]
    resume = urlsplit(parse_qs(urlsplit(redirect).query)["redirect"][0])

    client = make_client(authenticated=True)
    response = client.post("/booking/resume", json={"query": resume.query})

    assert response.status_code == 201
    body = response.json()
    assert body["step"] == 2
    assert body["room_type"]["id"] == 3
    assert body["draft"]["check_in"] == CHECK_IN.isoformat()
    assert body["draft"]["phone"] == "+1 555 0100"
    assert body["draft"]["special_requests"] == "Late arrival"
    assert body["availability"]["result"]["room_numbers"] == ["301", "305"]
    assert client.get(f"/booking/{body['draft_id']}").status_code == 200


def test_resume_keeps_only_an_available_room_number(make_client) -> None:
    client = make_client(authenticated=True)
    query = f"?roomId=3&checkIn={CHECK_IN.isoformat()}&checkOut={CHECK_OUT.isoformat()}&guests=1"

    kept = client.post("/booking/resume", json={"query": f"{query}&roomNumber=305"}).json()
    dropped = client.post("/booking/resume", json={"query": f"{query}&roomNumber=999"}).json()

    assert kept["draft"]["room_number"] == "305"
    assert dropped["draft"]["room_number"] is None


def test_resume_rejects_an_unreadable_query(make_client) -> None:
    client = make_client(authenticated=True)

    assert client.post("/booking/resume", json={"query": "checkIn=2024-06-01"}).status_code == 400
    assert client.post("/booking/resume", json={"query": "roomId=abc"}).status_code == 400
    assert client.post("/booking/resume", json={"query": "roomId=9"}).status_code == 404
