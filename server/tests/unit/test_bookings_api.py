"""Integration tests for booking endpoints."""

import json

import pytest
from sqlalchemy import select

from adventure_api.models.booking import Booking, BookingStatus, PaymentStatus

from conftest import bearer


async def _book(client, headers, payload, **extra_headers):
    response = await client.post("/api/bookings", json=payload, headers={**headers, **extra_headers})
    assert response.status_code == 201, response.text
    return response.json()


async def _delhi_seats(client) -> int:
    event = (await client.get("/api/events/hampta-pass-trek")).json()
    return event["departures"][0]["availableDates"][0]["availableSeats"]


async def _mark_paid(session, reference: str, payment_id: str = "pay_test_1") -> None:
    booking = (await session.execute(select(Booking).where(Booking.reference == reference))).scalar_one()
    booking.status = BookingStatus.CONFIRMED
    booking.payment_status = PaymentStatus.SUCCESS
    booking.razorpay_payment_id = payment_id
    await session.commit()


@pytest.mark.asyncio
async def test_create_booking(test_client, customer_headers, departure_booking_payload):
    """Test booking submission on a departure with transport."""
    data = await _book(test_client, customer_headers, departure_booking_payload)

    assert data["success"] is True
    booking = data["booking"]
    assert data["bookingId"] == booking["bookingId"]
    assert booking["bookingId"].startswith("AE")
    assert booking["status"] == "PENDING"
    assert booking["date"] == "2030-04-10"
    assert booking["selectedMonth"] == "April"
    assert booking["selectedTransportMode"] == "AC_TRAIN"
    assert booking["finalAmount"] == 16500
    assert booking["discountAmount"] == 4000
    assert booking["paymentInfo"]["paymentStatus"] == "PENDING"
    assert booking["participants"][1]["emergencyContact"]["relationship"] == "Brother"
    assert await _delhi_seats(test_client) == 6


@pytest.mark.asyncio
async def test_create_booking_total_mismatch(test_client, customer_headers, departure_booking_payload):
    """Test that a stale client total is rejected."""
    response = await test_client.post(
        "/api/bookings",
        json={**departure_booking_payload, "totalAmount": 16000},
        headers=customer_headers,
    )

    assert response.status_code == 400
    assert response.json()["errors"] == ["Expected totalAmount 16500.0, got 16000.0"]
    assert await _delhi_seats(test_client) == 8


@pytest.mark.asyncio
async def test_create_booking_invalid_participant(test_client, customer_headers, flat_booking_payload):
    """Test participant validation."""
    payload = json.loads(json.dumps(flat_booking_payload))
    payload["participants"][0]["email"] = "not-an-email"
    del payload["participants"][1]["emergencyContact"]

    response = await test_client.post("/api/bookings", json=payload, headers=customer_headers)

    assert response.status_code == 400
    paths = {violation["path"] for violation in response.json()["violations"]}
    assert "participants.0.email" in paths
    assert "participants.1.emergencyContact" in paths


@pytest.mark.asyncio
async def test_create_booking_requires_login(test_client, flat_booking_payload):
    response = await test_client.post("/api/bookings", json=flat_booking_payload)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_booking_idempotent_replay(test_client, customer_headers, departure_booking_payload):
    """Test that a retried submission returns the first booking without reserving twice."""
    first = await _book(test_client, customer_headers, departure_booking_payload, **{"Idempotency-Key": "k-1"})
    second = await _book(test_client, customer_headers, departure_booking_payload, **{"Idempotency-Key": "k-1"})

    assert first["bookingId"] == second["bookingId"]
    assert await _delhi_seats(test_client) == 6

    mismatch = await test_client.post(
        "/api/bookings",
        json={**departure_booking_payload, "selectedTransportMode": "BUS", "totalAmount": 16000},
        headers={**customer_headers, "Idempotency-Key": "k-1"},
    )
    assert mismatch.status_code == 422
    assert mismatch.json()["code"] == "IDEMPOTENCY_KEY_MISMATCH"


@pytest.mark.asyncio
async def test_idempotent_client_errors_replay(test_client, customer_headers, departure_booking_payload):
    """Test that a rejected submission is answered the same way on retry."""
    payload = {**departure_booking_payload, "totalAmount": 1}
    headers = {**customer_headers, "Idempotency-Key": "k-2"}

    first = await test_client.post("/api/bookings", json=payload, headers=headers)
    second = await test_client.post("/api/bookings", json=payload, headers=headers)

    assert first.status_code == second.status_code == 400
    assert first.json() == second.json()


@pytest.mark.asyncio
async def test_booking_visibility(
    test_client, customer_headers, admin_headers, other_customer, flat_booking_payload
):
    """Test that only the owner and admins can read a booking."""
    reference = (await _book(test_client, customer_headers, flat_booking_payload))["bookingId"]

    assert (await test_client.get(f"/api/bookings/{reference}", headers=customer_headers)).status_code == 200
    assert (await test_client.get(f"/api/bookings/{reference}", headers=admin_headers)).status_code == 200
    denied = await test_client.get(f"/api/bookings/{reference}", headers=bearer(other_customer))
    assert denied.status_code == 403
    missing = await test_client.get("/api/bookings/AENOPE", headers=customer_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_customer_can_only_cancel(test_client, customer_headers, departure_booking_payload):
    """Test customer status changes."""
    reference = (await _book(test_client, customer_headers, departure_booking_payload))["bookingId"]

    confirm = await test_client.put(
        f"/api/bookings/{reference}", json={"status": "CONFIRMED"}, headers=customer_headers
    )
    assert confirm.status_code == 403

    notes = await test_client.put(
        f"/api/bookings/{reference}", json={"adminNotes": "VIP"}, headers=customer_headers
    )
    assert notes.status_code == 403

    cancel = await test_client.put(
        f"/api/bookings/{reference}",
        json={"status": "CANCELLED", "cancellationReason": "Exams"},
        headers=customer_headers,
    )
    assert cancel.status_code == 200
    assert cancel.json()["status"] == "CANCELLED"
    assert cancel.json()["cancellationReason"] == "Exams"
    assert await _delhi_seats(test_client) == 8


@pytest.mark.asyncio
async def test_admin_transitions(test_client, customer_headers, admin_headers, flat_booking_payload):
    """Test admin status changes follow the lifecycle."""
    reference = (await _book(test_client, customer_headers, flat_booking_payload))["bookingId"]

    confirmed = await test_client.put(
        f"/api/bookings/{reference}",
        json={"status": "CONFIRMED", "adminNotes": "Paid at the office"},
        headers=admin_headers,
    )
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "CONFIRMED"
    assert confirmed.json()["adminNotes"] == "Paid at the office"

    backwards = await test_client.put(
        f"/api/bookings/{reference}", json={"status": "PENDING"}, headers=admin_headers
    )
    assert backwards.status_code == 400
    problem = backwards.json()
    assert problem["code"] == "INVALID_TRANSITION"
    assert problem["current_status"] == "CONFIRMED"
    assert problem["requested_status"] == "PENDING"


@pytest.mark.asyncio
async def test_delete_cancels_once(test_client, customer_headers, flat_booking_payload):
    """Test cancellation through DELETE."""
    reference = (await _book(test_client, customer_headers, flat_booking_payload))["bookingId"]

    response = await test_client.delete(
        f"/api/bookings/{reference}", params={"reason": "Injury"}, headers=customer_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "CANCELLED"
    assert response.json()["cancelledAt"] is not None

    again = await test_client.delete(f"/api/bookings/{reference}", headers=customer_headers)
    assert again.status_code == 400


@pytest.mark.asyncio
async def test_invoice(test_client, customer_headers, departure_booking_payload):
    """Test the printable invoice."""
    reference = (await _book(test_client, customer_headers, departure_booking_payload))["bookingId"]

    response = await test_client.get(f"/api/bookings/{reference}/invoice", headers=customer_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert reference in response.text
    assert "Adventure Escapes" in response.text
    assert "Meera Iyer" in response.text


@pytest.mark.asyncio
async def test_admin_list_bookings(test_client, customer_headers, admin_headers, flat_booking_payload):
    await _book(test_client, customer_headers, flat_booking_payload)

    response = await test_client.get("/api/bookings", params={"status": "PENDING"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["pagination"]["total"] == 1

    assert (await test_client.get("/api/bookings", headers=customer_headers)).status_code == 403


@pytest.mark.asyncio
async def test_export_csv(test_client, customer_headers, admin_headers, trek_event, departure_booking_payload):
    """Test CSV exports per scope."""
    reference = (await _book(test_client, customer_headers, departure_booking_payload))["bookingId"]

    everything = await test_client.get("/api/admin/bookings/export", headers=admin_headers)
    assert everything.status_code == 200
    assert everything.headers["content-type"].startswith("text/csv")
    assert 'filename="bookings-all.csv"' in everything.headers["content-disposition"]
    lines = everything.text.strip().splitlines()
    assert lines[0].startswith("Booking ID,Customer Name,Email,Event")
    assert lines[1].startswith(f"{reference},Asha Rao,asha@example.com,Hampta Pass Trek,2,16500.0")

    roster = await test_client.get(
        "/api/admin/bookings/export",
        params={"scope": "date", "eventId": str(trek_event.id), "date": "2030-04-10"},
        headers=admin_headers,
    )
    assert len(roster.text.strip().splitlines()) == 3

    incomplete = await test_client.get(
        "/api/admin/bookings/export", params={"scope": "departure"}, headers=admin_headers
    )
    assert incomplete.status_code == 400


@pytest.mark.asyncio
async def test_refund_through_gateway(
    test_client, test_session, customer_headers, admin_headers, departure_booking_payload, gateway_requests
):
    """Test a full refund of a paid booking."""
    reference = (await _book(test_client, customer_headers, departure_booking_payload))["bookingId"]
    await _mark_paid(test_session, reference)

    response = await test_client.post(
        f"/api/admin/bookings/{reference}/refund",
        json={"reason": "Route closed by landslide"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    booking = response.json()
    assert booking["status"] == "REFUNDED"
    assert booking["paymentInfo"]["paymentStatus"] == "REFUNDED"
    assert booking["paymentInfo"]["refundId"] == "rfnd_pay_test_1"
    assert booking["paymentInfo"]["refundAmount"] == 16500

    [request] = gateway_requests
    assert request.url.path == "/v1/payments/pay_test_1/refund"
    assert json.loads(request.content)["amount"] == 1650000
    assert await _delhi_seats(test_client) == 8


@pytest.mark.asyncio
async def test_refund_rules(test_client, test_session, customer_headers, admin_headers, flat_booking_payload):
    """Test that unpaid bookings and oversized refunds are rejected."""
    reference = (await _book(test_client, customer_headers, flat_booking_payload))["bookingId"]

    unpaid = await test_client.post(f"/api/admin/bookings/{reference}/refund", json={}, headers=admin_headers)
    assert unpaid.status_code == 400
    assert unpaid.json()["code"] == "INVALID_TRANSITION"

    await _mark_paid(test_session, reference)
    too_much = await test_client.post(
        f"/api/admin/bookings/{reference}/refund", json={"amount": 999999}, headers=admin_headers
    )
    assert too_much.status_code == 400


@pytest.mark.asyncio
async def test_sold_out_date(test_client, customer_headers, flat_booking_payload):
    """Test that a date cannot be booked past its tracked seats."""
    for _ in range(3):
        await _book(test_client, customer_headers, flat_booking_payload)

    response = await test_client.post("/api/bookings", json=flat_booking_payload, headers=customer_headers)

    assert response.status_code == 409
    problem = response.json()
    assert problem["code"] == "SEATS_UNAVAILABLE"
    assert problem["available_seats"] == 0
    assert problem["requested_seats"] == 2


@pytest.mark.asyncio
async def test_flat_date_requires_departure_when_event_has_departures(
    test_client, customer_headers, departure_booking_payload
):
    """Test that an event with departures cannot be booked off its flat calendar."""
    payload = {
        key: value
        for key, value in departure_booking_payload.items()
        if key not in ("selectedDeparture", "selectedTransportMode", "totalAmount")
    }
    payload["date"] = "2030-03-05"

    response = await test_client.post("/api/bookings", json=payload, headers=customer_headers)

    assert response.status_code == 400
    assert "departure" in response.json()["detail"].lower()
    assert await _delhi_seats(test_client) == 8
