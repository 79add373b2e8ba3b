"""Integration tests for the user dashboard and testimonial moderation."""

import pytest
from sqlalchemy import select

from adventure_api.models.booking import Booking, BookingStatus

from conftest import bearer

REVIEW = {"rating": 5, "title": "Worth every step", "review": "Clear skies at the pass and a brilliant trek lead."}


async def _confirmed_booking(client, session, headers, payload) -> str:
    response = await client.post("/api/bookings", json=payload, headers=headers)
    reference = response.json()["bookingId"]
    booking = (await session.execute(select(Booking).where(Booking.reference == reference))).scalar_one()
    booking.status = BookingStatus.CONFIRMED
    await session.commit()
    return reference


@pytest.mark.asyncio
async def test_profile(test_client, customer_headers):
    response = await test_client.get("/api/user/profile", headers=customer_headers)

    assert response.status_code == 200
    profile = response.json()
    assert profile["email"] == "asha@example.com"
    assert profile["role"] == "USER"
    assert profile["preferences"] == {}


@pytest.mark.asyncio
async def test_update_profile(test_client, customer_headers):
    """Test profile edits; email cannot change here."""
    response = await test_client.put(
        "/api/user/profile",
        json={
            "phone": "9000000000",
            "email": "hijack@example.com",
            "address": {"city": "Pune", "zipCode": "411001"},
            "emergencyContact": {"name": "Ravi Rao", "phone": "9876500000", "relationship": "Brother"},
            "preferences": {"newsletter": True},
        },
        headers=customer_headers,
    )

    assert response.status_code == 200
    profile = response.json()
    assert profile["email"] == "asha@example.com"
    assert profile["phone"] == "9000000000"
    assert profile["address"]["zipCode"] == "411001"
    assert profile["emergencyContact"]["relationship"] == "Brother"
    assert profile["preferences"] == {"newsletter": True}


@pytest.mark.asyncio
async def test_my_bookings(test_client, customer_headers, other_customer, flat_booking_payload):
    """Test that the dashboard lists only the caller's bookings."""
    await test_client.post("/api/bookings", json=flat_booking_payload, headers=customer_headers)

    mine = await test_client.get("/api/user/bookings", headers=customer_headers)
    theirs = await test_client.get("/api/user/bookings", headers=bearer(other_customer))

    assert len(mine.json()) == 1
    assert mine.json()[0]["eventTitle"] == "Kedarkantha Trek"
    assert theirs.json() == []


@pytest.mark.asyncio
async def test_wishlist(test_client, customer_headers, trek_event):
    """Test saving and removing events."""
    added = await test_client.post("/api/user/wishlist/hampta-pass-trek", headers=customer_headers)
    assert added.status_code == 200
    assert [event["slug"] for event in added.json()] == ["hampta-pass-trek"]

    twice = await test_client.post(f"/api/user/wishlist/{trek_event.id}", headers=customer_headers)
    assert len(twice.json()) == 1

    listed = await test_client.get("/api/user/wishlist", headers=customer_headers)
    assert listed.json()[0]["displayPrice"] == 8000

    removed = await test_client.delete("/api/user/wishlist/hampta-pass-trek", headers=customer_headers)
    assert removed.json() == []

    missing = await test_client.post("/api/user/wishlist/no-such-trek", headers=customer_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_review_requires_a_trip(test_client, customer_headers, flat_event, flat_booking_payload):
    """Test that only travellers with a confirmed booking can review."""
    response = await test_client.post(
        "/api/user/reviews", json={**REVIEW, "eventId": str(flat_event.id)}, headers=customer_headers
    )
    assert response.status_code == 400

    # A pending booking is not enough
    await test_client.post("/api/bookings", json=flat_booking_payload, headers=customer_headers)
    pending = await test_client.post(
        "/api/user/reviews", json={**REVIEW, "eventId": str(flat_event.id)}, headers=customer_headers
    )
    assert pending.status_code == 400


@pytest.mark.asyncio
async def test_review_moderation(
    test_client, test_session, customer_headers, admin_headers, flat_event, flat_booking_payload
):
    """Test review submission, duplicate rejection and approval."""
    await _confirmed_booking(test_client, test_session, customer_headers, flat_booking_payload)

    created = await test_client.post(
        "/api/user/reviews", json={**REVIEW, "eventId": "kedarkantha-trek"}, headers=customer_headers
    )
    assert created.status_code == 201
    review = created.json()
    assert review["approved"] is False
    assert review["customerName"] == "Asha Rao"
    assert review["eventName"] == "Kedarkantha Trek"

    duplicate = await test_client.post(
        "/api/user/reviews", json={**REVIEW, "eventId": "kedarkantha-trek"}, headers=customer_headers
    )
    assert duplicate.status_code == 409

    assert (await test_client.get("/api/testimonials")).json() == []
    mine = await test_client.get("/api/user/reviews", headers=customer_headers)
    assert [r["id"] for r in mine.json()] == [review["id"]]

    pending = await test_client.get("/api/admin/testimonials", params={"status": "pending"}, headers=admin_headers)
    assert pending.json()["pagination"]["total"] == 1

    approved = await test_client.put(
        f"/api/admin/testimonials/{review['id']}",
        json={"approved": True, "adminResponse": "Thank you, Asha!"},
        headers=admin_headers,
    )
    assert approved.status_code == 200
    assert approved.json()["adminResponse"] == "Thank you, Asha!"

    public = (await test_client.get("/api/testimonials")).json()
    assert [t["id"] for t in public] == [review["id"]]


@pytest.mark.asyncio
async def test_manual_testimonials(test_client, admin_headers, customer_headers):
    """Test admin-entered testimonials and deletion."""
    payload = {
        "customerName": "Walk-in Guest",
        "customerEmail": "Guest@Example.com",
        "eventName": "Kedarkantha Winter Trek",
        "rating": 4,
        "review": "Snow all the way to the summit.",
        "isFeatured": True,
    }

    created = await test_client.post("/api/admin/testimonials", json=payload, headers=admin_headers)
    assert created.status_code == 201
    testimonial = created.json()
    assert testimonial["customerEmail"] == "guest@example.com"
    assert testimonial["approved"] is True

    featured = await test_client.get("/api/testimonials", params={"featured": True})
    assert [t["id"] for t in featured.json()] == [testimonial["id"]]

    forbidden = await test_client.post("/api/admin/testimonials", json=payload, headers=customer_headers)
    assert forbidden.status_code == 403

    deleted = await test_client.delete(f"/api/admin/testimonials/{testimonial['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    assert (await test_client.get("/api/testimonials")).json() == []

    gone = await test_client.delete(f"/api/admin/testimonials/{testimonial['id']}", headers=admin_headers)
    assert gone.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["name", "preferences"])
async def test_update_profile_rejects_null_required_fields(test_client, customer_headers, field):
    """Test that nulling a required column is a 400 and leaves the profile intact."""
    response = await test_client.put("/api/user/profile", json={field: None}, headers=customer_headers)

    assert response.status_code == 400
    assert [v["path"] for v in response.json()["violations"]] == [field]

    profile = await test_client.get("/api/user/profile", headers=customer_headers)
    assert profile.status_code == 200
    assert profile.json()["name"] == "Asha Rao"
