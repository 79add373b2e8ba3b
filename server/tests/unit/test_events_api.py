"""Integration tests for the public catalogue and admin event endpoints."""

import sqlite3

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.dml import Update

from adventure_api.core.config import settings

from conftest import create_event


@pytest.mark.asyncio
async def test_list_events(test_client, trek_event, test_session):
    """Test that only active events are listed with pagination."""
    await create_event(test_session, slug="closed-trek", title="Closed Trek", is_active=False)

    response = await test_client.get("/api/events")

    assert response.status_code == 200
    data = response.json()
    assert [event["slug"] for event in data["data"]] == ["hampta-pass-trek"]
    assert data["pagination"] == {"page": 1, "limit": 12, "total": 1, "pages": 1}
    assert data["data"][0]["displayPrice"] == 8000


@pytest.mark.asyncio
async def test_list_events_filters(test_client, trek_event):
    """Test search and price filters."""
    found = await test_client.get("/api/events", params={"search": "hampta", "category": "TREKKING"})
    assert found.json()["pagination"]["total"] == 1

    missing = await test_client.get("/api/events", params={"max_price": 5000})
    assert missing.json()["data"] == []


@pytest.mark.asyncio
async def test_get_event_by_slug_and_id(test_client, trek_event):
    """Test event retrieval by either reference."""
    by_slug = await test_client.get("/api/events/hampta-pass-trek")
    by_id = await test_client.get(f"/api/events/{trek_event.id}")

    assert by_slug.status_code == 200
    assert by_id.json()["id"] == by_slug.json()["id"] == str(trek_event.id)
    event = by_slug.json()
    assert event["departures"][0]["transportOptions"][0] == {"mode": "AC_TRAIN", "price": 500}
    assert event["availableDates"][0]["availableSeats"] == 6


@pytest.mark.asyncio
async def test_get_missing_event(test_client):
    """Test that an unknown slug is a 404 problem."""
    response = await test_client.get("/api/events/no-such-trek")

    assert response.status_code == 404
    assert response.json()["status"] == 404


@pytest.mark.asyncio
async def test_quote_matches_booking_price(test_client, trek_event):
    """Test the quote for two travellers on a departure with AC train."""
    response = await test_client.get(
        "/api/events/hampta-pass-trek/quote",
        params={"participants": 2, "departure": "Delhi to Delhi", "mode": "AC_TRAIN"},
    )

    assert response.status_code == 200
    quote = response.json()
    assert quote["unitPrice"] == 8000
    assert quote["transportSurcharge"] == 500
    assert quote["totalAmount"] == 16500
    assert quote["currency"] == "INR"


@pytest.mark.asyncio
async def test_quote_rejects_mode_without_departure(test_client, trek_event):
    """Test that transport cannot be priced without a departure."""
    response = await test_client.get("/api/events/hampta-pass-trek/quote", params={"mode": "BUS"})
    assert response.status_code == 400

    unknown = await test_client.get("/api/events/hampta-pass-trek/quote", params={"mode": "HOVERCRAFT"})
    assert unknown.status_code == 400
    assert "violations" in unknown.json()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("day", "modes"),
    [(10, ["AC_TRAIN", "BUS"]), (17, ["FLIGHT"])],
)
async def test_transport_options_per_date(test_client, trek_event, day, modes):
    """Test that a per-day mode list overrides the month's list."""
    response = await test_client.get(
        "/api/events/hampta-pass-trek/transport-options",
        params={"departure": "Delhi to Delhi", "month": "April", "year": 2030, "date": day},
    )

    assert response.status_code == 200
    assert [option["mode"] for option in response.json()["options"]] == modes


@pytest.mark.asyncio
async def test_transport_options_for_unlisted_date(test_client, trek_event):
    """Test that a date the departure does not run is rejected."""
    response = await test_client.get(
        "/api/events/hampta-pass-trek/transport-options",
        params={"departure": "Delhi to Delhi", "month": "April", "year": 2030, "date": 11},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_itinerary_falls_back_to_event(test_client, trek_event):
    """Test departure itinerary override and day ordering."""
    event_days = await test_client.get("/api/events/hampta-pass-trek/itinerary")
    departure_days = await test_client.get(
        "/api/events/hampta-pass-trek/itinerary", params={"departure": "Manali to Manali"}
    )
    delhi_days = await test_client.get(
        "/api/events/hampta-pass-trek/itinerary", params={"departure": "Delhi to Delhi"}
    )

    assert [day["day"] for day in event_days.json()] == [1, 2]
    assert [day["title"] for day in departure_days.json()] == ["Report at Manali", "Jobra to Chika"]
    assert delhi_days.json() == event_days.json()


@pytest.mark.asyncio
async def test_admin_create_event(test_client, admin_headers, sample_event_data):
    """Test event creation generates a slug and display price."""
    response = await test_client.post("/api/admin/events", json=sample_event_data, headers=admin_headers)

    assert response.status_code == 201
    event = response.json()
    assert event["slug"] == "valley-of-flowers-trek"
    assert event["displayPrice"] == 12999
    assert event["availableDates"][0]["dates"] == [14, 21]

    again = await test_client.post("/api/admin/events", json=sample_event_data, headers=admin_headers)
    assert again.json()["slug"] == "valley-of-flowers-trek-2"


@pytest.mark.asyncio
async def test_admin_create_event_invalid(test_client, admin_headers, sample_event_data):
    """Test schema validation on create."""
    response = await test_client.post(
        "/api/admin/events", json={**sample_event_data, "price": -1}, headers=admin_headers
    )

    assert response.status_code == 400
    assert any(v["path"] == "price" for v in response.json()["violations"])


@pytest.mark.asyncio
async def test_admin_update_clears_discount_and_keeps_other_fields(test_client, admin_headers, trek_event):
    """Test that an empty string clears the discount and omitted fields stay put."""
    response = await test_client.put(
        f"/api/admin/events/{trek_event.id}",
        json={"discountedPrice": "", "duration": 6, "createdAt": "ignored"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["discountedPrice"] is None
    assert body["duration"] == "6"
    assert body["price"] == 10000

    event = (await test_client.get("/api/events/hampta-pass-trek")).json()
    assert event["displayPrice"] == 10000
    assert event["title"] == "Hampta Pass Trek"
    assert len(event["departures"]) == 2


@pytest.mark.asyncio
async def test_admin_update_cast_error(test_client, admin_headers, trek_event):
    """Test that an uncastable number is a 400 naming the field."""
    response = await test_client.put(
        f"/api/admin/events/{trek_event.id}", json={"price": "abc"}, headers=admin_headers
    )

    assert response.status_code == 400
    assert response.json()["violations"][0]["path"] == "price"


@pytest.mark.asyncio
async def test_admin_update_duplicate_slug(test_client, admin_headers, trek_event, test_session):
    """Test that a slug collision is reported as a duplicate key."""
    other = await create_event(test_session, slug="other-trek", title="Other Trek")
    other_id = str(other.id)

    response = await test_client.put(
        f"/api/admin/events/{other_id}", json={"slug": "hampta-pass-trek"}, headers=admin_headers
    )

    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "Duplicate key"
    assert body["errors"] == ["slug already exists"]


@pytest.mark.asyncio
async def test_admin_update_missing_event(test_client, admin_headers):
    response = await test_client.put(
        "/api/admin/events/2f1c8f3e-0000-4000-8000-000000000000", json={"title": "x"}, headers=admin_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_admin_delete_event(test_client, admin_headers, trek_event):
    """Test event deletion."""
    response = await test_client.delete(f"/api/admin/events/{trek_event.id}", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert (await test_client.get("/api/events/hampta-pass-trek")).status_code == 404


@pytest.mark.asyncio
async def test_admin_list_includes_inactive(test_client, admin_headers, trek_event, test_session):
    await create_event(test_session, slug="closed-trek", title="Closed Trek", is_active=False)

    response = await test_client.get("/api/admin/events", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["pagination"]["total"] == 2


@pytest.mark.asyncio
async def test_admin_endpoints_require_admin(test_client, customer_headers, trek_event):
    """Test that customers and anonymous callers are turned away."""
    forbidden = await test_client.get("/api/admin/events", headers=customer_headers)
    assert forbidden.status_code == 403

    anonymous = await test_client.delete(f"/api/admin/events/{trek_event.id}")
    assert anonymous.status_code == 401
    assert "authorization" in anonymous.json()["detail"].lower()


@pytest.mark.asyncio
async def test_admin_delete_booked_event_conflicts(
    test_client, admin_headers, customer_headers, flat_event, flat_booking_payload
):
    """Test that an event with bookings cannot be deleted."""
    booked = await test_client.post("/api/bookings", json=flat_booking_payload, headers=customer_headers)
    reference = booked.json()["bookingId"]

    response = await test_client.delete(f"/api/admin/events/{flat_event.id}", headers=admin_headers)

    assert response.status_code == 409
    assert response.json()["conflicting_resource"] == {"type": "booking", "count": 1}
    assert (await test_client.get("/api/events/kedarkantha-trek")).status_code == 200
    booking = await test_client.get(f"/api/bookings/{reference}", headers=customer_headers)
    assert booking.status_code == 200


@pytest.fixture
def failing_event_update(monkeypatch):
    """Make UPDATE statements fail in the database driver."""
    original_execute = AsyncSession.execute

    async def execute(self, statement, *args, **kwargs):
        if isinstance(statement, Update):
            raise OperationalError("UPDATE events", {}, sqlite3.OperationalError("database is locked"))
        return await original_execute(self, statement, *args, **kwargs)

    monkeypatch.setattr(AsyncSession, "execute", execute)


@pytest.mark.asyncio
async def test_admin_update_database_failure(test_client, admin_headers, trek_event, failing_event_update):
    """Test that an unexpected database failure is a 500 carrying the driver diagnostics."""
    response = await test_client.put(
        f"/api/admin/events/{trek_event.id}", json={"title": "Renamed Trek"}, headers=admin_headers
    )

    assert response.status_code == 500
    details = response.json()["details"]
    assert details["name"] == "OperationalError"
    assert details["code"] == OperationalError.code
    assert details["message"] == "database is locked"
    assert "Traceback" in details["stack"]


@pytest.mark.asyncio
async def test_admin_update_database_failure_hides_stack_in_production(
    test_client, admin_headers, trek_event, failing_event_update, monkeypatch
):
    monkeypatch.setattr(settings, "environment", "production")

    response = await test_client.put(
        f"/api/admin/events/{trek_event.id}", json={"title": "Renamed Trek"}, headers=admin_headers
    )

    assert response.status_code == 500
    assert response.json()["details"]["message"] == "database is locked"
    assert response.json()["details"]["stack"] is None
