"""Integration tests for stories and site settings."""

import pytest

STORY = {
    "title": "Sunrise at Hampta Pass",
    "excerpt": "Crossing from green Kullu into the barren Lahaul valley.",
    "content": "We left Chika before dawn and reached the pass as the sun came up.",
    "category": "ADVENTURE",
    "tags": ["himalaya", "trek"],
}


@pytest.mark.asyncio
async def test_story_publishing(test_client, admin_headers):
    """Test that drafts stay hidden until published."""
    created = await test_client.post("/api/admin/stories", json=STORY, headers=admin_headers)
    assert created.status_code == 201
    story = created.json()
    assert story["slug"] == "sunrise-at-hampta-pass"
    assert story["isPublished"] is False
    assert story["readTime"] == 1

    assert (await test_client.get("/api/stories")).json()["data"] == []
    assert (await test_client.get("/api/stories/sunrise-at-hampta-pass")).status_code == 404

    published = await test_client.put(
        f"/api/admin/stories/{story['id']}", json={"isPublished": True}, headers=admin_headers
    )
    assert published.status_code == 200
    assert published.json()["publishedAt"] is not None

    listed = await test_client.get("/api/stories", params={"category": "ADVENTURE"})
    assert [s["slug"] for s in listed.json()["data"]] == ["sunrise-at-hampta-pass"]
    assert (await test_client.get("/api/stories", params={"category": "FOOD"})).json()["data"] == []


@pytest.mark.asyncio
async def test_story_views_counted(test_client, admin_headers):
    await test_client.post("/api/admin/stories", json={**STORY, "isPublished": True}, headers=admin_headers)

    first = await test_client.get("/api/stories/sunrise-at-hampta-pass")
    second = await test_client.get("/api/stories/sunrise-at-hampta-pass")

    assert first.json()["views"] == 1
    assert second.json()["views"] == 2


@pytest.mark.asyncio
async def test_story_admin_rules(test_client, admin_headers, customer_headers):
    """Test slug uniqueness, deletion and admin-only access."""
    first = (await test_client.post("/api/admin/stories", json=STORY, headers=admin_headers)).json()
    second = (await test_client.post("/api/admin/stories", json=STORY, headers=admin_headers)).json()
    assert second["slug"] == "sunrise-at-hampta-pass-2"

    invalid = await test_client.post(
        "/api/admin/stories", json={**STORY, "category": "GOSSIP"}, headers=admin_headers
    )
    assert invalid.status_code == 400

    forbidden = await test_client.post("/api/admin/stories", json=STORY, headers=customer_headers)
    assert forbidden.status_code == 403

    deleted = await test_client.delete(f"/api/admin/stories/{first['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    gone = await test_client.put(
        f"/api/admin/stories/{first['id']}", json={"title": "Renamed"}, headers=admin_headers
    )
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_public_settings_hide_gateway(test_client):
    """Test the default settings and that gateway credentials stay private."""
    response = await test_client.get("/api/settings")

    assert response.status_code == 200
    site = response.json()
    assert site["siteName"] == "Adventure Escapes"
    assert site["payment"] == {"currency": "INR"}
    assert site["features"]["wishlist"] is True
    assert "version" not in site


@pytest.mark.asyncio
async def test_admin_settings_update(test_client, admin_headers):
    """Test section merges and version bumps."""
    before = await test_client.get("/api/admin/settings", headers=admin_headers)
    assert before.status_code == 200
    assert before.json()["version"] == "1.0.0"
    assert "razorpay" in before.json()["payment"]

    section = await test_client.put(
        "/api/admin/settings",
        json={"section": "booking", "data": {"advanceBookingDays": 5}},
        headers=admin_headers,
    )
    assert section.status_code == 200
    assert section.json()["version"] == "1.0.1"
    assert section.json()["booking"]["advanceBookingDays"] == 5
    assert section.json()["booking"]["maxParticipantsPerBooking"] == 20

    renamed = await test_client.put(
        "/api/admin/settings", json={"siteName": "Himalayan Escapes"}, headers=admin_headers
    )
    assert renamed.json()["version"] == "1.0.2"
    assert (await test_client.get("/api/settings")).json()["siteName"] == "Himalayan Escapes"


@pytest.mark.asyncio
async def test_admin_settings_rejects_bad_updates(test_client, admin_headers, customer_headers):
    unknown = await test_client.put(
        "/api/admin/settings", json={"section": "secrets", "data": {"a": 1}}, headers=admin_headers
    )
    assert unknown.status_code == 400

    empty = await test_client.put("/api/admin/settings", json={}, headers=admin_headers)
    assert empty.status_code == 400
    assert empty.json()["detail"] == "No settings supplied"

    forbidden = await test_client.put(
        "/api/admin/settings", json={"siteName": "Mine now"}, headers=customer_headers
    )
    assert forbidden.status_code == 403
