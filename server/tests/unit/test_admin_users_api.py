"""Integration tests for admin user management and the audit log."""

import pytest

from conftest import TEST_PASSWORD


async def _act(client, headers, user_id, **body):
    return await client.post(f"/api/admin/users/{user_id}/actions", json=body, headers=headers)


@pytest.mark.asyncio
async def test_list_users(test_client, admin_headers, customer, other_customer, flat_booking_payload, customer_headers):
    """Test search, status filter and booking counts."""
    await test_client.post("/api/bookings", json=flat_booking_payload, headers=customer_headers)

    everyone = await test_client.get("/api/admin/users", headers=admin_headers)
    assert everyone.status_code == 200
    assert everyone.json()["pagination"]["total"] == 3

    found = await test_client.get("/api/admin/users", params={"search": "asha"}, headers=admin_headers)
    [user] = found.json()["data"]
    assert user["id"] == str(customer.id)
    assert user["bookingCount"] == 1
    assert user["isBanned"] is False

    admins = await test_client.get("/api/admin/users", params={"role": "ADMIN"}, headers=admin_headers)
    assert [u["email"] for u in admins.json()["data"]] == ["ops@example.com"]

    unknown = await test_client.get("/api/admin/users", params={"status": "sleeping"}, headers=admin_headers)
    assert unknown.status_code == 400


@pytest.mark.asyncio
async def test_get_user(test_client, admin_headers, customer):
    response = await test_client.get(f"/api/admin/users/{customer.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["email"] == "asha@example.com"

    missing = await test_client.get("/api/admin/users/not-a-uuid", headers=admin_headers)
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_ban_and_unban(test_client, admin_headers, customer, customer_headers):
    """Test that a ban locks the account out until lifted."""
    no_reason = await _act(test_client, admin_headers, customer.id, action="ban")
    assert no_reason.status_code == 400

    banned = await _act(test_client, admin_headers, customer.id, action="ban", reason="Chargeback fraud")
    assert banned.status_code == 200
    assert banned.json()["message"] == "User banned successfully"
    assert banned.json()["user"]["banReason"] == "Chargeback fraud"

    locked_out = await test_client.get("/api/user/profile", headers=customer_headers)
    assert locked_out.status_code == 403
    login = await test_client.post("/api/auth/login", json={"email": "asha@example.com", "password": TEST_PASSWORD})
    assert login.status_code == 403

    unbanned = await _act(test_client, admin_headers, customer.id, action="unban")
    assert unbanned.json()["user"]["isBanned"] is False
    assert (await test_client.get("/api/user/profile", headers=customer_headers)).status_code == 200


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("body", "field", "expected"),
    [
        ({"action": "verify"}, "isVerified", True),
        ({"action": "unverify"}, "isVerified", False),
        ({"action": "changeRole", "role": "GUIDE"}, "role", "GUIDE"),
        ({"action": "resetPassword"}, "passwordResetRequired", True),
        ({"action": "deactivate"}, "isActive", False),
        ({"action": "activate"}, "isActive", True),
    ],
)
async def test_user_actions(test_client, admin_headers, customer, body, field, expected):
    response = await _act(test_client, admin_headers, customer.id, **body)

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert response.json()["user"][field] == expected


@pytest.mark.asyncio
async def test_change_role_requires_role(test_client, admin_headers, customer):
    response = await _act(test_client, admin_headers, customer.id, action="changeRole")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_admin_cannot_act_on_self(test_client, admin_headers, admin):
    response = await _act(test_client, admin_headers, admin.id, action="deactivate")

    assert response.status_code == 400
    assert "own account" in response.json()["detail"]


@pytest.mark.asyncio
async def test_audit_log_records_actions(test_client, admin_headers, customer, customer_headers):
    """Test that each admin action leaves an audit entry."""
    await _act(test_client, admin_headers, customer.id, action="verify")

    response = await test_client.get(
        "/api/admin/audit-logs",
        params={"targetType": "user", "targetId": str(customer.id)},
        headers=admin_headers,
    )

    assert response.status_code == 200
    [entry] = response.json()["data"]
    assert entry["action"] == "user.verify"
    assert entry["adminEmail"] == "ops@example.com"
    assert entry["details"]["before"]["is_verified"] is True

    forbidden = await test_client.get("/api/admin/audit-logs", headers=customer_headers)
    assert forbidden.status_code == 403
