"""Integration tests for authentication endpoints."""

import pytest

from conftest import TEST_PASSWORD, create_user


@pytest.mark.asyncio
async def test_register_and_me(test_client):
    """Test that registration signs the new customer in."""
    response = await test_client.post(
        "/api/auth/register",
        json={"name": "Nisha Menon", "email": "Nisha@Example.com", "password": "summit-2030"},
    )

    assert response.status_code == 201
    token = response.json()
    assert token["tokenType"] == "bearer"
    assert token["expiresIn"] > 0
    assert token["user"]["email"] == "nisha@example.com"
    assert token["user"]["role"] == "USER"
    assert token["user"]["isVerified"] is False

    me = await test_client.get(
        "/api/auth/me", headers={"Authorization": f"Bearer {token['accessToken']}"}
    )
    assert me.status_code == 200
    assert me.json()["name"] == "Nisha Menon"


@pytest.mark.asyncio
async def test_register_duplicate_email(test_client, customer):
    response = await test_client.post(
        "/api/auth/register",
        json={"name": "Asha Again", "email": "asha@example.com", "password": "summit-2030"},
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_register_short_password(test_client):
    response = await test_client.post(
        "/api/auth/register", json={"name": "Nisha", "email": "nisha@example.com", "password": "123"}
    )
    assert response.status_code == 400
    assert response.json()["violations"][0]["path"] == "password"


@pytest.mark.asyncio
async def test_login(test_client, customer):
    """Test password login."""
    ok = await test_client.post("/api/auth/login", json={"email": "asha@example.com", "password": TEST_PASSWORD})
    assert ok.status_code == 200
    assert ok.json()["user"]["id"] == str(customer.id)

    wrong = await test_client.post("/api/auth/login", json={"email": "asha@example.com", "password": "nope"})
    assert wrong.status_code == 401


@pytest.mark.asyncio
async def test_banned_user_cannot_login(test_client, test_session):
    await create_user(test_session, "banned@example.com", is_banned=True)

    response = await test_client.post(
        "/api/auth/login", json={"email": "banned@example.com", "password": TEST_PASSWORD}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_me_rejects_bad_tokens(test_client):
    missing = await test_client.get("/api/auth/me")
    garbage = await test_client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    wrong_scheme = await test_client.get("/api/auth/me", headers={"Authorization": "Basic abc"})

    assert missing.status_code == garbage.status_code == wrong_scheme.status_code == 401


@pytest.mark.asyncio
async def test_otp_verification(test_client, test_session, email_sender):
    """Test that a verification OTP marks the account verified."""
    await create_user(test_session, "new@example.com", is_verified=False)

    sent = await test_client.post("/api/auth/send-otp", json={"email": "new@example.com", "type": "verification"})
    assert sent.status_code == 200
    assert sent.json()["expiresIn"] > 0
    assert email_sender.sent[-1]["purpose"] == "verification"

    otp = email_sender.last_otp("new@example.com")
    wrong = await test_client.post("/api/auth/verify-otp", json={"email": "new@example.com", "otp": "000000x"})
    assert wrong.status_code == 400

    verified = await test_client.post("/api/auth/verify-otp", json={"email": "new@example.com", "otp": otp})
    assert verified.status_code == 200
    assert verified.json()["verified"] is True

    login = await test_client.post("/api/auth/login", json={"email": "new@example.com", "password": TEST_PASSWORD})
    assert login.json()["user"]["isVerified"] is True


@pytest.mark.asyncio
async def test_send_otp_unknown_email(test_client, email_sender):
    response = await test_client.post("/api/auth/send-otp", json={"email": "ghost@example.com"})
    assert response.status_code == 404
    assert email_sender.sent == []


@pytest.mark.asyncio
async def test_password_reset(test_client, customer, email_sender):
    """Test the forgotten password flow."""
    await test_client.post("/api/auth/send-otp", json={"email": "asha@example.com"})
    otp = email_sender.last_otp("asha@example.com")

    reset = await test_client.post(
        "/api/auth/reset-password",
        json={"email": "asha@example.com", "otp": otp, "newPassword": "new-summit-42"},
    )
    assert reset.status_code == 200
    assert reset.json()["message"] == "Password reset successfully"

    old = await test_client.post("/api/auth/login", json={"email": "asha@example.com", "password": TEST_PASSWORD})
    new = await test_client.post("/api/auth/login", json={"email": "asha@example.com", "password": "new-summit-42"})
    assert old.status_code == 401
    assert new.status_code == 200

    # The code is single use
    replay = await test_client.post(
        "/api/auth/reset-password",
        json={"email": "asha@example.com", "otp": otp, "newPassword": "another-one-9"},
    )
    assert replay.status_code == 400
