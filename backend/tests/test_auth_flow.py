"""
Integration tests for the phone/OTP authentication flow.

Verifies Send OTP -> Verify OTP -> authenticated call -> Logout.
"""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import select

import backend.app.core.redis_client as redis_client_module
from backend.app.api.v1.endpoints.auth import normalize_indian_phone
from backend.app.core.jwt import create_access_token, decode_access_token
from backend.app.models.user import User

PHONE = "+919876543210"


@pytest.mark.parametrize("raw,expected", [
    ("+919876543210", "+919876543210"),
    ("9876543210", "+919876543210"),
    ("98765 43210", "+919876543210"),
    ("919876543210", "+919876543210"),
    ("+91 98765-43210", "+919876543210"),
    ("12345", None),
    ("", None),
    (None, None),
])
def test_normalize_indian_phone(raw, expected):
    assert normalize_indian_phone(raw) == expected


@pytest.mark.asyncio
async def test_send_otp_normalizes_phone(client, fake_otp):
    response = await client.post("/auth/send-otp", json={"phone": "9876543210"})
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "OTP sent"}
    assert fake_otp.sent == [PHONE]


@pytest.mark.asyncio
async def test_send_otp_rejects_invalid_phone(client, fake_otp):
    response = await client.post("/auth/send-otp", json={"phone": "123"})
    assert response.status_code == 400
    assert response.json()["errorCode"] == "INVALID_PHONE"
    assert fake_otp.sent == []


@pytest.mark.asyncio
async def test_send_otp_provider_failure(client, fake_otp):
    fake_otp.fail = True
    response = await client.post("/auth/send-otp", json={"phone": PHONE})
    assert response.status_code == 500
    assert response.json()["errorCode"] == "OTP_SEND_FAILED"


@pytest.mark.asyncio
async def test_verify_otp_issues_token_and_creates_user(client, db_session):
    """First successful verification creates the user; the token carries the phone."""
    response = await client.post("/auth/verify-otp", json={"phone": "9876543210", "otp": "123456"})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["user"] == {"phone": PHONE}

    payload = decode_access_token(data["token"])
    assert payload["phoneNumber"] == PHONE
    assert payload["sub"] == PHONE

    result = await db_session.execute(select(User).where(User.phone_number == PHONE))
    user = result.scalar_one()
    assert user.train_classes == ["SL", "3A", "2A", "1A"]
    assert user.profile_completeness == 0


@pytest.mark.asyncio
async def test_verify_otp_twice_keeps_single_user(client, db_session):
    for _ in range(2):
        response = await client.post("/auth/verify-otp", json={"phone": PHONE, "otp": "123456"})
        assert response.status_code == 200

    result = await db_session.execute(select(User).where(User.phone_number == PHONE))
    assert len(result.scalars().all()) == 1


@pytest.mark.asyncio
async def test_verify_otp_wrong_code(client):
    response = await client.post("/auth/verify-otp", json={"phone": PHONE, "otp": "000000"})
    assert response.status_code == 401
    assert response.json()["errorCode"] == "OTP_INVALID"


@pytest.mark.asyncio
async def test_verify_otp_missing_fields(client):
    response = await client.post("/auth/verify-otp", json={"phone": PHONE})
    assert response.status_code == 400
    assert response.json()["errorCode"] == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_verify_otp_provider_failure(client, fake_otp):
    fake_otp.fail = True
    response = await client.post("/auth/verify-otp", json={"phone": PHONE, "otp": "123456"})
    assert response.status_code == 500
    assert response.json()["errorCode"] == "OTP_VERIFY_FAILED"


@pytest.mark.asyncio
async def test_logout_revokes_token(client):
    """A logged-out token is rejected immediately, not after expiry."""
    verify = await client.post("/auth/verify-otp", json={"phone": PHONE, "otp": "123456"})
    headers = {"Authorization": f"Bearer {verify.json()['token']}"}

    assert (await client.get("/users/profile", headers=headers)).status_code == 200

    logout = await client.post("/auth/logout", headers=headers)
    assert logout.status_code == 200
    assert logout.json() == {"success": True, "revoked": True}

    after = await client.get("/users/profile", headers=headers)
    assert after.status_code == 401
    assert after.json()["errorCode"] == "UNAUTHORIZED"
    assert "revoked" in after.json()["message"].lower()


@pytest.mark.asyncio
async def test_revocation_check_fails_open(client, auth_headers, mocker):
    """An unreachable blacklist does not lock users out."""
    mocker.patch.object(redis_client_module.redis_client, "exists", side_effect=RedisConnectionError("down"))
    response = await client.post("/payments/create-intent", json={"pnr": "1234567890"}, headers=auth_headers(PHONE))
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_missing_token_is_unauthorized(client):
    response = await client.get("/users/profile")
    assert response.status_code == 401
    assert response.json() == {
        "success": False,
        "errorCode": "UNAUTHORIZED",
        "message": "Missing or invalid token.",
    }


@pytest.mark.asyncio
async def test_token_without_phone_is_unauthorized(client):
    token = create_access_token({"sub": ""})
    response = await client.get("/users/profile", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_garbage_token_is_unauthorized(client):
    response = await client.get("/users/profile", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["message"] == "Invalid or expired token."
