"""
Tests for user profiles, completeness scoring and photo upload.
"""

from datetime import date

import pytest

from backend.app.api.v1.endpoints.users import photo_filename
from backend.app.core.config import settings
from backend.app.models.user import User, default_train_classes
from backend.app.services.user_service import (
    compute_age,
    compute_profile_completeness,
    display_name,
    mask_phone,
    resolve_age,
)

PHONE = "+919876543210"
TODAY = date(2025, 6, 15)


def make_user(**overrides):
    fields = {
        "phone_number": PHONE,
        "seat_preference": "no preference",
        "train_classes": default_train_classes(),
        "dietary_preference": "no preference",
        "id_verified": False,
        "social_media_linked": False,
    }
    fields.update(overrides)
    return User(**fields)


# Pure helpers

@pytest.mark.parametrize("phone,expected", [
    ("+919876543210", "Passenger • 3210"),
    ("98-76", "Passenger • 9876"),
    ("123", "Passenger"),
    (None, "Passenger"),
])
def test_mask_phone(phone, expected):
    assert mask_phone(phone) == expected


def test_display_name_falls_back_to_mask():
    assert display_name(make_user(name="  Asha "), PHONE) == "Asha"
    assert display_name(make_user(name="   "), PHONE) == "Passenger • 3210"
    assert display_name(None, PHONE) == "Passenger • 3210"


def test_compute_age():
    assert compute_age(date(1990, 6, 15), TODAY) == 35
    assert compute_age(date(1990, 6, 16), TODAY) == 34
    assert compute_age(date(2030, 1, 1), TODAY) is None
    assert compute_age(date(1800, 1, 1), TODAY) is None
    assert compute_age(None, TODAY) is None


def test_resolve_age_prefers_stored_age():
    assert resolve_age(make_user(age=40, date_of_birth=date(1990, 1, 1)), TODAY) == 40
    assert resolve_age(make_user(date_of_birth=date(1990, 1, 1)), TODAY) == 35
    assert resolve_age(None, TODAY) is None


def test_completeness_empty_profile():
    assert compute_profile_completeness(make_user()) == 0


def test_completeness_rounds_half_up():
    # name only: 12.5 -> 13
    assert compute_profile_completeness(make_user(name="Asha")) == 13
    # name + window seat: 18.75 -> 19
    assert compute_profile_completeness(make_user(name="Asha", seat_preference="window")) == 19


def test_completeness_full_profile():
    user = make_user(
        name="Asha",
        email="asha@example.com",
        age_group="26-35",
        profile_photo_url="/uploads/p.jpg",
        emergency_contact="+919800000000",
        seat_preference="window",
        dietary_preference="vegetarian",
        train_classes=["3A"],
        id_verified=True,
        social_media_linked=True,
    )
    assert compute_profile_completeness(user) == 100


def test_photo_filename_sanitizes_phone():
    assert photo_filename("+91 98765/43210", "Me.PNG", millis=1700) == "profile_+919876543210_1700.png"
    assert photo_filename("", "photo", millis=5) == "profile_user_5.jpg"


# API

@pytest.mark.asyncio
async def test_profile_not_found_before_creation(client, auth_headers):
    response = await client.get("/users/profile", headers=auth_headers(PHONE))
    assert response.status_code == 404
    assert response.json()["errorCode"] == "USER_NOT_FOUND"


@pytest.mark.asyncio
async def test_create_and_get_profile(client, auth_headers):
    response = await client.post(
        "/users/profile",
        json={"name": "Asha", "email": "Asha@Example.com", "ageGroup": "26-35", "dateOfBirth": "1990-06-15"},
        headers=auth_headers(PHONE),
    )
    assert response.status_code == 200
    user = response.json()["user"]
    assert user["phoneNumber"] == PHONE
    assert user["email"] == "asha@example.com"
    assert user["ageGroup"] == "26-35"
    assert user["dateOfBirth"] == "1990-06-15"
    assert user["profileCompleteness"] == 38
    assert user["preferences"] == {
        "seatPreference": "no preference",
        "trainClasses": ["SL", "3A", "2A", "1A"],
        "dietaryPreference": "no preference",
        "specialAssistance": False,
    }
    assert user["verification"] == {"idVerified": False, "idType": "none", "socialMediaLinked": False}

    fetched = await client.get("/users/profile", headers=auth_headers(PHONE))
    assert fetched.json()["user"] == user


@pytest.mark.asyncio
async def test_profile_rejects_invalid_email(client, auth_headers):
    response = await client.post("/users/profile", json={"email": "not-an-email"}, headers=auth_headers(PHONE))
    assert response.status_code == 400
    assert response.json()["errorCode"] == "INVALID_INPUT"


@pytest.mark.asyncio
async def test_preferences_and_verification(client, auth_headers):
    headers = auth_headers(PHONE)

    missing = await client.post("/users/preferences", json={"seatPreference": "window"}, headers=headers)
    assert missing.status_code == 404

    await client.post("/users/profile", json={"name": "Asha"}, headers=headers)

    prefs = await client.post(
        "/users/preferences",
        json={"seatPreference": "window", "trainClasses": ["3A", "2A"], "specialAssistance": True},
        headers=headers,
    )
    assert prefs.status_code == 200
    assert prefs.json()["user"]["preferences"]["seatPreference"] == "window"
    assert prefs.json()["user"]["preferences"]["trainClasses"] == ["3A", "2A"]
    # name 12.5 + seat 6.25 + classes 12.5 = 31.25
    assert prefs.json()["user"]["profileCompleteness"] == 31

    verification = await client.post(
        "/users/verification",
        json={"idVerified": True, "idType": "aadhaar"},
        headers=headers,
    )
    assert verification.json()["user"]["verification"]["idType"] == "aadhaar"
    assert verification.json()["user"]["profileCompleteness"] == 38


@pytest.mark.asyncio
async def test_photo_upload(client, auth_headers, tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "uploads_dir", str(tmp_path))
    headers = auth_headers(PHONE)
    await client.post("/users/profile", json={"name": "Asha"}, headers=headers)

    response = await client.post(
        "/users/photo",
        files={"photo": ("me.png", b"\x89PNG fake", "image/png")},
        headers=headers,
    )
    assert response.status_code == 200
    url = response.json()["user"]["profilePhotoUrl"]
    assert url.startswith("/uploads/profile_+919876543210_")
    assert url.endswith(".png")
    assert (tmp_path / url.rsplit("/", 1)[1]).read_bytes() == b"\x89PNG fake"


@pytest.mark.asyncio
async def test_photo_upload_errors(client, auth_headers, tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "uploads_dir", str(tmp_path))
    monkeypatch.setattr(settings, "max_photo_bytes", 8)
    headers = auth_headers(PHONE)

    missing = await client.post("/users/photo", headers=headers)
    assert missing.json()["errorCode"] == "MISSING_PHOTO"

    wrong_type = await client.post(
        "/users/photo", files={"photo": ("doc.pdf", b"%PDF", "application/pdf")}, headers=headers
    )
    assert wrong_type.json()["errorCode"] == "INVALID_PHOTO_TYPE"

    too_large = await client.post(
        "/users/photo", files={"photo": ("big.jpg", b"x" * 9, "image/jpeg")}, headers=headers
    )
    assert too_large.json()["errorCode"] == "PHOTO_TOO_LARGE"

    # Valid file but no profile yet: nothing is written
    no_profile = await client.post(
        "/users/photo", files={"photo": ("ok.jpg", b"x", "image/jpeg")}, headers=headers
    )
    assert no_profile.status_code == 404
    assert list(tmp_path.iterdir()) == []
