"""
User profile service.

Profile reads and writes keyed by phone number, profile completeness
scoring and the helpers used to present other passengers (masked names,
ages).
"""

import logging
import math
import re
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.core.exceptions import ResourceNotFoundError
from backend.app.db.session import ensure_db_available
from backend.app.db.upsert import insert_if_absent
from backend.app.models.enums import DietaryPreference, IdType, SeatPreference
from backend.app.models.user import User, default_train_classes

logger = logging.getLogger(__name__)

MASKED_NAME_PREFIX = "Passenger"
MAX_AGE = 150


def mask_phone(phone_number: Optional[str]) -> str:
    """'Passenger • 3210' for +919876543210; 'Passenger' when too short."""
    digits = re.sub(r"\D", "", str(phone_number or ""))
    if len(digits) < 4:
        return MASKED_NAME_PREFIX
    return f"{MASKED_NAME_PREFIX} • {digits[-4:]}"


def display_name(user: Optional[User], phone_number: str) -> str:
    if user is not None and user.name and user.name.strip():
        return user.name.strip()
    return mask_phone(phone_number)


def compute_age(date_of_birth: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """
    Full years between date_of_birth and today.

    Returns None for a missing date or a result outside 0..150.
    """
    if date_of_birth is None:
        return None
    today = today or date.today()
    years = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        years -= 1
    if years < 0 or years > MAX_AGE:
        return None
    return years


def resolve_age(user: Optional[User], today: Optional[date] = None) -> Optional[int]:
    """Stored age wins; otherwise it is derived from the date of birth."""
    if user is None:
        return None
    if user.age is not None:
        return user.age
    return compute_age(user.date_of_birth, today)


def compute_profile_completeness(user: User) -> int:
    """
    Score how much of the profile is filled in, 0..100.

    Basic info and emergency contact weigh 12.5 each, non-default seat and
    dietary preferences 6.25 each, a customized class list 12.5, and each
    verification flag 6.25.
    """
    score = 0.0

    for value in (user.name, user.email, user.age_group, user.profile_photo_url, user.emergency_contact):
        if value:
            score += 12.5

    if (user.seat_preference or SeatPreference.NO_PREFERENCE.value) != SeatPreference.NO_PREFERENCE.value:
        score += 6.25
    if (user.dietary_preference or DietaryPreference.NO_PREFERENCE.value) != DietaryPreference.NO_PREFERENCE.value:
        score += 6.25
    train_classes = user.train_classes if user.train_classes is not None else default_train_classes()
    if len(train_classes) < 4:
        score += 12.5

    if user.id_verified:
        score += 6.25
    if user.social_media_linked:
        score += 6.25

    # Half-up rounding, 12.5 scores as 13
    return min(int(math.floor(score + 0.5)), 100)


async def get_user_by_phone(db: AsyncSession, phone_number: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.phone_number == phone_number))
    return result.scalar_one_or_none()


async def get_users_by_phone(db: AsyncSession, phone_numbers: List[str]) -> Dict[str, User]:
    if not phone_numbers:
        return {}
    result = await db.execute(select(User).where(User.phone_number.in_(set(phone_numbers))))
    return {user.phone_number: user for user in result.scalars().all()}


async def ensure_user(db: AsyncSession, phone_number: str) -> User:
    """Create the user row on first login; existing rows are left as they are."""
    await insert_if_absent(
        db,
        User,
        values={
            "phone_number": phone_number,
            "seat_preference": SeatPreference.NO_PREFERENCE.value,
            "train_classes": default_train_classes(),
            "dietary_preference": DietaryPreference.NO_PREFERENCE.value,
            "special_assistance": False,
            "id_verified": False,
            "id_type": IdType.NONE.value,
            "social_media_linked": False,
            "profile_completeness": 0,
        },
        conflict_columns=("phone_number",),
    )
    return await get_user_by_phone(db, phone_number)


async def get_profile(db: AsyncSession, phone_number: str) -> User:
    user = await get_user_by_phone(db, phone_number)
    if user is None:
        raise ResourceNotFoundError("User not found", error_code="USER_NOT_FOUND")
    return user


async def _save(db: AsyncSession, user: User) -> User:
    user.profile_completeness = compute_profile_completeness(user)
    await db.commit()
    await db.refresh(user)
    return user


async def update_profile(db: AsyncSession, phone_number: str, data: dict) -> User:
    """
    Create the profile if needed, then write the provided fields.

    Args:
        db: Database session
        phone_number: Caller's phone number
        data: Snake-case fields from ProfileUpdate; empty values are ignored
    """
    await ensure_db_available(db)
    user = await ensure_user(db, phone_number)

    for field in ("name", "emergency_contact", "aadhaar_number"):
        value = data.get(field)
        if value and str(value).strip():
            setattr(user, field, str(value).strip())
    if data.get("email"):
        user.email = str(data["email"]).strip().lower()
    if data.get("age_group"):
        user.age_group = getattr(data["age_group"], "value", data["age_group"])
    if data.get("age") is not None:
        user.age = data["age"]
    if data.get("date_of_birth") is not None:
        user.date_of_birth = data["date_of_birth"]

    return await _save(db, user)


async def update_preferences(db: AsyncSession, phone_number: str, data: dict) -> User:
    await ensure_db_available(db)
    user = await get_profile(db, phone_number)

    if data.get("seat_preference"):
        user.seat_preference = getattr(data["seat_preference"], "value", data["seat_preference"])
    if data.get("train_classes") is not None:
        user.train_classes = list(data["train_classes"])
    if data.get("dietary_preference"):
        user.dietary_preference = getattr(data["dietary_preference"], "value", data["dietary_preference"])
    if data.get("special_assistance") is not None:
        user.special_assistance = data["special_assistance"]

    return await _save(db, user)


async def update_verification(db: AsyncSession, phone_number: str, data: dict) -> User:
    await ensure_db_available(db)
    user = await get_profile(db, phone_number)

    if data.get("id_verified") is not None:
        user.id_verified = data["id_verified"]
    if data.get("id_type"):
        user.id_type = getattr(data["id_type"], "value", data["id_type"])
    if data.get("social_media_linked") is not None:
        user.social_media_linked = data["social_media_linked"]

    return await _save(db, user)


async def update_profile_photo(db: AsyncSession, phone_number: str, photo_url: str) -> User:
    await ensure_db_available(db)
    user = await get_profile(db, phone_number)
    user.profile_photo_url = photo_url
    return await _save(db, user)
