"""
User profile API endpoints.
"""

import logging
import re
import time
from pathlib import Path
from typing import Optional
from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from backend.app.core.config import settings
from backend.app.core.dependencies import get_current_user, get_phone_number
from backend.app.core.exceptions import InvalidInputError
from backend.app.db.session import get_db
from backend.app.schemas.user import PreferencesUpdate, ProfileUpdate, UserProfile, VerificationUpdate
from backend.app.services import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

ALLOWED_PHOTO_TYPES = {"image/jpeg", "image/png", "image/webp", "image/heic", "image/heif"}
UPLOADS_URL_PREFIX = "/uploads"


def _user_response(user) -> dict:
    return {"success": True, "user": UserProfile.model_validate(user)}


@router.get("/profile")
async def get_profile(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_profile(db, get_phone_number(current_user))
    return _user_response(user)


@router.post("/profile")
async def update_profile(
    body: ProfileUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create the caller's profile or update the provided fields."""
    user = await user_service.update_profile(db, get_phone_number(current_user), body.model_dump())
    return _user_response(user)


@router.post("/preferences")
async def update_preferences(
    body: PreferencesUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.update_preferences(db, get_phone_number(current_user), body.model_dump())
    return _user_response(user)


@router.post("/verification")
async def update_verification(
    body: VerificationUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.update_verification(db, get_phone_number(current_user), body.model_dump())
    return _user_response(user)


def photo_filename(phone_number: str, original_name: Optional[str], millis: Optional[int] = None) -> str:
    """profile_<phone>_<millis><ext>, keeping only digits and '+' from the phone."""
    safe_phone = re.sub(r"[^0-9+]", "", phone_number or "") or "user"
    ext = Path(original_name or "").suffix.lower() or ".jpg"
    millis = millis if millis is not None else int(time.time() * 1000)
    return f"profile_{safe_phone}_{millis}{ext}"


@router.post("/photo")
async def upload_photo(
    photo: Optional[UploadFile] = File(default=None),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Upload a profile photo (multipart field ``photo``).

    JPEG, PNG, WEBP and HEIC/HEIF up to 5 MiB; served back from /uploads.
    """
    if photo is None or not photo.filename:
        raise InvalidInputError("Photo file is required", error_code="MISSING_PHOTO")
    if photo.content_type not in ALLOWED_PHOTO_TYPES:
        raise InvalidInputError("Only JPG, PNG, WEBP, or HEIC images are allowed", error_code="INVALID_PHOTO_TYPE")

    content = await photo.read()
    if len(content) > settings.max_photo_bytes:
        raise InvalidInputError("Photo must be 5 MB or smaller", error_code="PHOTO_TOO_LARGE")

    phone_number = get_phone_number(current_user)
    # 404 before touching the disk
    await user_service.get_profile(db, phone_number)

    uploads_dir = Path(settings.uploads_dir)
    uploads_dir.mkdir(parents=True, exist_ok=True)
    filename = photo_filename(phone_number, photo.filename)
    (uploads_dir / filename).write_bytes(content)

    user = await user_service.update_profile_photo(db, phone_number, f"{UPLOADS_URL_PREFIX}/{filename}")
    logger.info("Profile photo stored", extra={"file": filename, "bytes": len(content)})
    return _user_response(user)
