"""
User profile schemas.
"""

from pydantic import EmailStr, Field
from datetime import date, datetime
from typing import List, Optional
from backend.app.models.enums import AgeGroup, DietaryPreference, IdType, SeatPreference
from backend.app.schemas.common import CamelModel


class ProfileUpdate(CamelModel):
    """
    Schema for creating or updating the caller's profile.

    Used by POST /users/profile. Only provided fields are written.
    """
    name: Optional[str] = Field(default=None, max_length=120)
    email: Optional[EmailStr] = None
    age_group: Optional[AgeGroup] = None
    age: Optional[int] = Field(default=None, ge=0, le=150)
    date_of_birth: Optional[date] = None
    emergency_contact: Optional[str] = Field(default=None, max_length=20)
    aadhaar_number: Optional[str] = Field(default=None, max_length=20)


class PreferencesUpdate(CamelModel):
    """Used by POST /users/preferences."""
    seat_preference: Optional[SeatPreference] = None
    train_classes: Optional[List[str]] = None
    dietary_preference: Optional[DietaryPreference] = None
    special_assistance: Optional[bool] = None


class VerificationUpdate(CamelModel):
    """Used by POST /users/verification."""
    id_verified: Optional[bool] = None
    id_type: Optional[IdType] = None
    social_media_linked: Optional[bool] = None


class Preferences(CamelModel):
    seat_preference: str
    train_classes: List[str]
    dietary_preference: str
    special_assistance: bool


class Verification(CamelModel):
    id_verified: bool
    id_type: str
    social_media_linked: bool


class UserProfile(CamelModel):
    """
    Schema for user profile responses.

    Used by the /users endpoints and the admin API.
    """
    id: int
    phone_number: str
    name: Optional[str] = None
    email: Optional[str] = None
    age_group: Optional[str] = None
    age: Optional[int] = None
    date_of_birth: Optional[date] = None
    aadhaar_number: Optional[str] = None
    profile_photo_url: Optional[str] = None
    emergency_contact: Optional[str] = None
    preferences: Preferences
    verification: Verification
    profile_completeness: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
