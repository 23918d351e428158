"""
User database model.

Users are identified by their verified phone number.
"""

from sqlalchemy import Column, Integer, String, Boolean, Date, JSON
from backend.app.db.session import Base
from backend.app.models.enums import SeatPreference, DietaryPreference, IdType
from backend.app.models.mixins import TimestampMixin

DEFAULT_TRAIN_CLASSES = ["SL", "3A", "2A", "1A"]


def default_train_classes():
    return list(DEFAULT_TRAIN_CLASSES)


class User(Base, TimestampMixin):
    """
    User profile model.

    Created on first successful OTP verification; profile, preferences
    and verification flags are filled in later.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    phone_number = Column(String(20), unique=True, index=True, nullable=False)

    name = Column(String(120), nullable=True)
    email = Column(String(255), nullable=True)
    age_group = Column(String(20), nullable=True)
    age = Column(Integer, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    aadhaar_number = Column(String(20), nullable=True)
    profile_photo_url = Column(String(500), nullable=True)
    emergency_contact = Column(String(20), nullable=True)

    # Preferences
    seat_preference = Column(String(20), default=SeatPreference.NO_PREFERENCE.value, nullable=False)
    train_classes = Column(JSON, default=default_train_classes, nullable=False)
    dietary_preference = Column(String(20), default=DietaryPreference.NO_PREFERENCE.value, nullable=False)
    special_assistance = Column(Boolean, default=False, nullable=False)

    # Verification
    id_verified = Column(Boolean, default=False, nullable=False)
    id_type = Column(String(20), default=IdType.NONE.value, nullable=False)
    social_media_linked = Column(Boolean, default=False, nullable=False)

    profile_completeness = Column(Integer, default=0, nullable=False)

    @property
    def preferences(self) -> dict:
        return {
            "seat_preference": self.seat_preference or SeatPreference.NO_PREFERENCE.value,
            "train_classes": list(self.train_classes if self.train_classes is not None else DEFAULT_TRAIN_CLASSES),
            "dietary_preference": self.dietary_preference or DietaryPreference.NO_PREFERENCE.value,
            "special_assistance": bool(self.special_assistance),
        }

    @property
    def verification(self) -> dict:
        return {
            "id_verified": bool(self.id_verified),
            "id_type": self.id_type or IdType.NONE.value,
            "social_media_linked": bool(self.social_media_linked),
        }

    def __repr__(self):
        return f"<User(id={self.id}, phone_number='{self.phone_number}')>"
