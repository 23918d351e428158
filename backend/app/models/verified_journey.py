"""
Verified Journey model.

Holds, per phone number, the latest confirmed PNR lookup. It is the sole
proof that a user travels on a given train for all matching features.
"""

from sqlalchemy import Column, Integer, String, DateTime, Enum, UniqueConstraint, Index
from backend.app.db.session import Base
from backend.app.models.enums import StatusType
from backend.app.models.mixins import JourneyMixin, TimestampMixin, utcnow


class VerifiedJourney(Base, JourneyMixin, TimestampMixin):
    """
    Verified Journey model.

    Upsert-only: written on every successful PNR lookup, never deleted.
    """
    __tablename__ = "verified_journeys"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    phone_number = Column(String(20), nullable=False, index=True)
    pnr = Column(String(10), nullable=False, index=True)

    status_type = Column(Enum(StatusType), default=StatusType.UNKNOWN, nullable=False)
    verified_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("phone_number", "pnr", name="uq_verified_journey_phone_pnr"),
        # Buddy search: same train/class/date among confirmed passengers
        Index("ix_verified_journeys_trip", "train_number", "travel_class", "boarding_date", "status_type"),
    )

    def __repr__(self):
        return f"<VerifiedJourney(id={self.id}, pnr='{self.pnr}', train='{self.train_number}', status='{self.status_type.value}')>"
