"""
Offer Seat model.

A confirmed traveler's advertisement of spare seats on one ticket.
"""

from sqlalchemy import Column, Integer, String, Enum, UniqueConstraint, CheckConstraint, Index
from backend.app.db.session import Base
from backend.app.models.enums import OfferStatus
from backend.app.models.mixins import JourneyMixin, TimestampMixin

MIN_SEATS = 1
MAX_SEATS = 4


class OfferSeat(Base, JourneyMixin, TimestampMixin):
    """
    Offer Seat model.

    One offer per user per PNR. The journey columns are a snapshot of the
    owner's verified journey at create/update time and may go stale if the
    owner later re-verifies a changed PNR.
    """
    __tablename__ = "offer_seats"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    phone_number = Column(String(20), nullable=False, index=True)
    pnr = Column(String(10), nullable=False, index=True)

    seats_available = Column(Integer, default=MIN_SEATS, nullable=False)
    note = Column(String(500), nullable=True)
    status = Column(Enum(OfferStatus), default=OfferStatus.ACTIVE, nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("phone_number", "pnr", name="uq_offer_seat_phone_pnr"),
        CheckConstraint(f"seats_available BETWEEN {MIN_SEATS} AND {MAX_SEATS}", name="check_offer_seats_range"),
        Index("ix_offer_seats_trip", "train_number", "travel_class", "boarding_date", "status"),
    )

    def __repr__(self):
        return f"<OfferSeat(id={self.id}, pnr='{self.pnr}', seats={self.seats_available}, status='{self.status.value}')>"
