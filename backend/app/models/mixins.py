"""
Column mixins shared across journey-bearing and request models.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, DateTime, Enum, String
from backend.app.models.enums import RequestStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class JourneyMixin:
    """
    Denormalized journey snapshot (train, class, route, boarding date).

    Trip compatibility is plain equality on these columns; they are copied
    at write time and never kept in sync with later lookups.
    """
    train_number = Column(String(20), nullable=True, index=True)
    train_name = Column(String(120), nullable=True)
    travel_class = Column(String(10), nullable=True)
    from_station = Column(String(20), nullable=True)
    to_station = Column(String(20), nullable=True)
    boarding_date = Column(String(20), nullable=True, index=True)

    @property
    def journey(self) -> dict:
        return {
            "trainNumber": self.train_number,
            "trainName": self.train_name,
            "class": self.travel_class,
            "from": self.from_station,
            "to": self.to_station,
            "boardingDate": self.boarding_date,
        }

    def trip_key(self) -> tuple:
        return (
            str(self.train_number or ""),
            str(self.travel_class or ""),
            str(self.boarding_date or ""),
        )

    def has_trip_key(self) -> bool:
        return all(self.trip_key())


class CooperationRequestMixin(TimestampMixin):
    """
    Sender/receiver pair plus status for buddy and seat-offer requests.

    to_phone_number is always derived from the target's owner server-side.
    """
    from_phone_number = Column(String(20), nullable=False, index=True)
    to_phone_number = Column(String(20), nullable=False, index=True)
    # Sender's PNR (the one they were verified with)
    pnr = Column(String(10), nullable=False, index=True)
    # Receiver's PNR: the matched journey or the offer owner's ticket
    to_pnr = Column(String(10), nullable=False, index=True)
    message = Column(String(500), nullable=True)
    status = Column(Enum(RequestStatus), default=RequestStatus.PENDING, nullable=False, index=True)
