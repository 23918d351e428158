"""
Offer Seat Request model.

A passenger's request to take a seat from someone else's offer.
"""

from sqlalchemy import Column, Integer, UniqueConstraint
from backend.app.db.session import Base
from backend.app.models.mixins import CooperationRequestMixin


class OfferSeatRequest(Base, CooperationRequestMixin):
    """
    Offer Seat Request model.

    offer_id is a weak reference (lookup only, no foreign key cascade).
    A user holds at most one request per offer.
    """
    __tablename__ = "offer_seat_requests"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    offer_id = Column(Integer, nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("offer_id", "from_phone_number", name="uq_offer_request_offer_from"),
    )

    def __repr__(self):
        return f"<OfferSeatRequest(id={self.id}, offer_id={self.offer_id}, status='{self.status.value}')>"
