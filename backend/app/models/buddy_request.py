"""
Buddy Request model.

A request from one confirmed passenger to another on the same trip.
"""

from sqlalchemy import Column, Integer, UniqueConstraint
from backend.app.db.session import Base
from backend.app.models.mixins import CooperationRequestMixin


class BuddyRequest(Base, CooperationRequestMixin):
    """
    Buddy Request model.

    Unique per (from, to, pnr): re-requesting the same passenger revives
    the existing row instead of creating a second one.
    """
    __tablename__ = "buddy_requests"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    __table_args__ = (
        UniqueConstraint("from_phone_number", "to_phone_number", "pnr", name="uq_buddy_request_from_to_pnr"),
    )

    def __repr__(self):
        return f"<BuddyRequest(id={self.id}, pnr='{self.pnr}', status='{self.status.value}')>"
