"""
Seat offer schemas.
"""

from pydantic import Field
from datetime import datetime
from typing import Any, Optional
from backend.app.models.enums import OfferStatus
from backend.app.schemas.buddy import CooperationRequestOut
from backend.app.schemas.common import CamelModel, Journey


class OfferCreate(CamelModel):
    """
    Schema for offering spare seats on a confirmed ticket.

    Used by POST /offers/create. seatsAvailable is parsed leniently and
    clamped to 1..4 by the offer service.
    """
    pnr: str
    seats_available: Optional[Any] = None
    note: Optional[str] = Field(default=None, max_length=500)


class OfferRequestCreate(CamelModel):
    """Used by POST /offers/request."""
    pnr: str
    offer_id: int
    message: Optional[str] = Field(default=None, max_length=500)


class OfferListing(CamelModel):
    """Another passenger's active offer as shown by search."""
    id: int
    display_name: str
    from_station: str = Field(default="", alias="from")
    to_station: str = Field(default="", alias="to")
    train_number: str = ""
    train_class: str = ""
    boarding_date: str = ""
    seats_available: int = 1
    note: str = ""


class OfferOut(CamelModel):
    """Full offer record, returned by GET /offers/my."""
    id: int
    phone_number: str
    pnr: str
    journey: Journey
    seats_available: int
    note: Optional[str] = None
    status: OfferStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class OfferRequestOut(CooperationRequestOut):
    offer_id: int
