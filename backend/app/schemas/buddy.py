"""
Buddy matching schemas.
"""

from pydantic import Field
from datetime import datetime
from typing import Optional
from backend.app.models.enums import RequestStatus
from backend.app.schemas.common import CamelModel


class BuddySearchRequest(CamelModel):
    """Used by POST /buddies/search; the PNR is checked by the verification gate."""
    pnr: str


class BuddyRequestCreate(CamelModel):
    """
    Schema for asking a confirmed co-passenger to connect.

    Used by POST /buddies/request. buddyId is the candidate's verified journey id.
    """
    pnr: str
    buddy_id: int = Field(..., description="Verified journey id returned by search")
    message: Optional[str] = Field(default=None, max_length=500)


class RequestRespond(CamelModel):
    """
    Schema for settling a buddy or seat-offer request.

    action is ACCEPT, REJECT, DECLINE, IGNORE or CANCEL (case-insensitive).
    """
    request_id: int
    action: str


class BuddyCandidate(CamelModel):
    """One confirmed passenger on the caller's train/class/date."""
    id: int
    display_name: str
    age: Optional[int] = None
    train_number: str = ""
    train_class: str = ""
    boarding_date: str = ""
    from_station: str = Field(default="", alias="from")
    to_station: str = Field(default="", alias="to")
    verified_at: Optional[datetime] = None


class CooperationRequestOut(CamelModel):
    """Full buddy request record as listed in incoming/outgoing."""
    id: int
    from_phone_number: str
    to_phone_number: str
    pnr: str
    to_pnr: str
    message: Optional[str] = None
    status: RequestStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


