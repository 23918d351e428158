"""
Train information request schemas.

Fields are optional so missing inputs surface as INVALID_PARAMETERS
from the endpoints rather than generic validation errors.
"""

from typing import Optional
from backend.app.schemas.common import CamelModel


class TrainSearchRequest(CamelModel):
    from_station: Optional[str] = None
    to_station: Optional[str] = None
    date: Optional[str] = None


class LiveStatusRequest(CamelModel):
    train_number: Optional[str] = None
    date: Optional[str] = None


class SeatAvailabilityRequest(CamelModel):
    train_number: Optional[str] = None
    from_station: Optional[str] = None
    to_station: Optional[str] = None
    date: Optional[str] = None
    travel_class: Optional[str] = None
    quota: str = "GN"


class FareRequest(CamelModel):
    train_number: Optional[str] = None
    from_station: Optional[str] = None
    to_station: Optional[str] = None
    travel_class: Optional[str] = None
    quota: str = "GN"
